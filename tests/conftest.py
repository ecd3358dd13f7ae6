"""Pytest fixtures for the CertX client tests."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest

from certx.core.entities.user import Role, User
from certx.core.policy.validity_policy import ValidityPolicy
from fakes import FakeCatalog, FakeRegistry, FakeUserDirectory, RecordingAuditLog, make_session

NOW = datetime(2024, 1, 1, 9, 0)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def registry():
    return FakeRegistry(now=NOW)


@pytest.fixture
def catalog():
    catalog = FakeCatalog()
    catalog.add_type("it-bachelor", "Cử nhân CNTT")
    catalog.add_option("12m", "it-bachelor", months=12)
    catalog.add_option("90d", "it-bachelor", days=90)
    catalog.add_type("diploma", "Diploma", is_permanent=True)
    catalog.add_type("no-options", "Short course")
    return catalog


@pytest.fixture
def policy(catalog):
    return ValidityPolicy(catalog)


@pytest.fixture
def audit():
    return RecordingAuditLog()


@pytest.fixture
def refresh():
    return MagicMock(name="refresh")


@pytest.fixture
def user_session():
    return make_session(Role.USER, user_id="user-1")


@pytest.fixture
def admin_session():
    return make_session(Role.ADMIN, address="0xadmin")


@pytest.fixture
def super_session():
    return make_session(Role.SUPER_ADMIN, address="0xsuper")


@pytest.fixture
def users():
    return FakeUserDirectory(
        User(id="user-1", email="a@certx.test", name="Nguyen Van A"),
        User(id="user-2", email="b@certx.test", name="Tran Thi B"),
        User(id="user-3", email="c@certx.test", name="Le Van C", enabled=False),
    )

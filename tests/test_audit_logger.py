"""Tests for the audit sink and the audit trail queries."""

import logging
from datetime import date
from unittest.mock import MagicMock

import pytest

from certx.config.logging_config import JsonFormatter
from certx.core.entities.user import Role
from certx.core.errors import AuthorizationError, ValidationError
from certx.core.interfaces.audit_log import AuditAction, AuditEvent, AuditLogFilters, AuditOutcome
from certx.core.use_cases.audit_trail import AuditTrailQuery
from certx.infrastructure.audit.audit_logger import AuditLogger
from fakes import make_session


def event(action=AuditAction.CERT_APPROVE, outcome=AuditOutcome.SUCCESS, **fields):
    return AuditEvent(action=action, outcome=outcome, actor_id="admin-1", resource_type="certificate", **fields)


class TestAuditLogger:

    def test_success_logged_at_info(self, caplog):
        caplog.set_level(logging.INFO, logger="audit")
        AuditLogger().record(event(resource_id="c1", details={"issuedDate": "2024-01-01"}))

        record = caplog.records[-1]
        assert record.name == "audit"
        assert record.levelno == logging.INFO
        assert record.action == "CERT_APPROVE"
        assert record.resource == "certificate:c1"
        assert record.details == {"issuedDate": "2024-01-01"}

    def test_failure_logged_at_warning(self, caplog):
        AuditLogger().record(event(outcome=AuditOutcome.FAILURE, error_message="Conflict"))
        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.error == "Conflict"

    def test_ring_buffer_keeps_newest(self):
        sink = AuditLogger(buffer_size=3)
        for i in range(5):
            sink.record(event(resource_id=f"c{i}"))
        assert len(sink) == 3
        assert [e.resource_id for e in sink.recent()] == ["c4", "c3", "c2"]

    def test_recent_filters(self):
        sink = AuditLogger()
        sink.record(event())
        sink.record(event(action=AuditAction.CERT_REVOKE, outcome=AuditOutcome.FAILURE))
        assert [e.action for e in sink.recent(outcome=AuditOutcome.FAILURE)] == [AuditAction.CERT_REVOKE]
        assert len(sink.recent(action=AuditAction.CERT_APPROVE)) == 1

    def test_json_formatter_carries_audit_fields(self):
        record = logging.LogRecord("audit", logging.INFO, __file__, 1, "audit: CERT_UPLOAD", None, None)
        record.action = "CERT_UPLOAD"
        record.outcome = "SUCCESS"
        line = JsonFormatter().format(record)
        assert '"action": "CERT_UPLOAD"' in line
        assert '"logger": "audit"' in line


class TestAuditTrailQuery:

    def test_super_admin_only(self):
        query = AuditTrailQuery(MagicMock())
        with pytest.raises(AuthorizationError):
            query.list_logs(make_session(Role.ADMIN))

    def test_passes_filters_through(self):
        trail = MagicMock()
        session = make_session(Role.SUPER_ADMIN)
        filters = AuditLogFilters(action=AuditAction.CERT_REVOKE)
        AuditTrailQuery(trail).list_logs(session, filters)
        trail.list_audit_logs.assert_called_once_with(session, filters)

    def test_inverted_range(self):
        with pytest.raises(ValidationError):
            AuditTrailQuery(MagicMock()).stats(make_session(Role.SUPER_ADMIN), date(2024, 2, 1), date(2024, 1, 1))


def test_buffer_size_from_settings():
    from certx.config.settings import Settings

    sink = AuditLogger.from_settings(Settings(audit_buffer_size=2))
    for _ in range(3):
        sink.record(event())
    assert len(sink) == 2

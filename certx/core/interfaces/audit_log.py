"""
Contract: Audit Log

Every attempted mutation produces exactly one audit event, whether it
succeeded or failed. The sink is append-only; the trail query reads what
the registry itself recorded.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from certx.core.entities.user import Role, Session
from certx.core.pagination import Pagination


class AuditAction(str, Enum):
    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    REGISTER = "REGISTER"
    CERT_UPLOAD = "CERT_UPLOAD"
    CERT_APPROVE = "CERT_APPROVE"
    CERT_REJECT = "CERT_REJECT"
    CERT_REVOKE = "CERT_REVOKE"
    CERT_ISSUE = "CERT_ISSUE"
    CERT_REUPLOAD = "CERT_REUPLOAD"
    CERT_UPDATE_EXPIRATION = "CERT_UPDATE_EXPIRATION"
    CERT_TRANSFER = "CERT_TRANSFER"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"
    USER_DELETE = "USER_DELETE"
    USER_ENABLE = "USER_ENABLE"
    USER_DISABLE = "USER_DISABLE"
    CREDENTIAL_TYPE_CREATE = "CREDENTIAL_TYPE_CREATE"
    CREDENTIAL_TYPE_UPDATE = "CREDENTIAL_TYPE_UPDATE"
    CREDENTIAL_TYPE_DELETE = "CREDENTIAL_TYPE_DELETE"
    CREDENTIAL_VALIDITY_CREATE = "CREDENTIAL_VALIDITY_CREATE"
    CREDENTIAL_VALIDITY_UPDATE = "CREDENTIAL_VALIDITY_UPDATE"
    CREDENTIAL_VALIDITY_DELETE = "CREDENTIAL_VALIDITY_DELETE"
    SYSTEM_CONFIG_UPDATE = "SYSTEM_CONFIG_UPDATE"


class AuditOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"


@dataclass
class AuditEvent:
    """One attempted operation."""
    action: AuditAction
    outcome: AuditOutcome
    actor_id: str = "anonymous"
    actor_role: Role | None = None
    resource_type: str | None = None     # "certificate", "credential_type", ...
    resource_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    error_message: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class IAuditLog(ABC):
    """Port: append-only audit sink."""

    @abstractmethod
    def record(self, event: AuditEvent) -> None:
        ...


@dataclass
class AuditLogFilters:
    page: int = 1
    limit: int = 20
    user_id: str | None = None
    user_role: Role | None = None
    action: AuditAction | None = None
    status: AuditOutcome | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    search: str | None = None


@dataclass
class AuditRecord:
    """An audit entry as stored by the registry."""
    id: str
    action: str
    status: str
    user_id: str | None = None
    user_email: str | None = None
    user_role: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    details: Any = None
    error_message: str | None = None
    created_at: datetime | None = None


@dataclass
class AuditLogPage:
    logs: list[AuditRecord] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)


@dataclass
class AuditStats:
    total_logs: int = 0
    action_counts: dict[str, int] = field(default_factory=dict)
    status_counts: dict[str, int] = field(default_factory=dict)
    role_counts: dict[str, int] = field(default_factory=dict)
    period_start: datetime | None = None
    period_end: datetime | None = None


class IAuditTrail(ABC):
    """Port: read access to the registry's own audit trail (admins)."""

    @abstractmethod
    def list_audit_logs(self, session: Session, filters: AuditLogFilters) -> AuditLogPage:
        ...

    @abstractmethod
    def get_audit_stats(
        self, session: Session, start_date: date | None = None, end_date: date | None = None
    ) -> AuditStats:
        ...

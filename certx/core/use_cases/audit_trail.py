"""
Use Case: Audit trail queries

Read-only access to what the registry recorded. Restricted to SUPER_ADMIN.
"""

from datetime import date

from certx.core.entities.user import Role, Session
from certx.core.errors import AuthorizationError, ValidationError
from certx.core.interfaces.audit_log import AuditLogFilters, AuditLogPage, AuditStats, IAuditTrail


class AuditTrailQuery:

    def __init__(self, trail: IAuditTrail):
        self.trail = trail

    def list_logs(self, session: Session, filters: AuditLogFilters | None = None) -> AuditLogPage:
        self._ensure_super_admin(session)
        filters = filters or AuditLogFilters()
        _check_range(filters.start_date, filters.end_date)
        return self.trail.list_audit_logs(session, filters)

    def stats(self, session: Session, start_date: date | None = None, end_date: date | None = None) -> AuditStats:
        self._ensure_super_admin(session)
        _check_range(start_date, end_date)
        return self.trail.get_audit_stats(session, start_date, end_date)

    @staticmethod
    def _ensure_super_admin(session: Session) -> None:
        if session.role != Role.SUPER_ADMIN:
            raise AuthorizationError("Only a super admin may read the audit trail")


def _check_range(start: date | None, end: date | None) -> None:
    if start and end and start > end:
        raise ValidationError("The start date must not be after the end date", "startDate")

"""
Adapter: Audit Logger

Writes every audit event as a structured record on the "audit" logger and
keeps the most recent ones in a ring buffer for inspection.
"""

import logging
from collections import deque

from certx.config.settings import Settings
from certx.core.interfaces.audit_log import AuditAction, AuditEvent, AuditOutcome, IAuditLog

log = logging.getLogger("audit")


class AuditLogger(IAuditLog):
    """
    Append-only audit sink.

    Has no off switch; every recorded event is kept and logged.
    """

    def __init__(self, buffer_size: int = 1000):
        self._buffer: deque[AuditEvent] = deque(maxlen=buffer_size)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuditLogger":
        return cls(buffer_size=settings.audit_buffer_size)

    def record(self, event: AuditEvent) -> None:
        self._buffer.append(event)

        resource = event.resource_type or "-"
        if event.resource_id:
            resource = f"{resource}:{event.resource_id}"

        extra = {
            "action": event.action.value,
            "actor": event.actor_id,
            "resource": resource,
            "outcome": event.outcome.value,
        }
        if event.details:
            extra["details"] = event.details
        if event.error_message:
            extra["error"] = event.error_message

        if event.outcome == AuditOutcome.FAILURE:
            log.warning(f"audit: {event.action.value} {event.outcome.value} {resource}", extra=extra)
        else:
            log.info(f"audit: {event.action.value} {event.outcome.value} {resource}", extra=extra)

    def recent(
        self,
        limit: int = 100,
        action: AuditAction | None = None,
        outcome: AuditOutcome | None = None,
    ) -> list[AuditEvent]:
        """Recent events, newest first."""
        events = list(reversed(self._buffer))
        if action is not None:
            events = [e for e in events if e.action == action]
        if outcome is not None:
            events = [e for e in events if e.outcome == outcome]
        return events[:limit]

    def __len__(self) -> int:
        return len(self._buffer)

"""
Shared plumbing for certificate transitions.

Every mutating use case follows the same request-then-render sequence:

  1. Local check: session, role table, source state, event preconditions.
     A refusal never reaches the network.
  2. One call to the registry. Its error, if any, is re-raised verbatim.
  3. Exactly one audit event, SUCCESS or FAILURE.
  4. Reload of the authoritative list after a success, and after a
     not-found/conflict answer. The local copy is never patched.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, TypeVar

from certx.core.entities.user import Session
from certx.core.errors import AuthorizationError, CertxError
from certx.core.interfaces.audit_log import AuditAction, AuditEvent, AuditOutcome, IAuditLog
from certx.core.interfaces.registry_api import ExpirationUpdate, ICertificateRegistry
from certx.core.lifecycle.state_machine import (
    CertificateState,
    Event,
    Transition,
    Valid,
    apply,
    is_allowed,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]
Refresh = Callable[[], Any]


class AuditedOperation:
    """Audit + refresh around a single registry call."""

    RESOURCE_TYPE = "certificate"

    def __init__(self, audit: IAuditLog, clock: Clock = datetime.now, on_refresh: Refresh | None = None):
        self._audit = audit
        self._clock = clock
        self._on_refresh = on_refresh

    def _now(self) -> datetime:
        return self._clock()

    def _today(self) -> date:
        return self._clock().date()

    def _record(
        self,
        session: Session | None,
        action: AuditAction,
        resource_id: str | None,
        outcome: AuditOutcome,
        details: dict | None = None,
        error: str | None = None,
    ) -> None:
        user = session.user if session else None
        self._audit.record(AuditEvent(
            action=action,
            outcome=outcome,
            actor_id=user.id if user else "anonymous",
            actor_role=user.role if user else None,
            resource_type=self.RESOURCE_TYPE,
            resource_id=resource_id,
            details=details or {},
            error_message=error,
        ))

    def _ensure_session(self, session: Session, action: AuditAction, resource_id: str | None) -> None:
        if session.is_expired(self._now()):
            message = "Session expired, please log in again"
            self._record(session, action, resource_id, AuditOutcome.FAILURE, {"stage": "local"}, message)
            raise AuthorizationError(message, status_code=401)

    def _ensure_admin(self, session: Session, action: AuditAction, resource_id: str | None) -> None:
        self._ensure_session(session, action, resource_id)
        if not session.role.is_admin:
            raise self._refuse(
                session, action, resource_id,
                AuthorizationError(f"Role {session.role.value} may not perform {action.value}"),
            )

    def _refuse(
        self,
        session: Session,
        action: AuditAction,
        resource_id: str | None,
        error: CertxError,
    ) -> CertxError:
        logger.warning(f"{action.value} refused locally for {resource_id or 'new certificate'}: {error.message}")
        self._record(
            session, action, resource_id, AuditOutcome.FAILURE,
            {"stage": "local", "kind": type(error).__name__}, error.message,
        )
        return error

    def _submit(
        self,
        session: Session,
        action: AuditAction,
        resource_id: str | None,
        call: Callable[[], T],
        details: dict | None = None,
    ) -> T:
        logger.info(f"{action.value} submitted by {session.user.id} for {resource_id or 'new certificate'}")
        try:
            result = call()
        except CertxError as e:
            logger.warning(f"{action.value} failed for {resource_id or 'new certificate'}: {e.message}")
            self._record(session, action, resource_id, AuditOutcome.FAILURE, details, e.message)
            if e.requires_refresh:
                self._refresh()
            raise

        self._record(session, action, resource_id, AuditOutcome.SUCCESS, details)
        self._refresh()
        return result

    def _refresh(self) -> None:
        if self._on_refresh is not None:
            self._on_refresh()


class TransitionUseCase(AuditedOperation):
    """A certificate transition: state machine check, then one registry call."""

    def __init__(
        self,
        registry: ICertificateRegistry,
        audit: IAuditLog,
        clock: Clock = datetime.now,
        on_refresh: Refresh | None = None,
    ):
        super().__init__(audit, clock, on_refresh)
        self._registry = registry

    def _ensure_allowed(
        self, session: Session, transition: Transition, action: AuditAction, resource_id: str | None
    ) -> None:
        """Cheap role check before any lookup the full event may need."""
        self._ensure_session(session, action, resource_id)
        if not is_allowed(session.role, transition):
            raise self._refuse(
                session, action, resource_id,
                AuthorizationError(f"Role {session.role.value} may not {transition.value} certificates"),
            )

    def _check(
        self,
        session: Session,
        state: CertificateState | None,
        event: Event,
        action: AuditAction,
        resource_id: str | None,
    ) -> CertificateState:
        result = apply(state, event, session.user, now=self._now())
        if not result.ok:
            raise self._refuse(session, action, resource_id, result.to_exception())
        return result.state


def expiration_update(target: Valid) -> ExpirationUpdate:
    """Approve and update-expiration send the same body, built from the target state."""
    return ExpirationUpdate(
        issued_date=target.issued_date,
        expiration_date=target.expiration_date,
        validity_option_id=target.validity_option_id,
    )

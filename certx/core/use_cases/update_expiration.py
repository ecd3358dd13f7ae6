"""
Use Case: Update Expiration

Rewrites issued date / expiration / validity option of a VALID certificate
without touching its status. Uses the same resolution routine as approval.
"""

from datetime import date, datetime

from certx.core.entities.certificate import Certificate
from certx.core.entities.user import Session
from certx.core.interfaces.audit_log import AuditAction, IAuditLog
from certx.core.interfaces.registry_api import ICertificateRegistry
from certx.core.lifecycle.state_machine import Transition, UpdateExpiration, state_of
from certx.core.policy.validity_policy import ExpirationChoice, ValidityPolicy
from certx.core.use_cases.base import Clock, Refresh, TransitionUseCase, expiration_update


def prefill_expiration_choice(cert: Certificate) -> ExpirationChoice:
    """
    Choice to preselect when editing: the recorded option if any, otherwise
    the stored date as a custom value.
    """
    if cert.validity_option_id:
        return ExpirationChoice.option(cert.validity_option_id)
    if cert.expiration_date:
        return ExpirationChoice.custom(cert.expiration_date)
    return ExpirationChoice()


class UpdateExpirationUseCase(TransitionUseCase):

    def __init__(
        self,
        registry: ICertificateRegistry,
        policy: ValidityPolicy,
        audit: IAuditLog,
        clock: Clock = datetime.now,
        on_refresh: Refresh | None = None,
    ):
        super().__init__(registry, audit, clock, on_refresh)
        self._policy = policy

    def execute(self, session: Session, cert: Certificate, issued_date: date | None, choice: ExpirationChoice) -> None:
        action = AuditAction.CERT_UPDATE_EXPIRATION
        self._ensure_allowed(session, Transition.UPDATE_EXPIRATION, action, cert.id)

        period = self._policy.resolve_period(session, cert.credential_type_id)
        target = self._check(
            session, state_of(cert), UpdateExpiration(issued_date=issued_date, period=period, choice=choice),
            action, cert.id,
        )
        update = expiration_update(target)
        self._submit(
            session, action, cert.id,
            lambda: self._registry.update_expiration(session, cert.id, update),
            details={
                "previousExpirationDate": cert.expiration_date.isoformat() if cert.expiration_date else None,
                "expirationDate": update.expiration_date.isoformat() if update.expiration_date else None,
                "validityOptionId": update.validity_option_id,
            },
        )

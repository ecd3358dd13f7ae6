"""
Use Cases: Approve / Reject

Both act on a PENDING certificate only. Approval resolves the expiration
through the validity policy; if that fails the approval is not sent.
"""

from datetime import date, datetime

from certx.core.entities.certificate import Certificate
from certx.core.entities.user import Session
from certx.core.interfaces.audit_log import AuditAction, IAuditLog
from certx.core.interfaces.registry_api import ICertificateRegistry
from certx.core.lifecycle.state_machine import Approve, Reject, Transition, state_of
from certx.core.policy.validity_policy import ExpirationChoice, ValidityPolicy
from certx.core.use_cases.base import Clock, Refresh, TransitionUseCase, expiration_update


def default_issued_date(cert: Certificate, today: date) -> date:
    """Issued date to propose when an approval form opens."""
    return cert.issued_date or today


class ApproveCertificateUseCase(TransitionUseCase):

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

    def execute(
        self,
        session: Session,
        cert: Certificate,
        issued_date: date | None,
        choice: ExpirationChoice = ExpirationChoice(),
    ) -> None:
        action = AuditAction.CERT_APPROVE
        self._ensure_allowed(session, Transition.APPROVE, action, cert.id)

        period = self._policy.resolve_period(session, cert.credential_type_id)
        target = self._check(
            session, state_of(cert), Approve(issued_date=issued_date, period=period, choice=choice),
            action, cert.id,
        )
        update = expiration_update(target)
        self._submit(
            session, action, cert.id,
            lambda: self._registry.approve_certificate(session, cert.id, update),
            details={
                "issuedDate": update.issued_date.isoformat(),
                "expirationDate": update.expiration_date.isoformat() if update.expiration_date else None,
                "validityOptionId": update.validity_option_id,
            },
        )


class RejectCertificateUseCase(TransitionUseCase):

    def execute(self, session: Session, cert: Certificate, reason: str, allow_reupload: bool = False) -> None:
        action = AuditAction.CERT_REJECT
        self._ensure_allowed(session, Transition.REJECT, action, cert.id)

        target = self._check(
            session, state_of(cert), Reject(reason=reason, allow_reupload=allow_reupload),
            action, cert.id,
        )
        self._submit(
            session, action, cert.id,
            lambda: self._registry.reject_certificate(session, cert.id, target.reason, target.allow_reupload),
            details={"reason": target.reason, "allowReupload": target.allow_reupload},
        )

"""
Orchestrator: Transfer

Moves a VALID certificate to another account. The target user is looked up
first; an optional display name replaces the holder name on the certificate
only, never on the user's profile.
"""

from datetime import datetime

from certx.core.entities.certificate import Certificate
from certx.core.entities.user import Session
from certx.core.errors import CertxError, ValidationError
from certx.core.interfaces.audit_log import AuditAction, IAuditLog
from certx.core.interfaces.registry_api import ICertificateRegistry, TransferReceipt
from certx.core.interfaces.user_directory import IUserDirectory
from certx.core.lifecycle.state_machine import Transfer, Transition, state_of
from certx.core.use_cases.base import Clock, Refresh, TransitionUseCase


class TransferCertificateUseCase(TransitionUseCase):

    def __init__(
        self,
        registry: ICertificateRegistry,
        users: IUserDirectory,
        audit: IAuditLog,
        clock: Clock = datetime.now,
        on_refresh: Refresh | None = None,
    ):
        super().__init__(registry, audit, clock, on_refresh)
        self._users = users

    def execute(
        self,
        session: Session,
        cert: Certificate,
        new_user_id: str,
        note: str,
        display_name: str | None = None,
    ) -> TransferReceipt:
        action = AuditAction.CERT_TRANSFER
        self._ensure_allowed(session, Transition.TRANSFER, action, cert.id)

        # validate before the lookup so a blank form never hits the directory
        event = Transfer(new_user_id=new_user_id, note=note, display_name=display_name)
        self._check(session, state_of(cert), event, action, cert.id)

        if new_user_id == cert.holder_user_id:
            raise self._refuse(
                session, action, cert.id,
                ValidationError("The certificate already belongs to this user", field="newUserId"),
            )

        try:
            recipient = self._users.get_user(session, new_user_id)
        except CertxError as e:
            raise self._refuse(session, action, cert.id, e)
        if not recipient.enabled:
            raise self._refuse(
                session, action, cert.id,
                ValidationError(f"User {recipient.email or recipient.id} is disabled", field="newUserId"),
            )

        name = (display_name or "").strip() or recipient.name or None
        return self._submit(
            session, action, cert.id,
            lambda: self._registry.transfer_certificate(session, cert.id, recipient.id, note.strip(), name),
            details={
                "fromUserId": cert.holder_user_id,
                "toUserId": recipient.id,
                "displayName": name,
            },
        )

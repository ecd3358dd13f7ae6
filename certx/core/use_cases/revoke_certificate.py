"""
Use Case: Revoke Certificate

Irreversible. Only a VALID, non-expired certificate can be revoked.
"""

from certx.core.entities.certificate import Certificate
from certx.core.entities.user import Session
from certx.core.interfaces.audit_log import AuditAction
from certx.core.interfaces.registry_api import RevokeReceipt
from certx.core.lifecycle.state_machine import Revoke, Transition, state_of
from certx.core.use_cases.base import TransitionUseCase


class RevokeCertificateUseCase(TransitionUseCase):

    def execute(self, session: Session, cert: Certificate) -> RevokeReceipt:
        action = AuditAction.CERT_REVOKE
        self._ensure_allowed(session, Transition.REVOKE, action, cert.id)
        self._check(session, state_of(cert), Revoke(at=self._now()), action, cert.id)
        return self._submit(
            session, action, cert.id,
            lambda: self._registry.revoke_certificate(session, cert.doc_hash),
            details={"docHash": cert.doc_hash},
        )

"""
Orchestrator: Reupload

Resubmits a REJECTED certificate as a new PENDING record in one request.
The rejected record stays as it is; the new one points back to it through
``reuploadedFrom``.
"""

from dataclasses import dataclass
from typing import Iterable

from certx.core.entities.certificate import Certificate, CertStatus
from certx.core.entities.user import Session
from certx.core.interfaces.audit_log import AuditAction
from certx.core.interfaces.registry_api import DocumentFile, ReuploadRequest
from certx.core.lifecycle.state_machine import Reupload, Transition, state_of
from certx.core.use_cases.base import TransitionUseCase


@dataclass
class ReuploadInput:
    note: str
    holder_name: str
    degree: str = ""
    credential_type_id: str | None = None
    file: DocumentFile | None = None
    use_original_file: bool = False


def has_pending_resubmission(cert_id: str, known: Iterable[Certificate]) -> bool:
    """
    True if ``known`` already holds a PENDING resubmission of ``cert_id``.

    Only as good as the caller's list; the registry enforces uniqueness.
    """
    return any(
        c.status == CertStatus.PENDING and c.reuploaded_from == cert_id
        for c in known
    )


class ReuploadCertificateUseCase(TransitionUseCase):

    def execute(
        self,
        session: Session,
        cert: Certificate,
        data: ReuploadInput,
        known_certificates: Iterable[Certificate] = (),
    ) -> None:
        action = AuditAction.CERT_REUPLOAD
        self._ensure_allowed(session, Transition.REUPLOAD, action, cert.id)

        has_file = data.file is not None and bool(data.file.content)
        event = Reupload(
            source_id=cert.id,
            note=data.note,
            holder_name=data.holder_name,
            submitted_at=self._now(),
            degree=data.degree,
            credential_type_id=data.credential_type_id,
            has_file=has_file,
            use_original_file=data.use_original_file,
            owner_id=cert.issuer_id,
            pending_resubmission=has_pending_resubmission(cert.id, known_certificates),
        )
        self._check(session, state_of(cert), event, action, cert.id)

        request = ReuploadRequest(
            note=data.note.strip(),
            holder_name=data.holder_name.strip(),
            degree=data.degree.strip(),
            credential_type_id=data.credential_type_id or None,
            # the reuse flag wins when both are given
            file=None if data.use_original_file else data.file,
            use_original_file=data.use_original_file,
        )
        self._submit(
            session, action, cert.id,
            lambda: self._registry.reupload_certificate(session, cert.id, request),
            details={"reuploadedFrom": cert.id, "useOriginalFile": request.use_original_file},
        )

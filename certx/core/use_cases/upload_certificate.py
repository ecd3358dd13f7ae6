"""
Use Case: Upload Certificate

A USER (or ADMIN) submits a document for review. The certificate enters
PENDING and its issued date is the upload day; the real issuance date is
set by the admin who approves it.
"""

from dataclasses import dataclass

from certx.core.entities.user import Session
from certx.core.interfaces.audit_log import AuditAction
from certx.core.interfaces.registry_api import DocumentFile, UploadReceipt, UploadRequest
from certx.core.lifecycle.state_machine import Transition, Upload
from certx.core.use_cases.base import TransitionUseCase


@dataclass
class UploadInput:
    file: DocumentFile | None
    holder_name: str
    degree: str = ""
    credential_type_id: str | None = None


class UploadCertificateUseCase(TransitionUseCase):

    def execute(self, session: Session, data: UploadInput) -> UploadReceipt:
        action = AuditAction.CERT_UPLOAD
        self._ensure_allowed(session, Transition.UPLOAD, action, None)

        event = Upload(
            has_file=data.file is not None and bool(data.file.content),
            holder_name=data.holder_name,
            uploaded_at=self._now(),
            degree=data.degree,
            credential_type_id=data.credential_type_id,
        )
        target = self._check(session, None, event, action, None)

        request = UploadRequest(
            file=data.file,
            holder_name=data.holder_name.strip(),
            degree=data.degree.strip(),
            credential_type_id=data.credential_type_id or None,
            issued_date=target.issued_date,
        )
        return self._submit(
            session, action, None,
            lambda: self._registry.upload_certificate(session, request),
            details={"holderName": request.holder_name, "filename": data.file.filename},
        )

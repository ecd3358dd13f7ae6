"""
Contract: Certificate Registry API

The remote registry is the source of truth for every certificate. The
client validates locally, calls one of these operations, and then reloads;
it never patches its own copy of a certificate.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date

from certx.core.entities.certificate import Certificate, CertStatus
from certx.core.entities.user import Session
from certx.core.pagination import Pagination


@dataclass
class DocumentFile:
    """A document picked by the uploader."""
    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass
class UploadRequest:
    file: DocumentFile
    holder_name: str
    degree: str = ""
    credential_type_id: str | None = None
    issued_date: date | None = None


@dataclass
class UploadReceipt:
    id: str
    doc_hash: str
    status: CertStatus


@dataclass
class IssueRequest:
    file: DocumentFile
    holder_name: str
    issued_date: date
    degree: str = ""
    credential_type_id: str | None = None
    expiration_date: date | None = None
    validity_option_id: str | None = None
    recipient_user_id: str | None = None


@dataclass
class IssueReceipt:
    hash: str
    verify_url: str
    qr_payload: str | None = None      # data URL of the QR code, when the server renders one


@dataclass
class ExpirationUpdate:
    """Body shared by approve and update-expiration."""
    issued_date: date
    expiration_date: date | None = None
    validity_option_id: str | None = None


@dataclass
class ReuploadRequest:
    note: str
    holder_name: str
    degree: str = ""
    credential_type_id: str | None = None
    file: DocumentFile | None = None
    use_original_file: bool = False


@dataclass
class RevokeReceipt:
    ok: bool
    status: CertStatus


@dataclass
class TransferReceipt:
    ok: bool
    message: str = ""


@dataclass
class VerificationRecord:
    """What the registry knows about a hash."""
    status: str                         # "VALID" | "REVOKED" | "NOT_FOUND"
    metadata_uri: str | None = None
    source: str = "db"                  # "chain" | "db"
    expiration_date: date | None = None


@dataclass
class CertificateFilters:
    page: int = 1
    limit: int = 10
    q: str | None = None
    status: CertStatus | None = None    # None => all


@dataclass
class CertificatePage:
    items: list[Certificate] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)


class ICertificateRegistry(ABC):
    """
    Port: Certificate Registry

    Every method either succeeds or raises a ``CertxError`` subclass whose
    message is the server's own, verbatim.
    """

    @abstractmethod
    def upload_certificate(self, session: Session, request: UploadRequest) -> UploadReceipt:
        ...

    @abstractmethod
    def issue_certificate(self, session: Session, request: IssueRequest) -> IssueReceipt:
        ...

    @abstractmethod
    def approve_certificate(self, session: Session, cert_id: str, update: ExpirationUpdate) -> None:
        ...

    @abstractmethod
    def reject_certificate(self, session: Session, cert_id: str, reason: str, allow_reupload: bool) -> None:
        ...

    @abstractmethod
    def reupload_certificate(self, session: Session, cert_id: str, request: ReuploadRequest) -> None:
        ...

    @abstractmethod
    def revoke_certificate(self, session: Session, doc_hash: str) -> RevokeReceipt:
        """Revocation is addressed by document hash, not by record id."""
        ...

    @abstractmethod
    def update_expiration(self, session: Session, cert_id: str, update: ExpirationUpdate) -> None:
        ...

    @abstractmethod
    def transfer_certificate(
        self, session: Session, cert_id: str, new_user_id: str, note: str, display_name: str | None = None
    ) -> TransferReceipt:
        ...

    @abstractmethod
    def verify_by_hash(self, doc_hash: str) -> VerificationRecord:
        """Public lookup; no session needed."""
        ...

    @abstractmethod
    def list_certificates(self, session: Session, filters: CertificateFilters) -> CertificatePage:
        ...

"""
Entity: Certificate

One issued credential instance and its lifecycle status.
Pure model: no dependency on transport or storage.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class CertStatus(str, Enum):
    """Status as persisted by the registry."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    VALID = "VALID"
    REVOKED = "REVOKED"

    @property
    def is_issued(self) -> bool:
        # APPROVED is reported by some server builds for an approved, anchored cert
        return self in (CertStatus.VALID, CertStatus.APPROVED)


class EffectiveStatus(str, Enum):
    """Status shown to a verifier. EXPIRED is derived, never stored."""
    VALID = "VALID"
    REVOKED = "REVOKED"
    EXPIRED = "EXPIRED"
    NOT_FOUND = "NOT_FOUND"


@dataclass
class Certificate:
    """Domain entity: Certificate."""
    id: str
    doc_hash: str = ""
    holder_name: str = ""
    degree: str = ""
    credential_type_id: str | None = None

    # Temporal
    issued_date: date | None = None          # issued by the authority, not the upload time
    certx_issued_date: datetime | None = None  # intake time on the registry
    expiration_date: date | None = None      # None => permanent / not yet dated
    revoked_at: datetime | None = None

    # Workflow
    status: CertStatus = CertStatus.PENDING
    rejection_reason: str | None = None
    allow_reupload: bool = False
    reupload_note: str | None = None
    reuploaded_from: str | None = None       # lookup only, never ownership
    validity_option_id: str | None = None

    # People
    issuer_id: str | None = None             # uploader
    holder_user_id: str | None = None
    approved_by: str | None = None

    metadata_uri: str | None = None
    created_at: datetime | None = None


def invariant_violations(cert: Certificate) -> list[str]:
    """Return the record-level invariants this certificate breaks (empty when consistent)."""
    problems = []
    reason = (cert.rejection_reason or "").strip()
    if cert.status == CertStatus.REJECTED and not reason:
        problems.append("REJECTED certificate without rejection reason")
    if cert.status.is_issued and reason:
        problems.append("VALID certificate carries a rejection reason")
    if cert.status == CertStatus.REVOKED and cert.revoked_at is None:
        problems.append("REVOKED certificate without revokedAt")
    if cert.validity_option_id and cert.expiration_date is None:
        problems.append("validity option recorded without expiration date")
    return problems

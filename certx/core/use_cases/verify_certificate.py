"""
Use Case: Verify Certificate

Public lookup by document hash. The registry answers VALID / REVOKED /
NOT_FOUND, or EXPIRED once it has recomputed it; expiration is applied on top so a verifier never sees VALID for
a certificate past its last day.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from certx.core.entities.certificate import CertStatus, EffectiveStatus
from certx.core.errors import ApiError, ValidationError
from certx.core.interfaces.registry_api import ICertificateRegistry
from certx.core.policy.status_resolver import resolve_status
from certx.core.use_cases.base import Clock

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    doc_hash: str
    status: EffectiveStatus
    registry_status: str
    source: str
    metadata_uri: str | None = None
    expiration_date: date | None = None

    @property
    def is_valid(self) -> bool:
        return self.status == EffectiveStatus.VALID


class VerifyCertificateUseCase:

    def __init__(self, registry: ICertificateRegistry, clock: Clock = datetime.now):
        self.registry = registry
        self.clock = clock

    def execute(self, doc_hash: str, expiration_date: date | None = None) -> VerificationResult:
        """
        Args:
            doc_hash: document hash as printed on the certificate.
            expiration_date: expiration read from the metadata document, used
                when the registry itself does not return one.
        """
        doc_hash = (doc_hash or "").strip()
        if not doc_hash:
            raise ValidationError("A certificate hash is required", field="hash")

        record = self.registry.verify_by_hash(doc_hash)
        expires_on = record.expiration_date or expiration_date
        status = self._effective_status(record.status, expires_on)

        logger.info(f"Verified {doc_hash[:10]}... -> {status.value} (source={record.source})")
        return VerificationResult(
            doc_hash=doc_hash,
            status=status,
            registry_status=record.status,
            source=record.source,
            metadata_uri=record.metadata_uri,
            expiration_date=expires_on,
        )

    def _effective_status(self, registry_status: str, expires_on: date | None) -> EffectiveStatus:
        if registry_status == EffectiveStatus.NOT_FOUND.value:
            return EffectiveStatus.NOT_FOUND
        if registry_status == EffectiveStatus.EXPIRED.value:
            return EffectiveStatus.EXPIRED
        try:
            status = CertStatus(registry_status)
        except ValueError:
            status = None
        if status is None or not (status.is_issued or status == CertStatus.REVOKED):
            logger.warning(f"Registry answered verification with unexpected status {registry_status!r}")
            raise ApiError(f"Unexpected status {registry_status}")
        return resolve_status(status, expires_on, self.clock())

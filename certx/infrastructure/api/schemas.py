"""
Pydantic schemas: wire models for the registry API.

The registry speaks camelCase JSON; ids arrive as ``id`` or Mongo-style
``_id``. Responses are parsed here and turned into domain entities with
``to_entity()``; nothing outside this module sees the wire shape.
"""

import logging
from datetime import date, datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from certx.core.dates import parse_date, parse_datetime
from certx.core.entities.certificate import Certificate, CertStatus
from certx.core.entities.credential_type import CredentialType, ValidityOption
from certx.core.entities.user import Role, User
from certx.core.interfaces.audit_log import AuditLogPage, AuditRecord, AuditStats
from certx.core.interfaces.registry_api import (
    CertificatePage,
    IssueReceipt,
    RevokeReceipt,
    TransferReceipt,
    UploadReceipt,
    VerificationRecord,
)
from certx.core.interfaces.user_directory import UserPage
from certx.core.pagination import Pagination

logger = logging.getLogger(__name__)

_ID = AliasChoices("id", "_id")


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _lenient_date(value: str | None, what: str) -> date | None:
    try:
        return parse_date(value)
    except ValueError:
        logger.warning(f"Ignoring malformed {what} {value!r}")
        return None


def _lenient_datetime(value: str | None, what: str) -> datetime | None:
    try:
        return parse_datetime(value)
    except ValueError:
        logger.warning(f"Ignoring malformed {what} {value!r}")
        return None


# ── Shared ─────────────────────────────────────────────────


class PaginationSchema(WireModel):
    page: int = 1
    limit: int = 10
    total: int = 0
    total_pages: int = 1

    def to_entity(self) -> Pagination:
        return Pagination(page=self.page, limit=self.limit, total=self.total, total_pages=max(self.total_pages, 1))


# ── Certificates ───────────────────────────────────────────


class CertificateSchema(WireModel):
    id: str = Field(validation_alias=_ID)
    doc_hash: str = ""
    holder_name: str = ""
    degree: str | None = None
    credential_type_id: str | None = None
    issued_date: str | None = None
    certx_issued_date: str | None = None
    expiration_date: str | None = None
    revoked_at: str | None = None
    status: CertStatus = CertStatus.PENDING
    rejection_reason: str | None = None
    allow_reupload: bool = False
    reupload_note: str | None = None
    reuploaded_from: str | None = None
    validity_option_id: str | None = None
    issuer_id: str | None = None
    holder_user_id: str | None = Field(default=None, validation_alias=AliasChoices("holderUserId", "userId"))
    approved_by: str | None = None
    metadata_uri: str | None = Field(default=None, validation_alias=AliasChoices("metadataUri", "metadataURI"))
    created_at: str | None = None

    def to_entity(self) -> Certificate:
        return Certificate(
            id=self.id,
            doc_hash=self.doc_hash,
            holder_name=self.holder_name,
            degree=self.degree or "",
            credential_type_id=self.credential_type_id,
            issued_date=_lenient_date(self.issued_date, "issuedDate"),
            certx_issued_date=_lenient_datetime(self.certx_issued_date, "certxIssuedDate"),
            expiration_date=_lenient_date(self.expiration_date, "expirationDate"),
            revoked_at=_lenient_datetime(self.revoked_at, "revokedAt"),
            status=self.status,
            rejection_reason=self.rejection_reason,
            allow_reupload=self.allow_reupload,
            reupload_note=self.reupload_note,
            reuploaded_from=self.reuploaded_from,
            validity_option_id=self.validity_option_id,
            issuer_id=self.issuer_id,
            holder_user_id=self.holder_user_id,
            approved_by=self.approved_by,
            metadata_uri=self.metadata_uri,
            created_at=_lenient_datetime(self.created_at, "createdAt"),
        )


class CertificatePageSchema(WireModel):
    items: list[CertificateSchema] = []
    pagination: PaginationSchema = PaginationSchema()

    def to_entity(self) -> CertificatePage:
        return CertificatePage(
            items=[c.to_entity() for c in self.items],
            pagination=self.pagination.to_entity(),
        )


class UploadReceiptSchema(WireModel):
    id: str = Field(validation_alias=_ID)
    doc_hash: str = ""
    status: CertStatus = CertStatus.PENDING

    def to_entity(self) -> UploadReceipt:
        return UploadReceipt(id=self.id, doc_hash=self.doc_hash, status=self.status)


class IssueReceiptSchema(WireModel):
    hash: str
    verify_url: str = ""
    qrcode_data_url: str | None = None

    def to_entity(self) -> IssueReceipt:
        return IssueReceipt(hash=self.hash, verify_url=self.verify_url, qr_payload=self.qrcode_data_url)


class RevokeReceiptSchema(WireModel):
    ok: bool = True
    status: CertStatus = CertStatus.REVOKED

    def to_entity(self) -> RevokeReceipt:
        return RevokeReceipt(ok=self.ok, status=self.status)


class TransferReceiptSchema(WireModel):
    ok: bool = True
    message: str = ""

    def to_entity(self) -> TransferReceipt:
        return TransferReceipt(ok=self.ok, message=self.message)


class VerificationSchema(WireModel):
    status: str
    metadata_uri: str | None = Field(default=None, validation_alias=AliasChoices("metadataURI", "metadataUri"))
    source: str = "db"
    expiration_date: str | None = None
    metadata: dict[str, Any] | None = None

    def to_entity(self) -> VerificationRecord:
        raw = self.expiration_date or (self.metadata or {}).get("expirationDate")
        return VerificationRecord(
            status=self.status,
            metadata_uri=self.metadata_uri,
            source=self.source,
            expiration_date=_lenient_date(raw, "expirationDate"),
        )


class ExpirationUpdateBody(WireModel):
    issued_date: date
    expiration_date: date | None = None
    validity_option_id: str | None = None


# ── Catalog ────────────────────────────────────────────────


class CredentialTypeSchema(WireModel):
    id: str = Field(validation_alias=_ID)
    name: str
    is_permanent: bool = False

    def to_entity(self) -> CredentialType:
        return CredentialType(id=self.id, name=self.name, is_permanent=self.is_permanent)


class CredentialTypeListSchema(WireModel):
    items: list[CredentialTypeSchema] = []
    total: int = 0


class ValidityOptionSchema(WireModel):
    id: str = Field(validation_alias=_ID)
    credential_type_id: str
    period_months: int | None = None
    period_days: int | None = None
    note: str | None = None

    def to_entity(self) -> ValidityOption:
        return ValidityOption(
            id=self.id,
            credential_type_id=self.credential_type_id,
            period_months=self.period_months,
            period_days=self.period_days,
            note=self.note,
        )


class ValidityOptionListSchema(WireModel):
    items: list[ValidityOptionSchema] = []
    total: int = 0


class ValidityOptionBody(WireModel):
    id: str | None = None
    credential_type_id: str
    period_months: int | None = None
    period_days: int | None = None
    note: str | None = None


# ── Users ──────────────────────────────────────────────────


class UserSchema(WireModel):
    id: str = Field(validation_alias=_ID)
    email: str = ""
    name: str = ""
    address: str | None = None
    role: Role = Role.USER
    enabled: bool = True

    def to_entity(self) -> User:
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            address=self.address or None,
            role=self.role,
            enabled=self.enabled,
        )


class UserPageSchema(WireModel):
    items: list[UserSchema] = []
    pagination: PaginationSchema = PaginationSchema()

    def to_entity(self) -> UserPage:
        return UserPage(items=[u.to_entity() for u in self.items], pagination=self.pagination.to_entity())


class UserBody(WireModel):
    email: str | None = None
    name: str | None = None
    password: str | None = None
    address: str | None = None
    role: Role | None = None
    enabled: bool | None = None


# ── Audit ──────────────────────────────────────────────────


class AuditLogSchema(WireModel):
    id: str = Field(validation_alias=_ID)
    action: str
    status: str
    user_id: str | None = None
    user_email: str | None = None
    user_role: str | None = None
    resource_type: str | None = None
    resource_id: str | None = None
    details: Any = None
    error_message: str | None = None
    created_at: str | None = None

    def to_entity(self) -> AuditRecord:
        return AuditRecord(
            id=self.id,
            action=self.action,
            status=self.status,
            user_id=self.user_id,
            user_email=self.user_email,
            user_role=self.user_role,
            resource_type=self.resource_type,
            resource_id=self.resource_id,
            details=self.details,
            error_message=self.error_message,
            created_at=_lenient_datetime(self.created_at, "createdAt"),
        )


class AuditLogPageSchema(WireModel):
    logs: list[AuditLogSchema] = []
    pagination: PaginationSchema = PaginationSchema()

    def to_entity(self) -> AuditLogPage:
        return AuditLogPage(logs=[entry.to_entity() for entry in self.logs], pagination=self.pagination.to_entity())


class CountSchema(WireModel):
    key: str = Field(validation_alias=AliasChoices("_id", "id"))
    count: int = 0


class PeriodSchema(WireModel):
    start_date: str | None = None
    end_date: str | None = None


class AuditStatsSchema(WireModel):
    total_logs: int = 0
    action_stats: list[CountSchema] = []
    status_stats: list[CountSchema] = []
    role_stats: list[CountSchema] = []
    period: PeriodSchema = PeriodSchema()

    def to_entity(self) -> AuditStats:
        return AuditStats(
            total_logs=self.total_logs,
            action_counts={c.key: c.count for c in self.action_stats},
            status_counts={c.key: c.count for c in self.status_stats},
            role_counts={c.key: c.count for c in self.role_stats},
            period_start=_lenient_datetime(self.period.start_date, "period.startDate"),
            period_end=_lenient_datetime(self.period.end_date, "period.endDate"),
        )

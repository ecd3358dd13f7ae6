"""In-memory stand-ins for the registry ports."""

import hashlib
from dataclasses import replace
from datetime import date, datetime

from certx.core.entities.certificate import Certificate, CertStatus
from certx.core.entities.credential_type import CredentialType, ValidityOption
from certx.core.entities.user import Role, Session, User
from certx.core.errors import ConflictError, NotFoundError
from certx.core.interfaces.audit_log import AuditEvent, IAuditLog
from certx.core.interfaces.catalog_api import ICatalogApi, ValidityOptionDraft
from certx.core.interfaces.registry_api import (
    CertificateFilters,
    CertificatePage,
    ExpirationUpdate,
    ICertificateRegistry,
    IssueReceipt,
    IssueRequest,
    ReuploadRequest,
    RevokeReceipt,
    TransferReceipt,
    UploadReceipt,
    UploadRequest,
    VerificationRecord,
)
from certx.core.interfaces.user_directory import IUserDirectory, UserDraft, UserPage
from certx.core.pagination import Pagination


def make_session(role: Role = Role.ADMIN, user_id: str | None = None, **user_fields) -> Session:
    user = User(id=user_id or f"{role.value.lower()}-1", email=f"{role.value.lower()}@certx.test", role=role, **user_fields)
    return Session(user=user, token="test-token")


class RecordingAuditLog(IAuditLog):
    def __init__(self):
        self.events: list[AuditEvent] = []

    def record(self, event: AuditEvent) -> None:
        self.events.append(event)

    @property
    def last(self) -> AuditEvent:
        return self.events[-1]


class FakeRegistry(ICertificateRegistry):
    """Keeps certificates in a dict and mimics the server's transitions."""

    def __init__(self, now: datetime | None = None):
        self.certs: dict[str, Certificate] = {}
        self.calls: list[tuple] = []
        self.fail_with: Exception | None = None
        self.now = now or datetime(2024, 1, 1, 9, 0)
        self._next = 0

    def add(self, cert: Certificate) -> Certificate:
        self.certs[cert.id] = cert
        return cert

    def _new_id(self) -> str:
        self._next += 1
        return f"cert-{self._next}"

    def _call(self, name: str, *args):
        self.calls.append((name, *args))
        if self.fail_with is not None:
            raise self.fail_with

    def _get(self, cert_id: str) -> Certificate:
        if cert_id not in self.certs:
            raise NotFoundError("Certificate not found", status_code=404)
        return self.certs[cert_id]

    def upload_certificate(self, session: Session, request: UploadRequest) -> UploadReceipt:
        self._call("upload", request)
        cert = self.add(Certificate(
            id=self._new_id(),
            doc_hash="0x" + hashlib.sha256(request.file.content).hexdigest(),
            holder_name=request.holder_name,
            degree=request.degree,
            credential_type_id=request.credential_type_id,
            issued_date=request.issued_date,
            certx_issued_date=self.now,
            status=CertStatus.PENDING,
            issuer_id=session.user.id,
        ))
        return UploadReceipt(id=cert.id, doc_hash=cert.doc_hash, status=cert.status)

    def issue_certificate(self, session: Session, request: IssueRequest) -> IssueReceipt:
        self._call("issue", request)
        cert = self.add(Certificate(
            id=self._new_id(),
            doc_hash="0x" + hashlib.sha256(request.file.content).hexdigest(),
            holder_name=request.holder_name,
            degree=request.degree,
            credential_type_id=request.credential_type_id,
            issued_date=request.issued_date,
            expiration_date=request.expiration_date,
            validity_option_id=request.validity_option_id,
            status=CertStatus.VALID,
            issuer_id=session.user.id,
            holder_user_id=request.recipient_user_id,
        ))
        return IssueReceipt(hash=cert.doc_hash, verify_url=f"https://verify.test/?hash={cert.doc_hash}")

    def approve_certificate(self, session: Session, cert_id: str, update: ExpirationUpdate) -> None:
        self._call("approve", cert_id, update)
        cert = self._get(cert_id)
        if cert.status != CertStatus.PENDING:
            raise ConflictError("Certificate is no longer pending", status_code=409)
        self.certs[cert_id] = replace(
            cert,
            status=CertStatus.VALID,
            issued_date=update.issued_date,
            expiration_date=update.expiration_date,
            validity_option_id=update.validity_option_id,
            approved_by=session.user.id,
        )

    def reject_certificate(self, session: Session, cert_id: str, reason: str, allow_reupload: bool) -> None:
        self._call("reject", cert_id, reason, allow_reupload)
        cert = self._get(cert_id)
        self.certs[cert_id] = replace(
            cert, status=CertStatus.REJECTED, rejection_reason=reason, allow_reupload=allow_reupload
        )

    def reupload_certificate(self, session: Session, cert_id: str, request: ReuploadRequest) -> None:
        self._call("reupload", cert_id, request)
        source = self._get(cert_id)
        self.add(Certificate(
            id=self._new_id(),
            doc_hash=source.doc_hash,
            holder_name=request.holder_name,
            degree=request.degree,
            credential_type_id=request.credential_type_id,
            issued_date=self.now.date(),
            status=CertStatus.PENDING,
            reupload_note=request.note,
            reuploaded_from=cert_id,
            issuer_id=session.user.id,
        ))

    def revoke_certificate(self, session: Session, doc_hash: str) -> RevokeReceipt:
        self._call("revoke", doc_hash)
        cert = next((c for c in self.certs.values() if c.doc_hash == doc_hash), None)
        if cert is None:
            raise NotFoundError("Certificate not found", status_code=404)
        self.certs[cert.id] = replace(cert, status=CertStatus.REVOKED, revoked_at=self.now)
        return RevokeReceipt(ok=True, status=CertStatus.REVOKED)

    def update_expiration(self, session: Session, cert_id: str, update: ExpirationUpdate) -> None:
        self._call("update_expiration", cert_id, update)
        cert = self._get(cert_id)
        self.certs[cert_id] = replace(
            cert,
            issued_date=update.issued_date,
            expiration_date=update.expiration_date,
            validity_option_id=update.validity_option_id,
        )

    def transfer_certificate(
        self, session: Session, cert_id: str, new_user_id: str, note: str, display_name: str | None = None
    ) -> TransferReceipt:
        self._call("transfer", cert_id, new_user_id, note, display_name)
        cert = self._get(cert_id)
        self.certs[cert_id] = replace(
            cert, holder_user_id=new_user_id, holder_name=display_name or cert.holder_name
        )
        return TransferReceipt(ok=True, message="Transferred")

    def verify_by_hash(self, doc_hash: str) -> VerificationRecord:
        self._call("verify", doc_hash)
        for cert in self.certs.values():
            if cert.doc_hash == doc_hash and cert.status in (CertStatus.VALID, CertStatus.REVOKED):
                return VerificationRecord(
                    status=cert.status.value, source="db", expiration_date=cert.expiration_date
                )
        return VerificationRecord(status="NOT_FOUND")

    def list_certificates(self, session: Session, filters: CertificateFilters) -> CertificatePage:
        self._call("list", filters)
        items = list(self.certs.values())
        if filters.status is not None:
            items = [c for c in items if c.status == filters.status]
        if filters.q:
            items = [c for c in items if filters.q.lower() in c.holder_name.lower()]
        total = len(items)
        total_pages = max(1, -(-total // filters.limit))
        page = min(max(filters.page, 1), total_pages)
        start = (page - 1) * filters.limit
        return CertificatePage(
            items=items[start:start + filters.limit],
            pagination=Pagination(page=page, limit=filters.limit, total=total, total_pages=total_pages),
        )


class FakeCatalog(ICatalogApi):

    def __init__(self):
        self.types: dict[str, CredentialType] = {}
        self.options: dict[str, ValidityOption] = {}
        self.calls: list[tuple] = []

    def add_type(self, type_id: str, name: str = "", is_permanent: bool = False) -> CredentialType:
        self.types[type_id] = CredentialType(id=type_id, name=name or type_id, is_permanent=is_permanent)
        return self.types[type_id]

    def add_option(self, option_id: str, type_id: str, months: int | None = None, days: int | None = None):
        self.options[option_id] = ValidityOption(
            id=option_id, credential_type_id=type_id, period_months=months, period_days=days
        )
        return self.options[option_id]

    def list_credential_types(self, session, q=None, page=None, limit=None):
        return list(self.types.values())

    def get_credential_type(self, session, type_id):
        if type_id not in self.types:
            raise NotFoundError("Credential type not found", status_code=404)
        return self.types[type_id]

    def create_credential_type(self, session, credential_type):
        self.calls.append(("create_type", credential_type))
        if credential_type.id in self.types:
            raise ConflictError("Credential type already exists", status_code=409)
        self.types[credential_type.id] = credential_type
        return credential_type

    def update_credential_type(self, session, type_id, name=None, is_permanent=None):
        self.calls.append(("update_type", type_id, name, is_permanent))
        current = self.get_credential_type(session, type_id)
        updated = replace(
            current,
            name=current.name if name is None else name,
            is_permanent=current.is_permanent if is_permanent is None else is_permanent,
        )
        self.types[type_id] = updated
        return updated

    def delete_credential_type(self, session, type_id):
        self.calls.append(("delete_type", type_id))
        self.get_credential_type(session, type_id)
        del self.types[type_id]

    def list_validity_options(self, session, credential_type_id=None):
        return [o for o in self.options.values() if credential_type_id in (None, o.credential_type_id)]

    def get_validity_option(self, session, option_id):
        if option_id not in self.options:
            raise NotFoundError("Validity option not found", status_code=404)
        return self.options[option_id]

    def create_validity_option(self, session, option_id, draft: ValidityOptionDraft):
        self.calls.append(("create_option", option_id, draft))
        option = ValidityOption(
            id=option_id,
            credential_type_id=draft.credential_type_id,
            period_months=draft.period_months,
            period_days=draft.period_days,
            note=draft.note,
        )
        self.options[option_id] = option
        return option

    def update_validity_option(self, session, option_id, draft: ValidityOptionDraft):
        self.calls.append(("update_option", option_id, draft))
        self.get_validity_option(session, option_id)
        return self.create_validity_option(session, option_id, draft)

    def delete_validity_option(self, session, option_id):
        self.calls.append(("delete_option", option_id))
        self.options.pop(option_id, None)


class FakeUserDirectory(IUserDirectory):

    def __init__(self, *users: User):
        self.users = {u.id: u for u in users}
        self.calls: list[tuple] = []

    def get_user(self, session, user_id):
        if user_id not in self.users:
            raise NotFoundError("User not found", status_code=404)
        return self.users[user_id]

    def list_users(self, session, page=1, limit=10, q=None, role=None):
        items = [u for u in self.users.values() if role in (None, u.role)]
        return UserPage(items=items, pagination=Pagination(page=1, limit=limit, total=len(items)))

    def create_user(self, session, draft: UserDraft):
        self.calls.append(("create", draft))
        user = User(
            id=f"user-{len(self.users) + 1}",
            email=draft.email,
            name=draft.name,
            address=draft.address,
            role=draft.role,
            enabled=draft.enabled,
        )
        self.users[user.id] = user
        return user

    def update_user(self, session, user_id, draft: UserDraft):
        self.calls.append(("update", user_id, draft))
        user = self.get_user(session, user_id)
        changes = {k: v for k, v in vars(draft).items() if v is not None and k != "password"}
        if changes.get("address") == "":
            changes["address"] = None
        self.users[user_id] = replace(user, **changes)
        return self.users[user_id]

    def delete_user(self, session, user_id):
        self.calls.append(("delete", user_id))
        self.users.pop(user_id, None)


def pending_cert(cert_id: str = "cert-p", **fields) -> Certificate:
    defaults = dict(
        id=cert_id,
        doc_hash="0xabc",
        holder_name="Nguyen Van A",
        degree="Cử nhân CNTT",
        issued_date=date(2024, 1, 1),
        status=CertStatus.PENDING,
        issuer_id="user-1",
    )
    defaults.update(fields)
    return Certificate(**defaults)


def valid_cert(cert_id: str = "cert-v", **fields) -> Certificate:
    defaults = dict(
        id=cert_id,
        doc_hash="0xdef",
        holder_name="Nguyen Van A",
        degree="Cử nhân CNTT",
        issued_date=date(2024, 1, 1),
        expiration_date=date(2025, 1, 1),
        status=CertStatus.VALID,
        issuer_id="user-1",
        holder_user_id="user-1",
    )
    defaults.update(fields)
    return Certificate(**defaults)


def rejected_cert(cert_id: str = "cert-r", allow_reupload: bool = True, **fields) -> Certificate:
    defaults = dict(
        id=cert_id,
        doc_hash="0x123",
        holder_name="Nguyen Van A",
        degree="Cử nhân CNTT",
        status=CertStatus.REJECTED,
        rejection_reason="Blurry scan",
        allow_reupload=allow_reupload,
        issuer_id="user-1",
    )
    defaults.update(fields)
    return Certificate(**defaults)

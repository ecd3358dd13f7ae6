"""
Adapter: CertX registry over HTTP

Implements the certificate, catalog, user and audit ports on top of one
``httpx.Client``. The bearer token comes from the ``Session`` passed into
each call; the client itself holds no credentials.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError as SchemaError

from certx.config.settings import Settings
from certx.core.entities.credential_type import CredentialType, ValidityOption
from certx.core.entities.user import Role, Session, User
from certx.core.errors import (
    ApiError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    TransientNetworkError,
)
from certx.core.interfaces.audit_log import AuditLogFilters, AuditLogPage, AuditStats, IAuditTrail
from certx.core.interfaces.catalog_api import ICatalogApi, ValidityOptionDraft
from certx.core.interfaces.registry_api import (
    CertificateFilters,
    CertificatePage,
    DocumentFile,
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
from certx.infrastructure.api.schemas import (
    AuditLogPageSchema,
    AuditStatsSchema,
    CertificatePageSchema,
    CredentialTypeListSchema,
    CredentialTypeSchema,
    ExpirationUpdateBody,
    IssueReceiptSchema,
    RevokeReceiptSchema,
    TransferReceiptSchema,
    UploadReceiptSchema,
    UserBody,
    UserPageSchema,
    UserSchema,
    ValidityOptionBody,
    ValidityOptionListSchema,
    ValidityOptionSchema,
    VerificationSchema,
)

logger = logging.getLogger(__name__)

_TRANSIENT_STATUSES = {502, 503, 504}


def _error_message(response: httpx.Response) -> str:
    """The server's own message when it sent one, verbatim."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    text = response.text.strip()
    return text or f"{response.status_code} {response.reason_phrase}"


def _raise_for_status(response: httpx.Response) -> None:
    status = response.status_code
    if status < 400:
        return
    message = _error_message(response)
    logger.debug(f"{response.request.method} {response.request.url.path} -> {status}: {message}")
    if status in (401, 403):
        raise AuthorizationError(message, status_code=status)
    if status == 404:
        raise NotFoundError(message, status_code=status)
    if status == 409:
        raise ConflictError(message, status_code=status)
    if status in _TRANSIENT_STATUSES:
        raise TransientNetworkError(status_code=status)
    raise ApiError(message, status_code=status)


def _form_fields(**fields: Any) -> dict[str, str]:
    """Multipart text fields; None is left out, booleans become "true"/"false"."""
    form = {}
    for key, value in fields.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        elif hasattr(value, "isoformat"):
            value = value.isoformat()
        form[key] = str(value)
    return form


def _file_part(document: DocumentFile) -> dict:
    return {"file": (document.filename, document.content, document.content_type)}


def _dump(body: BaseModel) -> dict:
    return body.model_dump(mode="json", by_alias=True, exclude_none=True)


class CertxApiClient(ICertificateRegistry, ICatalogApi, IUserDirectory, IAuditTrail):
    """
    Synchronous HTTP client for the CertX registry API.

    Every non-2xx answer becomes a ``CertxError`` subclass carrying the
    server's message. Timeouts and connection failures become
    ``TransientNetworkError``; nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CertxApiClient":
        return cls(settings.api_base_url, timeout=settings.api_timeout_seconds)

    def __enter__(self) -> "CertxApiClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ── Transport ──────────────────────────────────────────

    def _request(self, method: str, path: str, session: Session | None = None, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if session is not None and session.token:
            headers["Authorization"] = f"Bearer {session.token}"
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {e}")
            raise TransientNetworkError() from e
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransientNetworkError() from e
        _raise_for_status(response)
        return response

    def _json(self, method: str, path: str, session: Session | None = None, **kwargs) -> Any:
        response = self._request(method, path, session, **kwargs)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Unreadable response from {path}", status_code=response.status_code) from e

    def _parse(self, schema: type[BaseModel], payload: Any, path: str):
        try:
            return schema.model_validate(payload)
        except SchemaError as e:
            logger.error(f"Unexpected response shape from {path}: {e}")
            raise ApiError(f"Unexpected response from {path}") from e

    # ── Certificates ───────────────────────────────────────

    def upload_certificate(self, session: Session, request: UploadRequest) -> UploadReceipt:
        path = "/certs/upload"
        data = _form_fields(
            holderName=request.holder_name,
            degree=request.degree or None,
            credentialTypeId=request.credential_type_id,
            issuedDate=request.issued_date,
        )
        payload = self._json("POST", path, session, data=data, files=_file_part(request.file))
        return self._parse(UploadReceiptSchema, payload, path).to_entity()

    def issue_certificate(self, session: Session, request: IssueRequest) -> IssueReceipt:
        path = "/certs/issue"
        data = _form_fields(
            holderName=request.holder_name,
            degree=request.degree or None,
            credentialTypeId=request.credential_type_id,
            issuedDate=request.issued_date,
            expirationDate=request.expiration_date,
            validityOptionId=request.validity_option_id,
            userId=request.recipient_user_id,
        )
        payload = self._json("POST", path, session, data=data, files=_file_part(request.file))
        return self._parse(IssueReceiptSchema, payload, path).to_entity()

    def approve_certificate(self, session: Session, cert_id: str, update: ExpirationUpdate) -> None:
        body = ExpirationUpdateBody(
            issued_date=update.issued_date,
            expiration_date=update.expiration_date,
            validity_option_id=update.validity_option_id,
        )
        self._request("POST", f"/certs/{cert_id}/approve", session, json=_dump(body))

    def reject_certificate(self, session: Session, cert_id: str, reason: str, allow_reupload: bool) -> None:
        body = {"rejectionReason": reason, "allowReupload": allow_reupload}
        self._request("POST", f"/certs/{cert_id}/reject", session, json=body)

    def reupload_certificate(self, session: Session, cert_id: str, request: ReuploadRequest) -> None:
        data = _form_fields(
            note=request.note,
            holderName=request.holder_name,
            degree=request.degree or None,
            credentialTypeId=request.credential_type_id,
            useOriginalFile=request.use_original_file,
        )
        files = _file_part(request.file) if request.file is not None else None
        self._request("POST", f"/certs/{cert_id}/reupload", session, data=data, files=files)

    def revoke_certificate(self, session: Session, doc_hash: str) -> RevokeReceipt:
        path = "/certs/revoke"
        payload = self._json("POST", path, session, json={"hash": doc_hash})
        return self._parse(RevokeReceiptSchema, payload, path).to_entity()

    def update_expiration(self, session: Session, cert_id: str, update: ExpirationUpdate) -> None:
        body = ExpirationUpdateBody(
            issued_date=update.issued_date,
            expiration_date=update.expiration_date,
            validity_option_id=update.validity_option_id,
        )
        payload = _dump(body)
        # an explicit null clears a previous expiration
        payload.setdefault("expirationDate", None)
        payload.setdefault("validityOptionId", None)
        self._request("PUT", f"/certs/{cert_id}/expiration", session, json=payload)

    def transfer_certificate(
        self, session: Session, cert_id: str, new_user_id: str, note: str, display_name: str | None = None
    ) -> TransferReceipt:
        path = f"/certs/{cert_id}/transfer"
        body = {"newUserId": new_user_id, "note": note}
        if display_name:
            body["holderName"] = display_name
        payload = self._json("POST", path, session, json=body)
        return self._parse(TransferReceiptSchema, payload, path).to_entity()

    def verify_by_hash(self, doc_hash: str) -> VerificationRecord:
        path = "/verify"
        try:
            payload = self._json("GET", path, params={"hash": doc_hash})
        except NotFoundError:
            return VerificationRecord(status="NOT_FOUND")
        return self._parse(VerificationSchema, payload, path).to_entity()

    def list_certificates(self, session: Session, filters: CertificateFilters) -> CertificatePage:
        path = "/certs"
        params = {"page": filters.page, "limit": filters.limit}
        if filters.q:
            params["q"] = filters.q
        if filters.status is not None:
            params["status"] = filters.status.value
        payload = self._json("GET", path, session, params=params)
        return self._parse(CertificatePageSchema, payload, path).to_entity()

    # ── Catalog ────────────────────────────────────────────

    def list_credential_types(
        self, session: Session | None, q: str | None = None, page: int | None = None, limit: int | None = None
    ) -> list[CredentialType]:
        path = "/credential-types"
        params = {k: v for k, v in {"q": q, "page": page, "limit": limit}.items() if v is not None}
        payload = self._json("GET", path, session, params=params)
        return [t.to_entity() for t in self._parse(CredentialTypeListSchema, payload, path).items]

    def get_credential_type(self, session: Session | None, type_id: str) -> CredentialType:
        path = f"/credential-types/{type_id}"
        return self._parse(CredentialTypeSchema, self._json("GET", path, session), path).to_entity()

    def create_credential_type(self, session: Session, credential_type: CredentialType) -> CredentialType:
        path = "/credential-types"
        body = {"id": credential_type.id, "name": credential_type.name, "isPermanent": credential_type.is_permanent}
        return self._parse(CredentialTypeSchema, self._json("POST", path, session, json=body), path).to_entity()

    def update_credential_type(
        self, session: Session, type_id: str, name: str | None = None, is_permanent: bool | None = None
    ) -> CredentialType:
        path = f"/credential-types/{type_id}"
        body = {k: v for k, v in {"name": name, "isPermanent": is_permanent}.items() if v is not None}
        return self._parse(CredentialTypeSchema, self._json("PUT", path, session, json=body), path).to_entity()

    def delete_credential_type(self, session: Session, type_id: str) -> None:
        self._request("DELETE", f"/credential-types/{type_id}", session)

    def list_validity_options(
        self, session: Session | None, credential_type_id: str | None = None
    ) -> list[ValidityOption]:
        path = "/credential-validity-options"
        params = {"credentialTypeId": credential_type_id} if credential_type_id else {}
        payload = self._json("GET", path, session, params=params)
        return [o.to_entity() for o in self._parse(ValidityOptionListSchema, payload, path).items]

    def get_validity_option(self, session: Session | None, option_id: str) -> ValidityOption:
        path = f"/credential-validity-options/{option_id}"
        return self._parse(ValidityOptionSchema, self._json("GET", path, session), path).to_entity()

    def create_validity_option(self, session: Session, option_id: str, draft: ValidityOptionDraft) -> ValidityOption:
        path = "/credential-validity-options"
        body = _validity_body(draft, option_id)
        return self._parse(ValidityOptionSchema, self._json("POST", path, session, json=body), path).to_entity()

    def update_validity_option(self, session: Session, option_id: str, draft: ValidityOptionDraft) -> ValidityOption:
        path = f"/credential-validity-options/{option_id}"
        body = _validity_body(draft)
        return self._parse(ValidityOptionSchema, self._json("PUT", path, session, json=body), path).to_entity()

    def delete_validity_option(self, session: Session, option_id: str) -> None:
        self._request("DELETE", f"/credential-validity-options/{option_id}", session)

    # ── Users ──────────────────────────────────────────────

    def get_user(self, session: Session, user_id: str) -> User:
        path = f"/users/{user_id}"
        return self._parse(UserSchema, self._json("GET", path, session), path).to_entity()

    def list_users(
        self, session: Session, page: int = 1, limit: int = 10, q: str | None = None, role: Role | None = None
    ) -> UserPage:
        path = "/users"
        params: dict[str, Any] = {"page": page, "limit": limit}
        if q:
            params["q"] = q
        if role is not None:
            params["role"] = role.value
        return self._parse(UserPageSchema, self._json("GET", path, session, params=params), path).to_entity()

    def create_user(self, session: Session, draft: UserDraft) -> User:
        path = "/users"
        body = _dump(_user_body(draft))
        return self._parse(UserSchema, self._json("POST", path, session, json=body), path).to_entity()

    def update_user(self, session: Session, user_id: str, draft: UserDraft) -> User:
        path = f"/users/{user_id}"
        body = _dump(_user_body(draft))
        return self._parse(UserSchema, self._json("PUT", path, session, json=body), path).to_entity()

    def delete_user(self, session: Session, user_id: str) -> None:
        self._request("DELETE", f"/users/{user_id}", session)

    # ── Audit trail ────────────────────────────────────────

    def list_audit_logs(self, session: Session, filters: AuditLogFilters) -> AuditLogPage:
        path = "/audit/logs"
        params = _form_fields(
            page=filters.page,
            limit=filters.limit,
            userId=filters.user_id,
            userRole=filters.user_role.value if filters.user_role else None,
            action=filters.action.value if filters.action else None,
            status=filters.status.value if filters.status else None,
            resourceType=filters.resource_type,
            resourceId=filters.resource_id,
            startDate=filters.start_date,
            endDate=filters.end_date,
            search=filters.search or None,
        )
        return self._parse(AuditLogPageSchema, self._json("GET", path, session, params=params), path).to_entity()

    def get_audit_stats(self, session: Session, start_date=None, end_date=None) -> AuditStats:
        path = "/audit/stats"
        params = _form_fields(startDate=start_date, endDate=end_date)
        return self._parse(AuditStatsSchema, self._json("GET", path, session, params=params), path).to_entity()


def _validity_body(draft: ValidityOptionDraft, option_id: str | None = None) -> dict:
    body = ValidityOptionBody(
        id=option_id,
        credential_type_id=draft.credential_type_id,
        period_months=draft.period_months,
        period_days=draft.period_days,
        note=draft.note,
    )
    payload = _dump(body)
    # the unused period is sent as null so an update can switch units
    payload.setdefault("periodMonths", None)
    payload.setdefault("periodDays", None)
    return payload


def _user_body(draft: UserDraft) -> UserBody:
    return UserBody(
        email=draft.email,
        name=draft.name,
        password=draft.password,
        address=draft.address,
        role=draft.role,
        enabled=draft.enabled,
    )

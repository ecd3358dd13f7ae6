"""Tests for the httpx registry adapter using a mock transport."""

import json
from datetime import date

import httpx
import pytest

from certx.core.entities.certificate import CertStatus
from certx.core.entities.user import Role, Session, User
from certx.core.errors import (
    ApiError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    TransientNetworkError,
)
from certx.core.interfaces.audit_log import AuditAction, AuditLogFilters
from certx.core.interfaces.catalog_api import ValidityOptionDraft
from certx.core.interfaces.registry_api import (
    CertificateFilters,
    DocumentFile,
    ExpirationUpdate,
    ReuploadRequest,
    UploadRequest,
)
from certx.core.interfaces.user_directory import UserDraft
from certx.infrastructure.api.http_registry_client import CertxApiClient

SESSION = Session(user=User(id="admin-1", role=Role.ADMIN), token="tok-123")


def client_for(handler) -> CertxApiClient:
    return CertxApiClient("http://registry.test/api", transport=httpx.MockTransport(handler))


class Recorder:
    """Mock transport handler that records requests and replays one response."""

    def __init__(self, status=200, body=None):
        self.status = status
        self.body = {} if body is None else body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)


class TestCertificates:

    def test_list_parses_camel_case_page(self):
        handler = Recorder(body={
            "items": [{
                "_id": "c1",
                "docHash": "0xabc",
                "holderName": "Nguyen Van A",
                "degree": "Cử nhân CNTT",
                "issuedDate": "2024-01-01T00:00:00.000Z",
                "expirationDate": "2025-01-01",
                "status": "VALID",
                "validityOptionId": "12m",
                "metadataUri": "ipfs://meta",
            }],
            "pagination": {"page": 2, "limit": 5, "total": 6, "totalPages": 2},
        })
        with client_for(handler) as client:
            page = client.list_certificates(SESSION, CertificateFilters(page=2, limit=5, q="ngu", status=CertStatus.VALID))

        assert handler.last.url.path == "/api/certs"
        assert handler.last.url.params["status"] == "VALID"
        assert handler.last.url.params["q"] == "ngu"
        assert handler.last.headers["Authorization"] == "Bearer tok-123"
        cert = page.items[0]
        assert cert.id == "c1"
        assert cert.issued_date == date(2024, 1, 1)
        assert cert.expiration_date == date(2025, 1, 1)
        assert cert.metadata_uri == "ipfs://meta"
        assert page.pagination.total_pages == 2

    def test_malformed_date_does_not_break_the_list(self):
        handler = Recorder(body={
            "items": [{"id": "c1", "status": "VALID", "expirationDate": "soon"}],
            "pagination": {"page": 1, "limit": 10, "total": 1, "totalPages": 1},
        })
        page = client_for(handler).list_certificates(SESSION, CertificateFilters())
        assert page.items[0].expiration_date is None

    def test_upload_is_multipart(self):
        handler = Recorder(body={"id": "c9", "docHash": "0x99", "status": "PENDING"})
        receipt = client_for(handler).upload_certificate(SESSION, UploadRequest(
            file=DocumentFile("a.pdf", b"%PDF"), holder_name="Nguyen Van A", degree="CNTT",
            issued_date=date(2024, 1, 1),
        ))
        assert receipt.id == "c9"
        assert receipt.status == CertStatus.PENDING
        assert handler.last.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="holderName"' in handler.last.content
        assert b"2024-01-01" in handler.last.content

    def test_approve_body(self):
        handler = Recorder()
        client_for(handler).approve_certificate(
            SESSION, "c1", ExpirationUpdate(date(2024, 1, 1), date(2025, 1, 1), "12m")
        )
        assert handler.last.url.path == "/api/certs/c1/approve"
        assert handler.last_json() == {
            "issuedDate": "2024-01-01", "expirationDate": "2025-01-01", "validityOptionId": "12m",
        }

    def test_update_expiration_sends_explicit_nulls(self):
        handler = Recorder()
        client_for(handler).update_expiration(SESSION, "c1", ExpirationUpdate(date(2024, 1, 1)))
        assert handler.last.method == "PUT"
        assert handler.last_json() == {"issuedDate": "2024-01-01", "expirationDate": None, "validityOptionId": None}

    def test_reject_body(self):
        handler = Recorder()
        client_for(handler).reject_certificate(SESSION, "c1", "Blurry", True)
        assert handler.last_json() == {"rejectionReason": "Blurry", "allowReupload": True}

    def test_reupload_with_original_file(self):
        handler = Recorder()
        client_for(handler).reupload_certificate(
            SESSION, "c1", ReuploadRequest(note="n", holder_name="A", use_original_file=True)
        )
        assert handler.last.url.path == "/api/certs/c1/reupload"
        assert b"useOriginalFile=true" in handler.last.content

    def test_revoke_is_addressed_by_hash(self):
        handler = Recorder(body={"ok": True, "status": "REVOKED"})
        receipt = client_for(handler).revoke_certificate(SESSION, "0xabc")
        assert handler.last.method == "POST"
        assert handler.last.url.path == "/api/certs/revoke"
        assert handler.last_json() == {"hash": "0xabc"}
        assert receipt.status == CertStatus.REVOKED

    def test_transfer(self):
        handler = Recorder(body={"ok": True, "message": "done"})
        receipt = client_for(handler).transfer_certificate(SESSION, "c1", "user-2", "merge", "Tran B.")
        assert receipt.message == "done"
        assert handler.last_json() == {"newUserId": "user-2", "note": "merge", "holderName": "Tran B."}

    def test_verify_is_anonymous(self):
        handler = Recorder(body={"status": "VALID", "metadataURI": "ipfs://m", "source": "chain"})
        record = client_for(handler).verify_by_hash("0xabc")
        assert "Authorization" not in handler.last.headers
        assert handler.last.url.params["hash"] == "0xabc"
        assert record.metadata_uri == "ipfs://m"
        assert record.source == "chain"

    def test_verify_reads_expiration_from_metadata(self):
        handler = Recorder(body={"status": "VALID", "metadata": {"expirationDate": "2025-01-01"}})
        assert client_for(handler).verify_by_hash("0xabc").expiration_date == date(2025, 1, 1)

    def test_verify_404_is_not_found(self):
        record = client_for(Recorder(404, {"message": "Not found"})).verify_by_hash("0xabc")
        assert record.status == "NOT_FOUND"


class TestErrorMapping:

    @pytest.mark.parametrize("status, error", [
        (400, ApiError),
        (422, ApiError),
        (401, AuthorizationError),
        (403, AuthorizationError),
        (404, NotFoundError),
        (409, ConflictError),
        (500, ApiError),
        (503, TransientNetworkError),
    ])
    def test_status_codes(self, status, error):
        with pytest.raises(error) as exc:
            client_for(Recorder(status, {"message": "server says no"})).revoke_certificate(SESSION, "0xabc")
        assert exc.value.status_code == status

    def test_server_message_is_verbatim(self):
        with pytest.raises(ConflictError) as exc:
            client_for(Recorder(409, {"message": "Chứng chỉ đã được duyệt"})).approve_certificate(
                SESSION, "c1", ExpirationUpdate(date(2024, 1, 1))
            )
        assert exc.value.message == "Chứng chỉ đã được duyệt"
        assert exc.value.requires_refresh

    def test_plain_text_error_body(self):
        def handler(request):
            return httpx.Response(400, text="bad hash")

        with pytest.raises(ApiError, match="bad hash"):
            client_for(handler).verify_by_hash("x")

    def test_connection_failure_is_transient(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransientNetworkError) as exc:
            client_for(handler).list_certificates(SESSION, CertificateFilters())
        assert exc.value.message == TransientNetworkError.DEFAULT_MESSAGE

    def test_timeout_is_transient(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(TransientNetworkError):
            client_for(handler).revoke_certificate(SESSION, "0xabc")

    def test_unexpected_shape_is_api_error(self):
        with pytest.raises(ApiError):
            client_for(Recorder(body={"items": "nope"})).list_certificates(SESSION, CertificateFilters())


class TestCatalogUsersAudit:

    def test_validity_options_filtered_by_type(self):
        handler = Recorder(body={"items": [
            {"id": "12m", "credentialTypeId": "t", "periodMonths": 12, "periodDays": None},
        ], "total": 1})
        options = client_for(handler).list_validity_options(None, "t")
        assert handler.last.url.params["credentialTypeId"] == "t"
        assert "Authorization" not in handler.last.headers
        assert options[0].period_months == 12

    def test_create_validity_option_body(self):
        handler = Recorder(body={"id": "6m", "credentialTypeId": "t", "periodMonths": 6})
        client_for(handler).create_validity_option(
            SESSION, "6m", ValidityOptionDraft(credential_type_id="t", period_months=6)
        )
        assert handler.last_json() == {"id": "6m", "credentialTypeId": "t", "periodMonths": 6, "periodDays": None}

    def test_credential_type_update_omits_id(self):
        handler = Recorder(body={"id": "t", "name": "New", "isPermanent": True})
        credential_type = client_for(handler).update_credential_type(SESSION, "t", name="New", is_permanent=True)
        assert handler.last_json() == {"name": "New", "isPermanent": True}
        assert credential_type.is_permanent

    def test_user_body_skips_unset_fields(self):
        handler = Recorder(body={"id": "u1", "email": "a@x", "role": "USER"})
        client_for(handler).update_user(SESSION, "u1", UserDraft(enabled=False))
        assert handler.last_json() == {"enabled": False}

    def test_audit_logs_query(self):
        handler = Recorder(body={
            "logs": [{"_id": "l1", "action": "CERT_APPROVE", "status": "SUCCESS",
                      "createdAt": "2024-01-01T10:00:00.000Z"}],
            "pagination": {"page": 1, "limit": 20, "total": 1, "totalPages": 1},
        })
        page = client_for(handler).list_audit_logs(
            SESSION, AuditLogFilters(action=AuditAction.CERT_APPROVE, start_date=date(2024, 1, 1))
        )
        assert handler.last.url.params["action"] == "CERT_APPROVE"
        assert handler.last.url.params["startDate"] == "2024-01-01"
        assert page.logs[0].id == "l1"
        assert page.logs[0].created_at.year == 2024

    def test_audit_stats(self):
        handler = Recorder(body={
            "totalLogs": 3,
            "actionStats": [{"_id": "CERT_UPLOAD", "count": 2}, {"_id": "CERT_REVOKE", "count": 1}],
            "statusStats": [{"_id": "SUCCESS", "count": 3}],
            "roleStats": [],
            "period": {"startDate": "2024-01-01T00:00:00Z", "endDate": "2024-01-31T00:00:00Z"},
        })
        stats = client_for(handler).get_audit_stats(SESSION)
        assert stats.action_counts == {"CERT_UPLOAD": 2, "CERT_REVOKE": 1}
        assert stats.period_end.day == 31

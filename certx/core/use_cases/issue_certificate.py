"""
Use Case: Issue Certificate (direct)

An admin issues a certificate that is VALID immediately, bypassing review.
The issued date is explicit, and a non-permanent type must resolve to an
expiration date through the validity policy.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from certx.core.entities.user import Session
from certx.core.interfaces.audit_log import AuditAction, IAuditLog
from certx.core.interfaces.registry_api import DocumentFile, ICertificateRegistry, IssueReceipt, IssueRequest
from certx.core.lifecycle.state_machine import Issue, Transition
from certx.core.policy.validity_policy import ExpirationChoice, ValidityPolicy
from certx.core.use_cases.base import Clock, Refresh, TransitionUseCase


@dataclass
class IssueInput:
    file: DocumentFile | None
    holder_name: str
    issued_date: date | None
    degree: str = ""
    credential_type_id: str | None = None
    choice: ExpirationChoice = field(default_factory=ExpirationChoice)
    recipient_user_id: str | None = None


class IssueCertificateUseCase(TransitionUseCase):

    def __init__(
        self,
        registry: ICertificateRegistry,
        policy: ValidityPolicy,
        audit: IAuditLog,
        clock: Clock = datetime.now,
        on_refresh: Refresh | None = None,
    ):
        super().__init__(registry, audit, clock, on_refresh)
        self._policy = policy

    def execute(self, session: Session, data: IssueInput) -> IssueReceipt:
        action = AuditAction.CERT_ISSUE
        self._ensure_allowed(session, Transition.ISSUE, action, None)

        period = self._policy.resolve_period(session, data.credential_type_id)
        event = Issue(
            has_file=data.file is not None and bool(data.file.content),
            holder_name=data.holder_name,
            issued_date=data.issued_date,
            period=period,
            choice=data.choice,
            degree=data.degree,
            credential_type_id=data.credential_type_id,
            recipient_user_id=data.recipient_user_id,
        )
        target = self._check(session, None, event, action, None)

        request = IssueRequest(
            file=data.file,
            holder_name=target.holder_name,
            issued_date=target.issued_date,
            degree=data.degree.strip(),
            credential_type_id=data.credential_type_id or None,
            expiration_date=target.expiration_date,
            validity_option_id=target.validity_option_id,
            recipient_user_id=data.recipient_user_id,
        )
        return self._submit(
            session, action, None,
            lambda: self._registry.issue_certificate(session, request),
            details={
                "holderName": request.holder_name,
                "issuedDate": request.issued_date.isoformat(),
                "expirationDate": request.expiration_date.isoformat() if request.expiration_date else None,
            },
        )

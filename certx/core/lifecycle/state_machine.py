"""
Certificate State Machine.

States are explicit variants (Pending | Valid | Rejected | Revoked); EXPIRED
is derived from Valid + expiration date and is never stored. ``apply`` is
pure: it checks the role table, the source state and the event's own
preconditions, and returns the target state or the reason it is refused.
It never talks to the registry.

    PENDING  --approve-->  VALID  --revoke-->  REVOKED
       |                     |
       +--reject--> REJECTED +--update-expiration / transfer--> VALID
                       |
                       +--reupload (allowReupload)--> new PENDING record
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import ClassVar, Union

from certx.core.entities.certificate import Certificate, CertStatus, EffectiveStatus
from certx.core.entities.user import Role, User
from certx.core.errors import (
    AuthorizationError,
    CertxError,
    ExpirationUnresolvedError,
    IllegalTransitionError,
    ValidationError,
)
from certx.core.policy.status_resolver import resolve_status
from certx.core.policy.validity_policy import (
    ExpirationChoice,
    ValidityPeriod,
    resolve_expiration,
)


class Transition(str, Enum):
    UPLOAD = "upload"
    ISSUE = "issue"
    APPROVE = "approve"
    REJECT = "reject"
    REUPLOAD = "reupload"
    REVOKE = "revoke"
    UPDATE_EXPIRATION = "update-expiration"
    TRANSFER = "transfer"


_ADMINS = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

PERMISSIONS: dict[Transition, frozenset[Role]] = {
    Transition.UPLOAD: frozenset({Role.USER, Role.ADMIN}),
    Transition.ISSUE: _ADMINS,
    Transition.APPROVE: _ADMINS,
    Transition.REJECT: _ADMINS,
    Transition.REUPLOAD: frozenset({Role.USER}),
    Transition.REVOKE: _ADMINS,
    Transition.UPDATE_EXPIRATION: _ADMINS,
    Transition.TRANSFER: frozenset({Role.SUPER_ADMIN}),
}


def is_allowed(role: Role, transition: Transition) -> bool:
    return role in PERMISSIONS[transition]


# ── States ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Pending:
    issued_date: date | None = None
    reuploaded_from: str | None = None


@dataclass(frozen=True)
class Valid:
    issued_date: date | None = None
    expiration_date: date | None = None
    validity_option_id: str | None = None
    holder_user_id: str | None = None
    holder_name: str = ""


@dataclass(frozen=True)
class Rejected:
    reason: str
    allow_reupload: bool = False


@dataclass(frozen=True)
class Revoked:
    revoked_at: datetime | None = None


CertificateState = Union[Pending, Valid, Rejected, Revoked]

_SOURCE_STATES: dict[Transition, tuple[type, ...] | None] = {
    Transition.UPLOAD: None,
    Transition.ISSUE: None,
    Transition.APPROVE: (Pending,),
    Transition.REJECT: (Pending,),
    Transition.REUPLOAD: (Rejected,),
    Transition.REVOKE: (Valid,),
    Transition.UPDATE_EXPIRATION: (Valid,),
    Transition.TRANSFER: (Valid,),
}


def state_of(cert: Certificate) -> CertificateState:
    """Project a persisted certificate onto its state variant."""
    if cert.status == CertStatus.PENDING:
        return Pending(issued_date=cert.issued_date, reuploaded_from=cert.reuploaded_from)
    if cert.status == CertStatus.REJECTED:
        return Rejected(reason=cert.rejection_reason or "", allow_reupload=cert.allow_reupload)
    if cert.status == CertStatus.REVOKED:
        return Revoked(revoked_at=cert.revoked_at)
    return Valid(
        issued_date=cert.issued_date,
        expiration_date=cert.expiration_date,
        validity_option_id=cert.validity_option_id,
        holder_user_id=cert.holder_user_id,
        holder_name=cert.holder_name,
    )


def is_expired(state: CertificateState, now: datetime) -> bool:
    if not isinstance(state, Valid):
        return False
    return resolve_status(CertStatus.VALID, state.expiration_date, now) == EffectiveStatus.EXPIRED


# ── Events ─────────────────────────────────────────────────


@dataclass(frozen=True)
class Upload:
    transition: ClassVar[Transition] = Transition.UPLOAD
    has_file: bool
    holder_name: str
    uploaded_at: datetime
    degree: str = ""
    credential_type_id: str | None = None


@dataclass(frozen=True)
class Issue:
    transition: ClassVar[Transition] = Transition.ISSUE
    has_file: bool
    holder_name: str
    issued_date: date | None
    period: ValidityPeriod
    choice: ExpirationChoice = ExpirationChoice()
    degree: str = ""
    credential_type_id: str | None = None
    recipient_user_id: str | None = None


@dataclass(frozen=True)
class Approve:
    transition: ClassVar[Transition] = Transition.APPROVE
    issued_date: date | None
    period: ValidityPeriod
    choice: ExpirationChoice = ExpirationChoice()


@dataclass(frozen=True)
class Reject:
    transition: ClassVar[Transition] = Transition.REJECT
    reason: str
    allow_reupload: bool = False


@dataclass(frozen=True)
class Reupload:
    transition: ClassVar[Transition] = Transition.REUPLOAD
    source_id: str
    note: str
    holder_name: str
    submitted_at: datetime
    degree: str = ""
    credential_type_id: str | None = None
    has_file: bool = False
    use_original_file: bool = False
    owner_id: str | None = None
    pending_resubmission: bool = False


@dataclass(frozen=True)
class Revoke:
    transition: ClassVar[Transition] = Transition.REVOKE
    at: datetime


@dataclass(frozen=True)
class UpdateExpiration:
    transition: ClassVar[Transition] = Transition.UPDATE_EXPIRATION
    issued_date: date | None
    period: ValidityPeriod
    choice: ExpirationChoice = ExpirationChoice()


@dataclass(frozen=True)
class Transfer:
    transition: ClassVar[Transition] = Transition.TRANSFER
    new_user_id: str | None
    note: str
    display_name: str | None = None


Event = Union[Upload, Issue, Approve, Reject, Reupload, Revoke, UpdateExpiration, Transfer]


# ── Result ─────────────────────────────────────────────────


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    EXPIRATION_UNRESOLVED = "EXPIRATION_UNRESOLVED"
    UNAUTHORIZED = "UNAUTHORIZED"
    ILLEGAL_STATE = "ILLEGAL_STATE"


@dataclass(frozen=True)
class TransitionResult:
    state: CertificateState | None = None
    error: ErrorKind | None = None
    message: str = ""
    field: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> CertificateState:
        """Target state, or the matching ``CertxError`` raised."""
        if self.ok:
            return self.state
        raise self.to_exception()

    def to_exception(self) -> CertxError:
        if self.error == ErrorKind.UNAUTHORIZED:
            return AuthorizationError(self.message)
        if self.error == ErrorKind.ILLEGAL_STATE:
            return IllegalTransitionError(self.message)
        if self.error == ErrorKind.EXPIRATION_UNRESOLVED:
            return ExpirationUnresolvedError(self.message)
        return ValidationError(self.message, field=self.field)


def _refuse(kind: ErrorKind, message: str, field: str | None = None) -> TransitionResult:
    return TransitionResult(error=kind, message=message, field=field)


def _invalid(message: str, field: str) -> TransitionResult:
    return _refuse(ErrorKind.VALIDATION, message, field)


def _state_label(state: CertificateState | None) -> str:
    return "new" if state is None else type(state).__name__.upper()


# ── Transition function ────────────────────────────────────


def apply(
    state: CertificateState | None,
    event: Event,
    actor: User,
    now: datetime | None = None,
) -> TransitionResult:
    """
    Apply ``event`` on behalf of ``actor``.

    ``state`` is None for the creating transitions (upload, issue). ``now``
    is needed to refuse mutations on a certificate that has already expired.
    """
    transition = event.transition

    if not is_allowed(actor.role, transition):
        return _refuse(
            ErrorKind.UNAUTHORIZED,
            f"Role {actor.role.value} may not {transition.value} certificates",
        )

    sources = _SOURCE_STATES[transition]
    if sources is None:
        if state is not None:
            return _refuse(ErrorKind.ILLEGAL_STATE, f"{transition.value} creates a new certificate")
    elif not isinstance(state, sources):
        return _refuse(
            ErrorKind.ILLEGAL_STATE,
            f"Cannot {transition.value} a {_state_label(state)} certificate",
        )
    elif now is not None and is_expired(state, now):
        return _refuse(ErrorKind.ILLEGAL_STATE, f"Cannot {transition.value} an EXPIRED certificate")

    handler = _HANDLERS[transition]
    return handler(state, event, actor)


def _require_document(holder_name: str, degree: str, credential_type_id: str | None) -> TransitionResult | None:
    if not holder_name.strip():
        return _invalid("Holder name is required", "holderName")
    if not degree.strip() and not credential_type_id:
        return _invalid("A degree or credential type is required", "degree")
    return None


def _resolve(issued_date: date | None, choice: ExpirationChoice, period: ValidityPeriod):
    try:
        return resolve_expiration(issued_date, choice, period), None
    except ExpirationUnresolvedError as e:
        return None, _refuse(ErrorKind.EXPIRATION_UNRESOLVED, e.message, e.field)


def _on_upload(state, event: Upload, actor) -> TransitionResult:
    if not event.has_file:
        return _invalid("A document file is required", "file")
    missing = _require_document(event.holder_name, event.degree, event.credential_type_id)
    if missing:
        return missing
    return TransitionResult(state=Pending(issued_date=event.uploaded_at.date()))


def _on_issue(state, event: Issue, actor) -> TransitionResult:
    if not event.has_file:
        return _invalid("A document file is required", "file")
    missing = _require_document(event.holder_name, event.degree, event.credential_type_id)
    if missing:
        return missing
    if event.issued_date is None:
        return _invalid("Issued date is required", "issuedDate")
    resolved, refused = _resolve(event.issued_date, event.choice, event.period)
    if refused:
        return refused
    return TransitionResult(state=Valid(
        issued_date=event.issued_date,
        expiration_date=resolved.expiration_date,
        validity_option_id=resolved.validity_option_id,
        holder_user_id=event.recipient_user_id,
        holder_name=event.holder_name.strip(),
    ))


def _on_approve(state: Pending, event: Approve, actor) -> TransitionResult:
    if event.issued_date is None:
        return _invalid("Issued date is required", "issuedDate")
    resolved, refused = _resolve(event.issued_date, event.choice, event.period)
    if refused:
        return refused
    return TransitionResult(state=Valid(
        issued_date=event.issued_date,
        expiration_date=resolved.expiration_date,
        validity_option_id=resolved.validity_option_id,
    ))


def _on_reject(state: Pending, event: Reject, actor) -> TransitionResult:
    reason = event.reason.strip()
    if not reason:
        return _invalid("A rejection reason is required", "rejectionReason")
    return TransitionResult(state=Rejected(reason=reason, allow_reupload=event.allow_reupload))


def _on_reupload(state: Rejected, event: Reupload, actor: User) -> TransitionResult:
    if event.owner_id is not None and event.owner_id != actor.id:
        return _refuse(ErrorKind.UNAUTHORIZED, "Only the uploader may resubmit this certificate")
    if not state.allow_reupload:
        return _refuse(ErrorKind.ILLEGAL_STATE, "Resubmission was not allowed for this certificate")
    if event.pending_resubmission:
        return _refuse(ErrorKind.ILLEGAL_STATE, "A resubmission of this certificate is already pending review")
    if not event.has_file and not event.use_original_file:
        return _invalid("Choose a new file or reuse the original one", "file")
    if not event.note.strip():
        return _invalid("A resubmission note is required", "note")
    missing = _require_document(event.holder_name, event.degree, event.credential_type_id)
    if missing:
        return missing
    return TransitionResult(state=Pending(
        issued_date=event.submitted_at.date(),
        reuploaded_from=event.source_id,
    ))


def _on_revoke(state: Valid, event: Revoke, actor) -> TransitionResult:
    return TransitionResult(state=Revoked(revoked_at=event.at))


def _on_update_expiration(state: Valid, event: UpdateExpiration, actor) -> TransitionResult:
    if event.issued_date is None:
        return _invalid("Issued date is required", "issuedDate")
    resolved, refused = _resolve(event.issued_date, event.choice, event.period)
    if refused:
        return refused
    return TransitionResult(state=replace(
        state,
        issued_date=event.issued_date,
        expiration_date=resolved.expiration_date,
        validity_option_id=resolved.validity_option_id,
    ))


def _on_transfer(state: Valid, event: Transfer, actor) -> TransitionResult:
    if not event.new_user_id:
        return _invalid("Choose the user receiving the certificate", "newUserId")
    if not event.note.strip():
        return _invalid("A transfer note is required", "note")
    display_name = (event.display_name or "").strip()
    return TransitionResult(state=replace(
        state,
        holder_user_id=event.new_user_id,
        holder_name=display_name or state.holder_name,
    ))


_HANDLERS = {
    Transition.UPLOAD: _on_upload,
    Transition.ISSUE: _on_issue,
    Transition.APPROVE: _on_approve,
    Transition.REJECT: _on_reject,
    Transition.REUPLOAD: _on_reupload,
    Transition.REVOKE: _on_revoke,
    Transition.UPDATE_EXPIRATION: _on_update_expiration,
    Transition.TRANSFER: _on_transfer,
}


def available_transitions(cert: Certificate, actor: User, now: datetime) -> list[Transition]:
    """Transitions a UI may offer for ``cert`` (role and state only, not input)."""
    state = state_of(cert)
    offered = []
    for transition, sources in _SOURCE_STATES.items():
        if sources is None or not isinstance(state, sources):
            continue
        if not is_allowed(actor.role, transition):
            continue
        if is_expired(state, now):
            continue
        if transition == Transition.REUPLOAD:
            if not state.allow_reupload:
                continue
            if cert.issuer_id is not None and cert.issuer_id != actor.id:
                continue
        offered.append(transition)
    return offered

"""
Use Cases: Credential catalog administration

Create/update/delete credential types and their validity options. Input is
validated locally the same way transitions are: a refusal is audited and
never sent.
"""

from datetime import datetime

from certx.core.entities.credential_type import CredentialType, ValidityOption
from certx.core.entities.user import Session
from certx.core.errors import CertxError, ValidationError
from certx.core.interfaces.audit_log import AuditAction, IAuditLog
from certx.core.interfaces.catalog_api import ICatalogApi, ValidityOptionDraft
from certx.core.use_cases.base import AuditedOperation, Clock, Refresh


class ManageCredentialTypesUseCase(AuditedOperation):
    RESOURCE_TYPE = "credential_type"

    def __init__(
        self,
        catalog: ICatalogApi,
        audit: IAuditLog,
        clock: Clock = datetime.now,
        on_refresh: Refresh | None = None,
    ):
        super().__init__(audit, clock, on_refresh)
        self.catalog = catalog

    def create(self, session: Session, type_id: str, name: str, is_permanent: bool = False) -> CredentialType:
        action = AuditAction.CREDENTIAL_TYPE_CREATE
        self._ensure_admin(session, action, type_id or None)

        type_id, name = (type_id or "").strip(), (name or "").strip()
        if not type_id:
            raise self._refuse(session, action, None, ValidationError("A credential type id is required", "id"))
        if not name:
            raise self._refuse(session, action, type_id, ValidationError("A credential type name is required", "name"))

        credential_type = CredentialType(id=type_id, name=name, is_permanent=is_permanent)
        return self._submit(
            session, action, type_id,
            lambda: self.catalog.create_credential_type(session, credential_type),
            details={"name": name, "isPermanent": is_permanent},
        )

    def update(
        self, session: Session, type_id: str, name: str | None = None, is_permanent: bool | None = None
    ) -> CredentialType:
        """The id is fixed at creation; only name and permanence change."""
        action = AuditAction.CREDENTIAL_TYPE_UPDATE
        self._ensure_admin(session, action, type_id)

        if name is not None:
            name = name.strip()
            if not name:
                raise self._refuse(
                    session, action, type_id, ValidationError("A credential type name is required", "name")
                )

        return self._submit(
            session, action, type_id,
            lambda: self.catalog.update_credential_type(session, type_id, name=name, is_permanent=is_permanent),
            details={"name": name, "isPermanent": is_permanent},
        )

    def delete(self, session: Session, type_id: str) -> None:
        action = AuditAction.CREDENTIAL_TYPE_DELETE
        self._ensure_admin(session, action, type_id)
        self._submit(session, action, type_id, lambda: self.catalog.delete_credential_type(session, type_id))


class ManageValidityOptionsUseCase(AuditedOperation):
    RESOURCE_TYPE = "credential_validity"

    def __init__(
        self,
        catalog: ICatalogApi,
        audit: IAuditLog,
        clock: Clock = datetime.now,
        on_refresh: Refresh | None = None,
    ):
        super().__init__(audit, clock, on_refresh)
        self.catalog = catalog

    def create(self, session: Session, option_id: str, draft: ValidityOptionDraft) -> ValidityOption:
        action = AuditAction.CREDENTIAL_VALIDITY_CREATE
        self._ensure_admin(session, action, option_id or None)

        option_id = (option_id or "").strip()
        if not option_id:
            raise self._refuse(session, action, None, ValidationError("A validity option id is required", "id"))
        draft = self._validated(session, action, option_id, draft)

        return self._submit(
            session, action, option_id,
            lambda: self.catalog.create_validity_option(session, option_id, draft),
            details=_draft_details(draft),
        )

    def update(self, session: Session, option_id: str, draft: ValidityOptionDraft) -> ValidityOption:
        action = AuditAction.CREDENTIAL_VALIDITY_UPDATE
        self._ensure_admin(session, action, option_id)
        draft = self._validated(session, action, option_id, draft)
        return self._submit(
            session, action, option_id,
            lambda: self.catalog.update_validity_option(session, option_id, draft),
            details=_draft_details(draft),
        )

    def delete(self, session: Session, option_id: str) -> None:
        action = AuditAction.CREDENTIAL_VALIDITY_DELETE
        self._ensure_admin(session, action, option_id)
        self._submit(session, action, option_id, lambda: self.catalog.delete_validity_option(session, option_id))

    def _validated(
        self, session: Session, action: AuditAction, option_id: str, draft: ValidityOptionDraft
    ) -> ValidityOptionDraft:
        def refuse(message: str, field: str):
            return self._refuse(session, action, option_id, ValidationError(message, field))

        if not draft.credential_type_id:
            raise refuse("Choose the credential type first", "credentialTypeId")
        if draft.period_months is None and draft.period_days is None:
            raise refuse("Set a number of months or a number of days", "periodMonths")
        if draft.period_months is not None and draft.period_days is not None:
            raise refuse("Set either a number of months or a number of days, not both", "periodDays")
        for value, field in ((draft.period_months, "periodMonths"), (draft.period_days, "periodDays")):
            if value is not None and value <= 0:
                raise refuse("The validity period must be positive", field)

        try:
            credential_type = self.catalog.get_credential_type(session, draft.credential_type_id)
        except CertxError as e:
            raise self._refuse(session, action, option_id, e)
        if credential_type.is_permanent:
            raise refuse(f"{credential_type.name} is permanent and takes no validity options", "credentialTypeId")

        note = (draft.note or "").strip() or None
        return ValidityOptionDraft(
            credential_type_id=draft.credential_type_id,
            period_months=draft.period_months,
            period_days=draft.period_days,
            note=note,
        )


def _draft_details(draft: ValidityOptionDraft) -> dict:
    return {
        "credentialTypeId": draft.credential_type_id,
        "periodMonths": draft.period_months,
        "periodDays": draft.period_days,
    }

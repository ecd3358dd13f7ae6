"""
Use Cases: User administration

Account rules enforced before anything is sent:

  - ADMIN and SUPER_ADMIN accounts carry a chain address; USER accounts
    never do (the address is cleared when an account becomes USER).
  - Only a SUPER_ADMIN assigns roles, and never on another SUPER_ADMIN.
"""

from dataclasses import replace
from datetime import datetime

from certx.core.entities.user import Role, Session, User
from certx.core.errors import AuthorizationError, ValidationError
from certx.core.interfaces.audit_log import AuditAction, IAuditLog
from certx.core.interfaces.user_directory import IUserDirectory, UserDraft
from certx.core.pagination import Pagination
from certx.core.use_cases.base import AuditedOperation, Clock, Refresh


def page_after_delete(pagination: Pagination, items_on_page: int) -> int:
    """Step back one page when the last row of the last page was deleted."""
    if pagination.page > 1 and items_on_page == 1:
        return pagination.page - 1
    return pagination.page


class ManageUsersUseCase(AuditedOperation):
    RESOURCE_TYPE = "user"

    def __init__(
        self,
        users: IUserDirectory,
        audit: IAuditLog,
        clock: Clock = datetime.now,
        on_refresh: Refresh | None = None,
    ):
        super().__init__(audit, clock, on_refresh)
        self.users = users

    def create(self, session: Session, draft: UserDraft) -> User:
        action = AuditAction.USER_CREATE
        self._ensure_admin(session, action, None)

        def refuse(error):
            return self._refuse(session, action, None, error)

        email = (draft.email or "").strip()
        name = (draft.name or "").strip()
        if not email:
            raise refuse(ValidationError("An email is required", "email"))
        if not name:
            raise refuse(ValidationError("A name is required", "name"))
        if not draft.password:
            raise refuse(ValidationError("A password is required", "password"))

        role = draft.role or Role.USER
        if role != Role.USER and session.role != Role.SUPER_ADMIN:
            raise refuse(AuthorizationError("Only a super admin may create administrator accounts"))

        address = (draft.address or "").strip() or None
        if role.is_admin and not address:
            raise refuse(ValidationError(f"A {role.value} account needs a chain address", "address"))
        if role == Role.USER:
            address = None

        payload = replace(
            draft, email=email, name=name, role=role, address=address,
            enabled=True if draft.enabled is None else draft.enabled,
        )
        return self._submit(
            session, action, None,
            lambda: self.users.create_user(session, payload),
            details={"email": email, "role": role.value},
        )

    def update(self, session: Session, target: User, draft: UserDraft) -> User:
        action = AuditAction.USER_UPDATE
        self._ensure_admin(session, action, target.id)

        def refuse(error):
            return self._refuse(session, action, target.id, error)

        role = draft.role or target.role
        if role != target.role:
            if session.role != Role.SUPER_ADMIN:
                raise refuse(AuthorizationError("Only a super admin may change roles"))
            if target.role == Role.SUPER_ADMIN and target.id != session.user.id:
                raise refuse(AuthorizationError("The role of another super admin cannot be changed"))

        if draft.name is not None and not draft.name.strip():
            raise refuse(ValidationError("A name is required", "name"))
        if draft.email is not None and not draft.email.strip():
            raise refuse(ValidationError("An email is required", "email"))

        address = draft.address.strip() if draft.address is not None else target.address
        if role.is_admin and not address:
            raise refuse(ValidationError(f"A {role.value} account needs a chain address", "address"))

        if role == Role.USER:
            # empty string clears the stored address
            address_out = "" if target.address else None
        else:
            address_out = address if draft.address is not None else None

        payload = replace(
            draft,
            email=draft.email.strip() if draft.email is not None else None,
            name=draft.name.strip() if draft.name is not None else None,
            role=draft.role if draft.role != target.role else None,
            address=address_out,
            password=draft.password or None,
        )
        return self._submit(
            session, action, target.id,
            lambda: self.users.update_user(session, target.id, payload),
            details={"fromRole": target.role.value, "toRole": role.value},
        )

    def set_enabled(self, session: Session, target: User, enabled: bool) -> User:
        action = AuditAction.USER_ENABLE if enabled else AuditAction.USER_DISABLE
        self._ensure_admin(session, action, target.id)
        return self._submit(
            session, action, target.id,
            lambda: self.users.update_user(session, target.id, UserDraft(enabled=enabled)),
        )

    def delete(self, session: Session, user_id: str) -> None:
        action = AuditAction.USER_DELETE
        self._ensure_admin(session, action, user_id)
        self._submit(session, action, user_id, lambda: self.users.delete_user(session, user_id))

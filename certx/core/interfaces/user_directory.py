"""
Contract: User Directory

Account lookup and administration on the registry.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from certx.core.entities.user import Role, Session, User
from certx.core.pagination import Pagination


@dataclass
class UserDraft:
    """Create/update payload; ``None`` fields are left untouched on update."""
    email: str | None = None
    name: str | None = None
    password: str | None = None
    address: str | None = None
    role: Role | None = None
    enabled: bool | None = None


@dataclass
class UserPage:
    items: list[User] = field(default_factory=list)
    pagination: Pagination = field(default_factory=Pagination)


class IUserDirectory(ABC):
    """Port: User Directory"""

    @abstractmethod
    def get_user(self, session: Session, user_id: str) -> User:
        ...

    @abstractmethod
    def list_users(
        self, session: Session, page: int = 1, limit: int = 10, q: str | None = None, role: Role | None = None
    ) -> UserPage:
        ...

    @abstractmethod
    def create_user(self, session: Session, draft: UserDraft) -> User:
        ...

    @abstractmethod
    def update_user(self, session: Session, user_id: str, draft: UserDraft) -> User:
        ...

    @abstractmethod
    def delete_user(self, session: Session, user_id: str) -> None:
        ...

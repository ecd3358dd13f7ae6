"""
Contract: Catalog API

Credential types and their validity options, as held by the registry.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from certx.core.entities.credential_type import CredentialType, ValidityOption
from certx.core.entities.user import Session


@dataclass
class ValidityOptionDraft:
    """Fields an administrator may set on a validity option."""
    credential_type_id: str
    period_months: int | None = None
    period_days: int | None = None
    note: str | None = None


class ICatalogApi(ABC):
    """
    Port: Catalog API

    Reads are public; writes are admin-only on the server side.
    """

    @abstractmethod
    def list_credential_types(
        self, session: Session | None, q: str | None = None, page: int | None = None, limit: int | None = None
    ) -> list[CredentialType]:
        ...

    @abstractmethod
    def get_credential_type(self, session: Session | None, type_id: str) -> CredentialType:
        """
        Raises:
            NotFoundError: unknown or deleted type.
        """
        ...

    @abstractmethod
    def create_credential_type(self, session: Session, credential_type: CredentialType) -> CredentialType:
        ...

    @abstractmethod
    def update_credential_type(
        self, session: Session, type_id: str, name: str | None = None, is_permanent: bool | None = None
    ) -> CredentialType:
        ...

    @abstractmethod
    def delete_credential_type(self, session: Session, type_id: str) -> None:
        ...

    @abstractmethod
    def list_validity_options(
        self, session: Session | None, credential_type_id: str | None = None
    ) -> list[ValidityOption]:
        """All options, or only those owned by ``credential_type_id``."""
        ...

    @abstractmethod
    def get_validity_option(self, session: Session | None, option_id: str) -> ValidityOption:
        ...

    @abstractmethod
    def create_validity_option(self, session: Session, option_id: str, draft: ValidityOptionDraft) -> ValidityOption:
        ...

    @abstractmethod
    def update_validity_option(self, session: Session, option_id: str, draft: ValidityOptionDraft) -> ValidityOption:
        ...

    @abstractmethod
    def delete_validity_option(self, session: Session, option_id: str) -> None:
        ...

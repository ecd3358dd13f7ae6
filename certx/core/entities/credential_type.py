"""
Entity: CredentialType / ValidityOption

A credential type decides whether certificates expire; its validity
options are the named periods an administrator can pick from.
"""

from dataclasses import dataclass


@dataclass
class CredentialType:
    """A class of credential (e.g. "Bachelor's Degree")."""
    id: str                     # user-chosen at creation, immutable afterwards
    name: str
    is_permanent: bool = False


@dataclass
class ValidityOption:
    """A named expiration rule owned by a credential type."""
    id: str
    credential_type_id: str
    period_months: int | None = None
    period_days: int | None = None
    note: str | None = None

    @property
    def has_single_period(self) -> bool:
        return (self.period_months is None) != (self.period_days is None)

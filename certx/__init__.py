"""CertX registry client."""

from .core.entities.certificate import Certificate, CertStatus, EffectiveStatus
from .core.entities.credential_type import CredentialType, ValidityOption
from .core.entities.user import Role, Session, User
from .core.policy.status_resolver import resolve_status
from .core.policy.validity_policy import ValidityPolicy, compute_expiration

__version__ = "1.0.0"

__all__ = [
    "Certificate",
    "CertStatus",
    "EffectiveStatus",
    "CredentialType",
    "ValidityOption",
    "Role",
    "Session",
    "User",
    "resolve_status",
    "ValidityPolicy",
    "compute_expiration",
]

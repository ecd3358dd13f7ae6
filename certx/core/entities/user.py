"""
Entity: User / Session

Role decides which lifecycle transitions a user may invoke. The Session is
passed explicitly into every operation; nothing reads ambient token state.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import jwt

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"

    @property
    def is_admin(self) -> bool:
        return self in (Role.ADMIN, Role.SUPER_ADMIN)


@dataclass
class User:
    """Registry account."""
    id: str
    email: str = ""
    name: str = ""
    address: str | None = None   # chain address; admins only
    role: Role = Role.USER
    enabled: bool = True


@dataclass(frozen=True)
class Session:
    """Authenticated caller context."""
    user: User
    token: str = ""
    expires_at: datetime | None = None

    @classmethod
    def from_token(cls, token: str, user: User | None = None) -> "Session":
        """
        Build a session from a bearer token.

        Claims are read without signature verification: ``exp`` is only used
        to tell the caller to log in again, and ``sub``/``role``/``email``
        only stand in for ``user`` when none is given. The server still
        checks the token on every call.
        """
        expires_at = None
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.DecodeError:
            logger.warning("Session token is not a decodable JWT; expiry unknown")
            claims = {}
        if user is None:
            user = User(
                id=str(claims.get("sub", "")),
                email=claims.get("email", ""),
                role=_claimed_role(claims.get("role")),
            )
        exp = claims.get("exp")
        if isinstance(exp, (int, float)):
            expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        return cls(user=user, token=token, expires_at=expires_at)

    @property
    def role(self) -> Role:
        return self.user.role

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        current = now or datetime.now(timezone.utc)
        if current.tzinfo is None:
            current = current.astimezone()
        return current > self.expires_at


def _claimed_role(value) -> Role:
    try:
        return Role(value)
    except ValueError:
        return Role.USER

"""Domain models for authentication.

Provides:
- User accounts with hashed passwords
- Token payloads for web sessions and mobile bearer tokens
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID, uuid4


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TokenType(str, Enum):
    """Which credential a signed token was issued as."""

    SESSION = "session"  # web cookie
    ACCESS = "access"  # mobile bearer


@dataclass
class User:
    """A user account."""

    email: str
    id: UUID = field(default_factory=uuid4)
    name: str | None = None
    password_hash: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        self.email = self.email.strip().lower()


@dataclass
class TokenPayload:
    """Decoded token claims."""

    sub: UUID  # User ID
    exp: datetime
    iat: datetime
    type: TokenType

"""Household domain model: the tenant boundary and who belongs to it."""

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

from household_ledger.domain.value_objects import InvitationStatus, Role

INVITATION_TOKEN_BYTES = 32


def _utc_now() -> datetime:
    return datetime.now(UTC)


def generate_invitation_token() -> str:
    return secrets.token_hex(INVITATION_TOKEN_BYTES)


@dataclass
class Household:
    name: str
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def rename(self, name: str) -> None:
        self.name = name
        self.updated_at = _utc_now()


@dataclass
class Membership:
    """A user's role within a household. Unique per (user_id, household_id)."""

    user_id: UUID
    household_id: UUID
    role: Role = Role.MEMBER
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER


@dataclass
class Invitation:
    """An invitation for an email address to join a household.

    Consumed exactly once by the invited user, then marked ACCEPTED.
    """

    email: str
    household_id: UUID
    invited_by_id: UUID
    expires_at: datetime
    token: str = field(default_factory=generate_invitation_token)
    status: InvitationStatus = InvitationStatus.PENDING
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)

    @classmethod
    def create(
        cls,
        email: str,
        household_id: UUID,
        invited_by_id: UUID,
        expire_days: int = 7,
    ) -> "Invitation":
        return cls(
            email=email.strip().lower(),
            household_id=household_id,
            invited_by_id=invited_by_id,
            expires_at=_utc_now() + timedelta(days=expire_days),
        )

    @property
    def is_expired(self) -> bool:
        return self.expires_at < _utc_now()

    @property
    def is_pending(self) -> bool:
        return self.status == InvitationStatus.PENDING and not self.is_expired

    def matches_email(self, email: str) -> bool:
        return self.email.lower() == email.strip().lower()

    def accept(self) -> None:
        self.status = InvitationStatus.ACCEPTED

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from household_ledger.domain.value_objects import (
    AccountGroupKind,
    AccountScope,
    CategoryType,
)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class AccountGroup:
    name: str
    household_id: UUID
    id: UUID = field(default_factory=uuid4)
    kind: AccountGroupKind = AccountGroupKind.CASH
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def touch(self) -> None:
        self.updated_at = _utc_now()


@dataclass
class Account:
    """A ledger container inside an account group.

    Visibility depends on scope and owner_user_id only. created_by_id
    matters solely for the HOUSEHOLD -> PERSONAL scope change.
    """

    name: str
    group_id: UUID
    created_by_id: UUID
    id: UUID = field(default_factory=uuid4)
    currency: str = "IDR"
    starting_balance: Decimal = Decimal("0")
    is_archived: bool = False
    scope: AccountScope = AccountScope.HOUSEHOLD
    owner_user_id: UUID | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        if self.scope == AccountScope.PERSONAL and self.owner_user_id is None:
            raise ValueError("personal accounts require an owner_user_id")
        if self.scope == AccountScope.HOUSEHOLD:
            self.owner_user_id = None

    @property
    def is_personal(self) -> bool:
        return self.scope == AccountScope.PERSONAL

    def is_visible_to(self, user_id: UUID) -> bool:
        if self.scope == AccountScope.HOUSEHOLD:
            return True
        return self.owner_user_id == user_id

    def change_scope(self, scope: AccountScope, user_id: UUID) -> None:
        """Apply an already-authorized scope change on behalf of user_id."""
        self.scope = scope
        self.owner_user_id = user_id if scope == AccountScope.PERSONAL else None
        self.updated_at = _utc_now()

    def touch(self) -> None:
        self.updated_at = _utc_now()


@dataclass
class Category:
    name: str
    household_id: UUID
    id: UUID = field(default_factory=uuid4)
    type: CategoryType = CategoryType.EXPENSE
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def touch(self) -> None:
        self.updated_at = _utc_now()

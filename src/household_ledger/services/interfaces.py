"""Canonical command and result types shared by the services.

Request payloads of every wire version are decoded into these types at the
HTTP boundary; services never see the wire shapes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from household_ledger.domain.auth import User
from household_ledger.domain.entities import Account, AccountGroup
from household_ledger.domain.households import Household, Invitation, Membership
from household_ledger.domain.transactions import Transaction, TransferSummary
from household_ledger.domain.value_objects import (
    AccountGroupKind,
    AccountScope,
    CategoryType,
    Role,
    TransactionType,
)


@dataclass(frozen=True)
class Credentials:
    """Raw credentials presented by a caller."""

    session_token: str | None = None
    bearer_token: str | None = None


@dataclass(frozen=True)
class TenantContext:
    """A resolved caller: the user, the target household and their role there."""

    user_id: UUID
    household_id: UUID
    role: Role

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class AccountCreate:
    name: str
    group_id: UUID
    currency: str | None = None
    starting_balance: Decimal = Decimal("0")
    is_archived: bool = False
    scope: AccountScope = AccountScope.HOUSEHOLD


@dataclass(frozen=True)
class AccountUpdate:
    """Fields left as None are unchanged."""

    name: str | None = None
    group_id: UUID | None = None
    currency: str | None = None
    starting_balance: Decimal | None = None
    is_archived: bool | None = None
    scope: AccountScope | None = None


@dataclass(frozen=True)
class AccountGroupUpdate:
    name: str | None = None
    kind: AccountGroupKind | None = None


@dataclass(frozen=True)
class CategoryUpdate:
    name: str | None = None
    type: CategoryType | None = None


@dataclass(frozen=True)
class TransactionCreate:
    account_id: UUID
    category_id: UUID
    amount: Decimal
    type: TransactionType
    description: str | None = None
    transaction_date: date | None = None


@dataclass(frozen=True)
class TransactionUpdate:
    """Fields left as None are unchanged."""

    account_id: UUID | None = None
    category_id: UUID | None = None
    amount: Decimal | None = None
    type: TransactionType | None = None
    description: str | None = None
    transaction_date: date | None = None


@dataclass(frozen=True)
class TransactionFilter:
    account_id: UUID | None = None
    category_id: UUID | None = None
    type: TransactionType | None = None
    date_from: date | None = None
    date_to: date | None = None
    q: str | None = None


@dataclass(frozen=True)
class TransferCommand:
    from_account_id: UUID
    to_account_id: UUID
    amount: Decimal
    description: str | None = None
    transaction_date: date | None = None
    category_id: UUID | None = None
    must_be_same_group: bool = False


# =============================================================================
# Results
# =============================================================================


@dataclass
class AccountWithBalance:
    account: Account
    balance: Decimal


@dataclass
class AccountGroupWithAccounts:
    group: AccountGroup
    accounts: list[AccountWithBalance] = field(default_factory=list)


@dataclass
class TransferDetails:
    summary: TransferSummary
    legs: list[Transaction]


@dataclass
class MemberView:
    user: User
    membership: Membership


@dataclass
class HouseholdDetails:
    household: Household
    members: list[MemberView]


@dataclass
class Profile:
    user: User
    memberships: list[tuple[Membership, Household]]


@dataclass
class InvitationPreview:
    email: str
    household: Household
    invited_by: User
    expires_at: datetime


@dataclass
class InvitationView:
    invitation: Invitation
    household: Household
    invited_by: User | None

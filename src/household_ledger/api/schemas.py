"""Pydantic v2 schemas for API request/response models.

Wire fields are camelCase; snake_case names are accepted on input too.
Request models decode into the canonical service commands through
``to_command()``; legacy version 1 bodies (pockets and banks) are separate
models in a union with the current shape, so services only ever see one
form.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from household_ledger.domain.auth import User
from household_ledger.domain.entities import Account, AccountGroup, Category
from household_ledger.domain.households import Household, Invitation
from household_ledger.domain.transactions import Transaction, TransferSummary
from household_ledger.domain.value_objects import (
    AccountGroupKind,
    AccountScope,
    CategoryType,
    Role,
    TransactionType,
    format_decimal,
    parse_decimal,
)
from household_ledger.exceptions import InvalidAmountError
from household_ledger.services import interfaces as commands


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def _decimal_text(value: Any) -> Any:
    """Accept JSON numbers for decimal fields by reading them as text."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return repr(value)
    return value


def _date_part(value: Any) -> Any:
    """Accept full ISO datetimes where only the calendar date is stored."""
    if isinstance(value, str) and "T" in value:
        return datetime.fromisoformat(value).date()
    return value


def to_decimal(value: str) -> Decimal:
    try:
        return parse_decimal(value)
    except ValueError:
        raise InvalidAmountError(value, "not a decimal number") from None


def _optional_decimal(value: str | None) -> Decimal | None:
    return None if value is None else to_decimal(value)


DecimalText = Annotated[str, BeforeValidator(_decimal_text)]
WireDate = Annotated[date, BeforeValidator(_date_part)]


# =============================================================================
# Health and auth
# =============================================================================


class HealthResponse(ApiModel):
    status: str


class RegisterRequest(ApiModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=100)
    name: str | None = Field(default=None, max_length=100)


class LoginRequest(ApiModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SignupRequest(RegisterRequest):
    household_name: str = Field(..., min_length=1, max_length=100)


class PasswordChangeRequest(ApiModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=100)


class UserResponse(ApiModel):
    id: UUID
    email: str
    name: str | None
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, name=user.name, created_at=user.created_at)


class UserSummary(ApiModel):
    name: str | None
    email: str

    @classmethod
    def from_domain(cls, user: User | None) -> "UserSummary | None":
        if user is None:
            return None
        return cls(name=user.name, email=user.email)


class MobileLoginResponse(ApiModel):
    token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileMembership(ApiModel):
    household_id: UUID
    household_name: str
    role: Role


class ProfileResponse(ApiModel):
    user: UserResponse
    memberships: list[ProfileMembership]

    @classmethod
    def from_domain(cls, profile: commands.Profile) -> "ProfileResponse":
        return cls(
            user=UserResponse.from_domain(profile.user),
            memberships=[
                ProfileMembership(
                    household_id=household.id,
                    household_name=household.name,
                    role=membership.role,
                )
                for membership, household in profile.memberships
            ],
        )


class MessageResponse(ApiModel):
    message: str


class OkResponse(ApiModel):
    ok: bool = True


# =============================================================================
# Households and invitations
# =============================================================================


class HouseholdCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)


class HouseholdUpdate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)


class HouseholdResponse(ApiModel):
    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, household: Household) -> "HouseholdResponse":
        return cls(
            id=household.id,
            name=household.name,
            created_at=household.created_at,
            updated_at=household.updated_at,
        )


class SignupResponse(ApiModel):
    user: UserResponse
    household: HouseholdResponse


class MemberResponse(ApiModel):
    user_id: UUID
    email: str
    name: str | None
    role: Role
    joined_at: datetime


class HouseholdDetailResponse(HouseholdResponse):
    members: list[MemberResponse]

    @classmethod
    def from_details(cls, details: commands.HouseholdDetails) -> "HouseholdDetailResponse":
        household = details.household
        return cls(
            id=household.id,
            name=household.name,
            created_at=household.created_at,
            updated_at=household.updated_at,
            members=[
                MemberResponse(
                    user_id=m.user.id,
                    email=m.user.email,
                    name=m.user.name,
                    role=m.membership.role,
                    joined_at=m.membership.created_at,
                )
                for m in details.members
            ],
        )


class InvitationCreate(ApiModel):
    email: str = Field(..., min_length=3, max_length=255)
    household_id: UUID


class InvitationAccept(ApiModel):
    token: str = Field(..., min_length=1)


class HouseholdName(ApiModel):
    id: UUID
    name: str


class InvitationResponse(ApiModel):
    id: UUID
    email: str
    household_id: UUID
    household: HouseholdName
    invited_by: UserSummary | None
    token: str
    status: str
    expires_at: datetime
    created_at: datetime

    @classmethod
    def from_view(cls, view: commands.InvitationView) -> "InvitationResponse":
        invitation: Invitation = view.invitation
        return cls(
            id=invitation.id,
            email=invitation.email,
            household_id=invitation.household_id,
            household=HouseholdName(id=view.household.id, name=view.household.name),
            invited_by=UserSummary.from_domain(view.invited_by),
            token=invitation.token,
            status=invitation.status.value,
            expires_at=invitation.expires_at,
            created_at=invitation.created_at,
        )


class InvitationPreviewResponse(ApiModel):
    email: str
    household: HouseholdName
    invited_by: UserSummary | None
    expires_at: datetime


class AcceptedMembership(ApiModel):
    role: Role
    created_at: datetime


class InvitationAcceptResponse(ApiModel):
    message: str
    household: HouseholdName
    membership: AcceptedMembership


# =============================================================================
# Account groups and accounts
# =============================================================================


class AccountGroupCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    kind: AccountGroupKind = AccountGroupKind.CASH


class AccountGroupPatch(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    kind: AccountGroupKind | None = None

    def to_command(self) -> commands.AccountGroupUpdate:
        return commands.AccountGroupUpdate(name=self.name, kind=self.kind)


class AccountCreateV2(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    group_id: UUID
    currency: str | None = Field(default=None, min_length=1, max_length=10)
    starting_balance: DecimalText = "0"
    is_archived: bool = False
    scope: AccountScope = AccountScope.HOUSEHOLD

    def to_command(self) -> commands.AccountCreate:
        return commands.AccountCreate(
            name=self.name,
            group_id=self.group_id,
            currency=self.currency,
            starting_balance=to_decimal(self.starting_balance),
            is_archived=self.is_archived,
            scope=self.scope,
        )


class PocketCreateV1(ApiModel):
    """Legacy shape: a pocket inside a bank."""

    name: str = Field(..., min_length=1, max_length=100)
    bank_id: UUID

    def to_command(self) -> commands.AccountCreate:
        return commands.AccountCreate(name=self.name, group_id=self.bank_id)


AccountCreateRequest = AccountCreateV2 | PocketCreateV1


class AccountPatch(ApiModel):
    """Partial account update; ``bankId`` is the legacy name for ``groupId``."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    group_id: UUID | None = None
    bank_id: UUID | None = None
    currency: str | None = Field(default=None, min_length=1, max_length=10)
    starting_balance: DecimalText | None = None
    is_archived: bool | None = None
    scope: AccountScope | None = None

    def to_command(self) -> commands.AccountUpdate:
        return commands.AccountUpdate(
            name=self.name,
            group_id=self.group_id or self.bank_id,
            currency=self.currency,
            starting_balance=_optional_decimal(self.starting_balance),
            is_archived=self.is_archived,
            scope=self.scope,
        )


class AccountResponse(ApiModel):
    id: UUID
    name: str
    group_id: UUID
    currency: str
    starting_balance: str
    balance: str
    is_archived: bool
    scope: AccountScope
    owner_user_id: UUID | None
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, account: Account, balance: Decimal) -> "AccountResponse":
        return cls(
            id=account.id,
            name=account.name,
            group_id=account.group_id,
            currency=account.currency,
            starting_balance=format_decimal(account.starting_balance),
            balance=format_decimal(balance),
            is_archived=account.is_archived,
            scope=account.scope,
            owner_user_id=account.owner_user_id,
            created_by_id=account.created_by_id,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )

    @classmethod
    def from_view(cls, view: commands.AccountWithBalance) -> "AccountResponse":
        return cls.from_domain(view.account, view.balance)


class AccountGroupResponse(ApiModel):
    id: UUID
    name: str
    kind: AccountGroupKind
    household_id: UUID
    created_at: datetime
    updated_at: datetime
    accounts: list[AccountResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(
        cls, group: AccountGroup, accounts: list[commands.AccountWithBalance] | None = None
    ) -> "AccountGroupResponse":
        return cls(
            id=group.id,
            name=group.name,
            kind=group.kind,
            household_id=group.household_id,
            created_at=group.created_at,
            updated_at=group.updated_at,
            accounts=[AccountResponse.from_view(a) for a in accounts or []],
        )


# =============================================================================
# Categories
# =============================================================================


class CategoryCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: CategoryType = CategoryType.EXPENSE


class CategoryPatch(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    type: CategoryType | None = None

    def to_command(self) -> commands.CategoryUpdate:
        return commands.CategoryUpdate(name=self.name, type=self.type)


class CategoryResponse(ApiModel):
    id: UUID
    name: str
    type: CategoryType
    household_id: UUID
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            name=category.name,
            type=category.type,
            household_id=category.household_id,
            created_at=category.created_at,
            updated_at=category.updated_at,
        )


# =============================================================================
# Transactions
# =============================================================================


class TransactionCreateV2(ApiModel):
    amount: DecimalText
    type: TransactionType
    account_id: UUID
    category_id: UUID
    description: str | None = Field(default=None, max_length=500)
    transaction_date: WireDate | None = Field(default=None, alias="date")

    def to_command(self) -> commands.TransactionCreate:
        return commands.TransactionCreate(
            account_id=self.account_id,
            category_id=self.category_id,
            amount=to_decimal(self.amount),
            type=self.type,
            description=self.description or None,
            transaction_date=self.transaction_date,
        )


class TransactionCreateV1(ApiModel):
    """Legacy shape: ``pocketId`` instead of ``accountId``."""

    amount: DecimalText
    type: TransactionType
    pocket_id: UUID
    category_id: UUID
    description: str | None = Field(default=None, max_length=500)
    transaction_date: WireDate | None = Field(default=None, alias="date")

    def to_command(self) -> commands.TransactionCreate:
        return commands.TransactionCreate(
            account_id=self.pocket_id,
            category_id=self.category_id,
            amount=to_decimal(self.amount),
            type=self.type,
            description=self.description or None,
            transaction_date=self.transaction_date,
        )


TransactionCreateRequest = TransactionCreateV2 | TransactionCreateV1


class TransactionPatch(ApiModel):
    """Partial transaction update; ``pocketId`` is the legacy name for ``accountId``."""

    amount: DecimalText | None = None
    type: TransactionType | None = None
    account_id: UUID | None = None
    pocket_id: UUID | None = None
    category_id: UUID | None = None
    description: str | None = Field(default=None, max_length=500)
    transaction_date: WireDate | None = Field(default=None, alias="date")

    def to_command(self) -> commands.TransactionUpdate:
        return commands.TransactionUpdate(
            account_id=self.account_id or self.pocket_id,
            category_id=self.category_id,
            amount=_optional_decimal(self.amount),
            type=self.type,
            description=self.description,
            transaction_date=self.transaction_date,
        )


class TransactionResponse(ApiModel):
    id: UUID
    account_id: UUID
    category_id: UUID
    amount: str
    type: TransactionType
    description: str | None
    transaction_date: date = Field(alias="date")
    transfer_group_id: UUID | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, txn: Transaction) -> "TransactionResponse":
        return cls(
            id=txn.id,
            account_id=txn.account_id,
            category_id=txn.category_id,
            amount=format_decimal(txn.signed_amount),
            type=txn.type,
            description=txn.description,
            transaction_date=txn.transaction_date,
            transfer_group_id=txn.transfer_group_id,
            created_at=txn.created_at,
            updated_at=txn.updated_at,
        )


# =============================================================================
# Transfers
# =============================================================================


class TransferCreateV2(ApiModel):
    from_account_id: UUID
    to_account_id: UUID
    amount: DecimalText
    description: str | None = Field(default=None, max_length=500)
    transaction_date: WireDate | None = Field(default=None, alias="date")
    category_id: UUID | None = None
    must_be_same_group: bool = False

    def to_command(self) -> commands.TransferCommand:
        return commands.TransferCommand(
            from_account_id=self.from_account_id,
            to_account_id=self.to_account_id,
            amount=to_decimal(self.amount),
            description=self.description or None,
            transaction_date=self.transaction_date,
            category_id=self.category_id,
            must_be_same_group=self.must_be_same_group,
        )


class TransferCreateV1(ApiModel):
    """Legacy shape: pockets and banks."""

    from_pocket_id: UUID
    to_pocket_id: UUID
    amount: DecimalText
    description: str | None = Field(default=None, max_length=500)
    transaction_date: WireDate | None = Field(default=None, alias="date")
    category_id: UUID | None = None
    must_be_same_bank: bool = False

    def to_command(self) -> commands.TransferCommand:
        return commands.TransferCommand(
            from_account_id=self.from_pocket_id,
            to_account_id=self.to_pocket_id,
            amount=to_decimal(self.amount),
            description=self.description or None,
            transaction_date=self.transaction_date,
            category_id=self.category_id,
            must_be_same_group=self.must_be_same_bank,
        )


TransferCreateRequest = TransferCreateV2 | TransferCreateV1


class TransferCreateResponse(ApiModel):
    transfer_group_id: UUID
    out_txn: TransactionResponse
    in_txn: TransactionResponse

    @classmethod
    def from_details(cls, details: commands.TransferDetails) -> "TransferCreateResponse":
        legs = {leg.type: leg for leg in details.legs}
        return cls(
            transfer_group_id=details.summary.group_id,
            out_txn=TransactionResponse.from_domain(legs[TransactionType.TRANSFER_OUT]),
            in_txn=TransactionResponse.from_domain(legs[TransactionType.TRANSFER_IN]),
        )


class TransferSummaryResponse(ApiModel):
    group_id: UUID
    from_account_id: UUID
    to_account_id: UUID
    from_pocket_id: UUID
    to_pocket_id: UUID
    amount: str
    category_id: UUID
    description: str | None
    transaction_date: date = Field(alias="date")

    @classmethod
    def from_domain(cls, summary: TransferSummary) -> "TransferSummaryResponse":
        return cls(
            group_id=summary.group_id,
            from_account_id=summary.from_account_id,
            to_account_id=summary.to_account_id,
            from_pocket_id=summary.from_account_id,
            to_pocket_id=summary.to_account_id,
            amount=format_decimal(summary.amount),
            category_id=summary.category_id,
            description=summary.description,
            transaction_date=summary.transaction_date,
        )


class TransferResponse(ApiModel):
    summary: TransferSummaryResponse
    legs: list[TransactionResponse]

    @classmethod
    def from_details(cls, details: commands.TransferDetails) -> "TransferResponse":
        return cls(
            summary=TransferSummaryResponse.from_domain(details.summary),
            legs=[TransactionResponse.from_domain(leg) for leg in details.legs],
        )

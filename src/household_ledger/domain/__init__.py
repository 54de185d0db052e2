from household_ledger.domain.auth import TokenPayload, TokenType, User
from household_ledger.domain.entities import Account, AccountGroup, Category
from household_ledger.domain.households import Household, Invitation, Membership
from household_ledger.domain.transactions import (
    IncompleteTransferError,
    Transaction,
    TransferGroup,
    TransferSummary,
)
from household_ledger.domain.value_objects import (
    AccountGroupKind,
    AccountScope,
    CategoryType,
    InvitationStatus,
    Role,
    TransactionType,
    format_decimal,
    parse_decimal,
)

__all__ = [
    "Account",
    "AccountGroup",
    "AccountGroupKind",
    "AccountScope",
    "Category",
    "CategoryType",
    "Household",
    "IncompleteTransferError",
    "Invitation",
    "InvitationStatus",
    "Membership",
    "Role",
    "TokenPayload",
    "TokenType",
    "Transaction",
    "TransactionType",
    "TransferGroup",
    "TransferSummary",
    "User",
    "format_decimal",
    "parse_decimal",
]

from household_ledger.repositories.interfaces import (
    AccountGroupRepository,
    AccountRepository,
    CategoryRepository,
    HouseholdRepository,
    InvitationRepository,
    MembershipRepository,
    TransactionQuery,
    TransactionRepository,
    TransferGroupRepository,
    UserRepository,
)
from household_ledger.repositories.sqlite import (
    SQLiteAccountGroupRepository,
    SQLiteAccountRepository,
    SQLiteCategoryRepository,
    SQLiteDatabase,
    SQLiteHouseholdRepository,
    SQLiteInvitationRepository,
    SQLiteMembershipRepository,
    SQLiteTransactionRepository,
    SQLiteTransferGroupRepository,
    SQLiteUserRepository,
)

__all__ = [
    "AccountGroupRepository",
    "AccountRepository",
    "CategoryRepository",
    "HouseholdRepository",
    "InvitationRepository",
    "MembershipRepository",
    "TransactionQuery",
    "TransactionRepository",
    "TransferGroupRepository",
    "UserRepository",
    "SQLiteAccountGroupRepository",
    "SQLiteAccountRepository",
    "SQLiteCategoryRepository",
    "SQLiteDatabase",
    "SQLiteHouseholdRepository",
    "SQLiteInvitationRepository",
    "SQLiteMembershipRepository",
    "SQLiteTransactionRepository",
    "SQLiteTransferGroupRepository",
    "SQLiteUserRepository",
]

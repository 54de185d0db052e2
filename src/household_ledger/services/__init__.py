from household_ledger.services.access import ScopeFilter
from household_ledger.services.accounts import AccountGroupService, AccountService
from household_ledger.services.auth import (
    AuthService,
    BearerTokenResolver,
    CredentialResolver,
    PasswordHasher,
    SessionCookieResolver,
    TokenService,
)
from household_ledger.services.categories import CategoryService
from household_ledger.services.households import HouseholdService
from household_ledger.services.interfaces import (
    AccountCreate,
    AccountGroupUpdate,
    AccountGroupWithAccounts,
    AccountUpdate,
    AccountWithBalance,
    CategoryUpdate,
    Credentials,
    HouseholdDetails,
    InvitationPreview,
    InvitationView,
    MemberView,
    Profile,
    TenantContext,
    TransactionCreate,
    TransactionFilter,
    TransactionUpdate,
    TransferCommand,
    TransferDetails,
)
from household_ledger.services.ledger import BalanceCalculator, TransactionService
from household_ledger.services.tenancy import TenancyGuard
from household_ledger.services.transfers import TransferService

__all__ = [
    "AccountCreate",
    "AccountGroupService",
    "AccountGroupUpdate",
    "AccountGroupWithAccounts",
    "AccountService",
    "AccountUpdate",
    "AccountWithBalance",
    "AuthService",
    "BalanceCalculator",
    "BearerTokenResolver",
    "CategoryService",
    "CategoryUpdate",
    "CredentialResolver",
    "Credentials",
    "HouseholdDetails",
    "HouseholdService",
    "InvitationPreview",
    "InvitationView",
    "MemberView",
    "PasswordHasher",
    "Profile",
    "ScopeFilter",
    "SessionCookieResolver",
    "TenancyGuard",
    "TenantContext",
    "TokenService",
    "TransactionCreate",
    "TransactionFilter",
    "TransactionService",
    "TransactionUpdate",
    "TransferCommand",
    "TransferDetails",
    "TransferService",
]

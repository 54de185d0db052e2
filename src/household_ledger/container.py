"""Dependency injection container for Household Ledger.

Repositories and services are created lazily on first access and cached
for the container's lifetime.

Usage:
    from household_ledger.container import Container, get_container

    container = get_container()
    transfers = container.transfer_service
"""

from functools import cached_property, lru_cache

from household_ledger.config import Settings, get_settings
from household_ledger.logging_config import get_logger
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
from household_ledger.services.ledger import BalanceCalculator, TransactionService
from household_ledger.services.tenancy import TenancyGuard
from household_ledger.services.transfers import TransferService

logger = get_logger(__name__)


class Container:
    """Dependency injection container.

    Tests build one directly around an in-memory database:

        container = Container(settings=test_settings, database=SQLiteDatabase(":memory:"))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        database: SQLiteDatabase | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._database = database
        logger.debug(
            "container_created",
            environment=self._settings.environment.value,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    @cached_property
    def database(self) -> SQLiteDatabase:
        """The SQLite database, schema created on first access."""
        if self._database is None:
            path = self._settings.database_path
            logger.info("initializing_sqlite_database", path=path)
            # Sync routes run in a threadpool; writes are serialized by the database lock.
            self._database = SQLiteDatabase(path, check_same_thread=False)
        self._database.initialize()
        return self._database

    # -------------------------------------------------------------------------
    # Repositories
    # -------------------------------------------------------------------------

    @cached_property
    def users(self) -> SQLiteUserRepository:
        return SQLiteUserRepository(self.database)

    @cached_property
    def households(self) -> SQLiteHouseholdRepository:
        return SQLiteHouseholdRepository(self.database)

    @cached_property
    def memberships(self) -> SQLiteMembershipRepository:
        return SQLiteMembershipRepository(self.database)

    @cached_property
    def invitations(self) -> SQLiteInvitationRepository:
        return SQLiteInvitationRepository(self.database)

    @cached_property
    def account_groups(self) -> SQLiteAccountGroupRepository:
        return SQLiteAccountGroupRepository(self.database)

    @cached_property
    def accounts(self) -> SQLiteAccountRepository:
        return SQLiteAccountRepository(self.database)

    @cached_property
    def categories(self) -> SQLiteCategoryRepository:
        return SQLiteCategoryRepository(self.database)

    @cached_property
    def transactions(self) -> SQLiteTransactionRepository:
        return SQLiteTransactionRepository(self.database)

    @cached_property
    def transfer_groups(self) -> SQLiteTransferGroupRepository:
        return SQLiteTransferGroupRepository(self.database)

    # -------------------------------------------------------------------------
    # Auth and tenancy
    # -------------------------------------------------------------------------

    @cached_property
    def token_service(self) -> TokenService:
        return TokenService(self._settings.secret_key)

    @cached_property
    def password_hasher(self) -> PasswordHasher:
        return PasswordHasher(iterations=self._settings.password_hash_iterations)

    @cached_property
    def credential_resolvers(self) -> tuple[CredentialResolver, ...]:
        """Resolvers in precedence order: session cookie first, then bearer token."""
        return (
            SessionCookieResolver(self.token_service, self.users),
            BearerTokenResolver(self.token_service, self.users),
        )

    @cached_property
    def auth_service(self) -> AuthService:
        return AuthService(
            database=self.database,
            users=self.users,
            memberships=self.memberships,
            households=self.households,
            tokens=self.token_service,
            resolvers=self.credential_resolvers,
            password_hasher=self.password_hasher,
            settings=self._settings,
        )

    @cached_property
    def tenancy_guard(self) -> TenancyGuard:
        return TenancyGuard(
            self.auth_service,
            self.memberships,
            header_name=self._settings.tenant_header,
        )

    # -------------------------------------------------------------------------
    # Services
    # -------------------------------------------------------------------------

    @cached_property
    def scope_filter(self) -> ScopeFilter:
        return ScopeFilter(self.accounts)

    @cached_property
    def balance_calculator(self) -> BalanceCalculator:
        return BalanceCalculator(self.transactions)

    @cached_property
    def household_service(self) -> HouseholdService:
        return HouseholdService(
            database=self.database,
            households=self.households,
            memberships=self.memberships,
            invitations=self.invitations,
            users=self.users,
            settings=self._settings,
        )

    @cached_property
    def account_group_service(self) -> AccountGroupService:
        return AccountGroupService(
            self.account_groups,
            self.accounts,
            self.scope_filter,
            self.balance_calculator,
        )

    @cached_property
    def account_service(self) -> AccountService:
        return AccountService(
            self.accounts,
            self.account_groups,
            self.scope_filter,
            self.balance_calculator,
            settings=self._settings,
        )

    @cached_property
    def category_service(self) -> CategoryService:
        return CategoryService(self.categories)

    @cached_property
    def transaction_service(self) -> TransactionService:
        return TransactionService(
            self.database,
            self.transactions,
            self.transfer_groups,
            self.categories,
            self.scope_filter,
        )

    @cached_property
    def transfer_service(self) -> TransferService:
        return TransferService(
            self.database,
            self.transactions,
            self.transfer_groups,
            self.categories,
            self.scope_filter,
            transfer_category_name=self._settings.transfer_category_name,
        )

    def close(self) -> None:
        """Close the database connection, if one was opened."""
        if self._database is not None:
            logger.info("closing_database_connection")
            self._database.close()

    def __enter__(self) -> "Container":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


@lru_cache
def get_container() -> Container:
    """The process-wide container, created on first access.

    Tests replace it through FastAPI's dependency_overrides.
    """
    return Container()


def reset_container() -> None:
    """Close and forget the process-wide container."""
    if get_container.cache_info().currsize:
        get_container().close()
    get_container.cache_clear()

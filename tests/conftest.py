from decimal import Decimal

import pytest

from household_ledger.config import Settings
from household_ledger.container import Container
from household_ledger.domain.auth import User
from household_ledger.domain.entities import Account, AccountGroup, Category
from household_ledger.domain.households import Household
from household_ledger.domain.value_objects import AccountScope, CategoryType, Role
from household_ledger.repositories.sqlite import SQLiteDatabase
from household_ledger.services.interfaces import AccountCreate, TenantContext

PASSWORD = "correct-horse-battery"


@pytest.fixture
def password() -> str:
    return PASSWORD


@pytest.fixture
def settings() -> Settings:
    return Settings(
        secret_key="test-secret-key-for-testing-only",
        sqlite_path=":memory:",
        password_hash_iterations=1_000,
    )


@pytest.fixture
def db() -> SQLiteDatabase:
    """In-memory database usable from the test client's worker threads."""
    database = SQLiteDatabase(":memory:", check_same_thread=False)
    database.initialize()
    return database


@pytest.fixture
def container(settings: Settings, db: SQLiteDatabase) -> Container:
    return Container(settings=settings, database=db)


@pytest.fixture
def owner(container: Container) -> User:
    return container.auth_service.register_user("owner@example.com", PASSWORD, "Olivia")


@pytest.fixture
def member(container: Container) -> User:
    return container.auth_service.register_user("member@example.com", PASSWORD, "Marcus")


@pytest.fixture
def outsider(container: Container) -> User:
    return container.auth_service.register_user("outsider@example.com", PASSWORD, "Oscar")


@pytest.fixture
def household(container: Container, owner: User, member: User) -> Household:
    """Household with owner as OWNER and member as MEMBER."""
    household = container.household_service.create_household(owner, "Smith Household")
    view = container.household_service.invite(owner, household.id, member.email)
    container.household_service.accept_invitation(member, view.invitation.token)
    return household


@pytest.fixture
def owner_ctx(owner: User, household: Household) -> TenantContext:
    return TenantContext(user_id=owner.id, household_id=household.id, role=Role.OWNER)


@pytest.fixture
def member_ctx(member: User, household: Household) -> TenantContext:
    return TenantContext(user_id=member.id, household_id=household.id, role=Role.MEMBER)


@pytest.fixture
def other_household(container: Container, outsider: User) -> Household:
    return container.household_service.create_household(outsider, "Other Household")


@pytest.fixture
def outsider_ctx(outsider: User, other_household: Household) -> TenantContext:
    return TenantContext(
        user_id=outsider.id, household_id=other_household.id, role=Role.OWNER
    )


@pytest.fixture
def bank_group(container: Container, owner_ctx: TenantContext) -> AccountGroup:
    return container.account_group_service.create_group(owner_ctx, "Bank")


@pytest.fixture
def joint(
    container: Container, owner_ctx: TenantContext, bank_group: AccountGroup
) -> Account:
    return container.account_service.create_account(
        owner_ctx, AccountCreate(name="Joint", group_id=bank_group.id)
    ).account


@pytest.fixture
def owner_wallet(
    container: Container, owner_ctx: TenantContext, bank_group: AccountGroup
) -> Account:
    return container.account_service.create_account(
        owner_ctx,
        AccountCreate(
            name="O-Wallet", group_id=bank_group.id, scope=AccountScope.PERSONAL
        ),
    ).account


@pytest.fixture
def savings(
    container: Container, owner_ctx: TenantContext, bank_group: AccountGroup
) -> Account:
    return container.account_service.create_account(
        owner_ctx,
        AccountCreate(
            name="Savings", group_id=bank_group.id, starting_balance=Decimal("1000.50")
        ),
    ).account


@pytest.fixture
def groceries(container: Container, owner_ctx: TenantContext) -> Category:
    return container.category_service.create_category(owner_ctx, "Groceries")


@pytest.fixture
def salary(container: Container, owner_ctx: TenantContext) -> Category:
    return container.category_service.create_category(
        owner_ctx, "Salary", CategoryType.INCOME
    )

"""Tests for the SQLite database and repositories."""

import threading
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from household_ledger.container import Container
from household_ledger.domain.auth import User
from household_ledger.domain.entities import Account, AccountGroup, Category
from household_ledger.domain.households import Household, Membership
from household_ledger.domain.transactions import Transaction, TransferGroup
from household_ledger.domain.value_objects import CategoryType, Role, TransactionType
from household_ledger.exceptions import ConflictError
from household_ledger.repositories.interfaces import TransactionQuery
from household_ledger.repositories.sqlite import (
    SQLiteDatabase,
    SQLiteHouseholdRepository,
    SQLiteMembershipRepository,
    SQLiteUserRepository,
)


@pytest.fixture
def user_repo(db: SQLiteDatabase) -> SQLiteUserRepository:
    return SQLiteUserRepository(db)


def _expense(account: Account, category: Category, amount: str, **kwargs) -> Transaction:
    return Transaction(
        account_id=account.id,
        category_id=category.id,
        magnitude=Decimal(amount),
        type=TransactionType.EXPENSE,
        **kwargs,
    )


class TestSQLiteDatabaseTransaction:
    def test_commits_all_writes(self, db: SQLiteDatabase, user_repo: SQLiteUserRepository):
        first, second = User(email="a@example.com"), User(email="b@example.com")

        with db.transaction():
            user_repo.add(first)
            user_repo.add(second)

        assert user_repo.get(first.id) is not None
        assert user_repo.get(second.id) is not None

    def test_rolls_back_all_writes_on_error(
        self, db: SQLiteDatabase, user_repo: SQLiteUserRepository
    ):
        user = User(email="a@example.com")

        with pytest.raises(RuntimeError):
            with db.transaction():
                user_repo.add(user)
                raise RuntimeError("boom")

        assert user_repo.get(user.id) is None

    def test_integrity_error_becomes_conflict_and_rolls_back(
        self, db: SQLiteDatabase, user_repo: SQLiteUserRepository
    ):
        first = User(email="dup@example.com")
        duplicate = User(email="dup@example.com")
        bystander = User(email="c@example.com")

        with pytest.raises(ConflictError):
            with db.transaction():
                user_repo.add(bystander)
                user_repo.add(first)
                user_repo.add(duplicate)

        assert user_repo.get(bystander.id) is None
        assert user_repo.get(first.id) is None

    def test_nested_conflict_can_be_handled_inside_outer_transaction(
        self, db: SQLiteDatabase, user_repo: SQLiteUserRepository
    ):
        first = User(email="dup@example.com")
        user_repo.add(first)
        other = User(email="other@example.com")

        with db.transaction():
            with pytest.raises(ConflictError):
                user_repo.add(User(email="dup@example.com"))
            user_repo.add(other)

        assert user_repo.get(other.id) is not None

    def test_not_in_transaction_after_close_of_block(self, db: SQLiteDatabase):
        with db.transaction():
            pass
        assert not db.get_connection().in_transaction


class TestSQLiteDatabaseConcurrentReads:
    def test_reader_on_other_thread_never_sees_half_written_transfer(
        self, container: Container, household: Household, joint: Account, groceries: Category
    ):
        group = TransferGroup(household_id=household.id)
        out_leg = Transaction(
            account_id=joint.id,
            category_id=groceries.id,
            magnitude=Decimal("50000"),
            type=TransactionType.TRANSFER_OUT,
            transfer_group_id=group.id,
        )
        written = threading.Event()
        release = threading.Event()
        seen: dict[str, object] = {}

        def write_then_fail() -> None:
            try:
                with container.database.transaction():
                    container.transfer_groups.add(group)
                    container.transactions.add(out_leg)
                    written.set()
                    release.wait(timeout=5)
                    raise RuntimeError("second leg failed")
            except RuntimeError:
                pass

        def read() -> None:
            seen["legs"] = list(container.transactions.list_by_transfer_group(group.id))
            seen["balance"] = container.balance_calculator.balance(joint)

        writer = threading.Thread(target=write_then_fail)
        reader = threading.Thread(target=read)
        writer.start()
        assert written.wait(timeout=5)
        reader.start()

        reader.join(timeout=0.2)
        assert reader.is_alive()

        release.set()
        writer.join(timeout=5)
        reader.join(timeout=5)

        assert seen["legs"] == []
        assert seen["balance"] == Decimal("0")
        assert container.transfer_groups.get(group.id) is None


class TestSQLiteMembershipRepository:
    def test_membership_is_unique_per_user_and_household(self, db: SQLiteDatabase):
        users = SQLiteUserRepository(db)
        households = SQLiteHouseholdRepository(db)
        memberships = SQLiteMembershipRepository(db)
        user = User(email="a@example.com")
        household = Household(name="Home")
        users.add(user)
        households.add(household)

        memberships.add(Membership(user_id=user.id, household_id=household.id, role=Role.OWNER))
        with pytest.raises(ConflictError):
            memberships.add(Membership(user_id=user.id, household_id=household.id))

        stored = memberships.get(user.id, household.id)
        assert stored is not None
        assert stored.role == Role.OWNER
        assert [h.id for h in households.list_for_user(user.id)] == [household.id]


class TestSQLiteCategoryRepository:
    def test_name_is_unique_per_household(
        self, container: Container, household: Household, other_household: Household
    ):
        repo = container.categories
        repo.add(Category(name="Food", household_id=household.id))
        repo.add(Category(name="Food", household_id=other_household.id))

        with pytest.raises(ConflictError):
            repo.add(Category(name="Food", household_id=household.id))

    def test_list_is_ordered_by_type_then_name(self, container: Container, household: Household):
        repo = container.categories
        for name, category_type in [
            ("Zoo", CategoryType.EXPENSE),
            ("Bonus", CategoryType.INCOME),
            ("Apples", CategoryType.EXPENSE),
        ]:
            repo.add(Category(name=name, household_id=household.id, type=category_type))

        names = [c.name for c in repo.list_by_household(household.id)]
        assert names == ["Apples", "Zoo", "Bonus"]

        income = list(repo.list_by_household(household.id, CategoryType.INCOME))
        assert [c.name for c in income] == ["Bonus"]


class TestSQLiteTransactionRepository:
    def test_round_trips_decimal_exactly(
        self, container: Container, joint: Account, groceries: Category
    ):
        txn = _expense(joint, groceries, "0.10")
        container.transactions.add(txn)

        stored = container.transactions.get(txn.id)
        assert stored is not None
        assert stored.magnitude == Decimal("0.10")
        assert stored.type == TransactionType.EXPENSE

    def test_query_filters_and_orders_newest_first(
        self, container: Container, joint: Account, groceries: Category, salary: Category
    ):
        repo = container.transactions
        older = _expense(joint, groceries, "5", transaction_date=date(2025, 1, 1),
                         description="Weekly MARKET run")
        newer = _expense(joint, groceries, "7", transaction_date=date(2025, 2, 1),
                         description="Bakery")
        income = Transaction(
            account_id=joint.id,
            category_id=salary.id,
            magnitude=Decimal("100"),
            type=TransactionType.INCOME,
            transaction_date=date(2025, 3, 1),
        )
        for txn in (older, newer, income):
            repo.add(txn)

        everything = list(repo.query(TransactionQuery(account_ids=(joint.id,))))
        assert [t.id for t in everything] == [income.id, newer.id, older.id]

        by_text = repo.query(TransactionQuery(account_ids=(joint.id,), text="market"))
        assert [t.id for t in by_text] == [older.id]

        by_type = repo.query(
            TransactionQuery(account_ids=(joint.id,), type=TransactionType.INCOME)
        )
        assert [t.id for t in by_type] == [income.id]

        by_range = repo.query(
            TransactionQuery(
                account_ids=(joint.id,),
                date_from=date(2025, 1, 15),
                date_to=date(2025, 2, 15),
            )
        )
        assert [t.id for t in by_range] == [newer.id]

    def test_query_without_accounts_is_empty(self, container: Container):
        assert list(container.transactions.query(TransactionQuery(account_ids=()))) == []

    def test_category_in_use_cannot_be_deleted(
        self, container: Container, joint: Account, groceries: Category
    ):
        container.transactions.add(_expense(joint, groceries, "5"))

        assert container.categories.is_in_use(groceries.id)
        with pytest.raises(ConflictError):
            container.categories.delete(groceries.id)


class TestCascades:
    def _transfer(
        self, container: Container, source: Account, target: Account, category: Category
    ) -> TransferGroup:
        group = TransferGroup(household_id=category.household_id)
        container.transfer_groups.add(group)
        for account, txn_type in (
            (source, TransactionType.TRANSFER_OUT),
            (target, TransactionType.TRANSFER_IN),
        ):
            container.transactions.add(
                Transaction(
                    account_id=account.id,
                    category_id=category.id,
                    magnitude=Decimal("10"),
                    type=txn_type,
                    transfer_group_id=group.id,
                )
            )
        return group

    def test_deleting_account_removes_whole_transfers(
        self,
        container: Container,
        joint: Account,
        savings: Account,
        groceries: Category,
    ):
        group = self._transfer(container, joint, savings, groceries)

        container.accounts.delete(joint.id)

        assert container.transfer_groups.get(group.id) is None
        assert list(container.transactions.list_by_account(savings.id)) == []

    def test_deleting_group_removes_accounts_and_transactions(
        self,
        container: Container,
        bank_group: AccountGroup,
        joint: Account,
        groceries: Category,
    ):
        container.transactions.add(_expense(joint, groceries, "3"))

        container.account_groups.delete(bank_group.id)

        assert container.accounts.get(joint.id) is None
        assert container.transactions.count() == 0

    def test_deleting_transfer_group_removes_both_legs(
        self,
        container: Container,
        joint: Account,
        savings: Account,
        groceries: Category,
    ):
        group = self._transfer(container, joint, savings, groceries)

        container.transfer_groups.delete(group.id)

        assert list(container.transactions.list_by_transfer_group(group.id)) == []
        assert container.transfer_groups.count() == 0

    def test_account_lookup_is_household_scoped(
        self, container: Container, joint: Account, other_household: Household
    ):
        assert container.accounts.get_for_household(joint.id, other_household.id) is None
        assert container.accounts.get_for_household(uuid4(), other_household.id) is None

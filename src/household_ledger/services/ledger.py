"""Ledger services: balances and single-account transactions."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from household_ledger.domain.entities import Account, Category
from household_ledger.domain.transactions import Transaction
from household_ledger.exceptions import (
    InvalidOperationError,
    TransactionNotFoundError,
)
from household_ledger.logging_config import get_logger
from household_ledger.repositories.interfaces import (
    CategoryRepository,
    TransactionQuery,
    TransactionRepository,
    TransferGroupRepository,
)
from household_ledger.repositories.sqlite import SQLiteDatabase
from household_ledger.services.access import ScopeFilter
from household_ledger.services.interfaces import (
    TenantContext,
    TransactionCreate,
    TransactionFilter,
    TransactionUpdate,
)

logger = get_logger(__name__)


class BalanceCalculator:
    """Derives balances as starting_balance plus the signed sum of transactions.

    Balances are never stored. Every call reads the current transaction
    set and sums it with Decimal arithmetic.
    """

    def __init__(self, transactions: TransactionRepository) -> None:
        self._transactions = transactions

    def balance(self, account: Account) -> Decimal:
        return self.balances([account])[account.id]

    def balances(self, accounts: Iterable[Account]) -> dict[UUID, Decimal]:
        """Balances for many accounts from a single query."""
        accounts = list(accounts)
        totals: dict[UUID, Decimal] = defaultdict(lambda: Decimal("0"))
        for account_id, txn_type, magnitude in self._transactions.list_amounts(
            account.id for account in accounts
        ):
            totals[account_id] += -magnitude if txn_type.is_outflow else magnitude
        return {
            account.id: account.starting_balance + totals[account.id]
            for account in accounts
        }


def require_household_category(
    categories: CategoryRepository, ctx: TenantContext, category_id: UUID
) -> Category:
    category = categories.get(category_id)
    if category is None or category.household_id != ctx.household_id:
        raise InvalidOperationError(
            "Category not in this household", category_id=category_id
        )
    return category


class TransactionService:
    """CRUD over transactions, scoped to the caller's visible accounts."""

    def __init__(
        self,
        database: SQLiteDatabase,
        transactions: TransactionRepository,
        transfer_groups: TransferGroupRepository,
        categories: CategoryRepository,
        scope_filter: ScopeFilter,
    ) -> None:
        self._db = database
        self._transactions = transactions
        self._transfer_groups = transfer_groups
        self._categories = categories
        self._scope = scope_filter

    def list_transactions(
        self, ctx: TenantContext, filters: TransactionFilter | None = None
    ) -> list[Transaction]:
        filters = filters or TransactionFilter()
        if filters.account_id is not None:
            account_ids: tuple[UUID, ...] = (
                self._scope.require_accessible(ctx, filters.account_id).id,
            )
        else:
            account_ids = tuple(a.id for a in self._scope.visible_accounts(ctx))

        return list(
            self._transactions.query(
                TransactionQuery(
                    account_ids=account_ids,
                    category_id=filters.category_id,
                    type=filters.type,
                    date_from=filters.date_from,
                    date_to=filters.date_to,
                    text=filters.q.strip() if filters.q else None,
                )
            )
        )

    def get_transaction(self, ctx: TenantContext, txn_id: UUID) -> Transaction:
        txn = self._transactions.get_for_household(txn_id, ctx.household_id)
        if txn is None:
            raise TransactionNotFoundError(txn_id)
        self._scope.require_account(ctx, txn.account_id)
        return txn

    def create_transaction(
        self, ctx: TenantContext, command: TransactionCreate
    ) -> Transaction:
        self._scope.require_accessible(ctx, command.account_id)
        require_household_category(self._categories, ctx, command.category_id)

        txn = Transaction(
            account_id=command.account_id,
            category_id=command.category_id,
            magnitude=abs(command.amount),
            type=command.type,
            description=command.description,
            transaction_date=command.transaction_date or date.today(),
        )
        self._transactions.add(txn)

        logger.info(
            "transaction_created",
            transaction_id=str(txn.id),
            account_id=str(txn.account_id),
            type=txn.type.value,
        )
        return txn

    def update_transaction(
        self, ctx: TenantContext, txn_id: UUID, command: TransactionUpdate
    ) -> Transaction:
        """Apply a partial update.

        The stored magnitude and type are independent, so changing only the
        type re-signs the amount exactly once, however often it is repeated.
        """
        txn = self.get_transaction(ctx, txn_id)

        if txn.is_transfer_leg and (
            command.amount is not None
            or command.account_id is not None
            or (command.type is not None and command.type != txn.type)
        ):
            raise InvalidOperationError(
                "Transfer legs can only change description, date or category",
                transaction_id=txn_id,
            )

        if command.account_id is not None and command.account_id != txn.account_id:
            txn.account_id = self._scope.require_accessible(ctx, command.account_id).id
        if command.category_id is not None:
            txn.category_id = require_household_category(
                self._categories, ctx, command.category_id
            ).id
        if command.amount is not None:
            txn.magnitude = abs(command.amount)
        if command.type is not None:
            txn.type = command.type
        if command.description is not None:
            txn.description = command.description or None
        if command.transaction_date is not None:
            txn.transaction_date = command.transaction_date

        if txn.is_transfer_leg:
            self._update_transfer_legs(ctx, txn)
        else:
            txn.touch()
            self._transactions.update(txn)

        logger.info("transaction_updated", transaction_id=str(txn.id))
        return txn

    def _update_transfer_legs(self, ctx: TenantContext, edited: Transaction) -> None:
        """Write an edited leg and copy its category, description and date to the other leg."""
        legs = self._transactions.list_by_transfer_group(edited.transfer_group_id)
        others = [leg for leg in legs if leg.id != edited.id]
        for leg in others:
            self._scope.require_accessible(ctx, leg.account_id)
            leg.category_id = edited.category_id
            leg.description = edited.description
            leg.transaction_date = edited.transaction_date

        with self._db.transaction():
            for leg in [edited, *others]:
                leg.touch()
                self._transactions.update(leg)

    def delete_transaction(self, ctx: TenantContext, txn_id: UUID) -> None:
        """Delete a transaction. Deleting a transfer leg deletes the whole transfer."""
        txn = self.get_transaction(ctx, txn_id)
        if txn.transfer_group_id is None:
            self._transactions.delete(txn.id)
            logger.info("transaction_deleted", transaction_id=str(txn.id))
            return

        for leg in self._transactions.list_by_transfer_group(txn.transfer_group_id):
            self._scope.require_accessible(ctx, leg.account_id)
        self._transfer_groups.delete(txn.transfer_group_id)
        logger.info(
            "transfer_deleted",
            transfer_group_id=str(txn.transfer_group_id),
            via_transaction_id=str(txn.id),
        )

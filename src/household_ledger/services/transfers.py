"""Transfer engine: two linked legs and a transfer group, written atomically."""

from datetime import date
from decimal import Decimal
from uuid import UUID

from household_ledger.domain.entities import Category
from household_ledger.domain.transactions import (
    IncompleteTransferError,
    Transaction,
    TransferGroup,
    TransferSummary,
)
from household_ledger.domain.value_objects import CategoryType, TransactionType
from household_ledger.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidAmountError,
    InvalidOperationError,
    TransferNotFoundError,
)
from household_ledger.logging_config import get_logger
from household_ledger.repositories.interfaces import (
    CategoryRepository,
    TransactionRepository,
    TransferGroupRepository,
)
from household_ledger.repositories.sqlite import SQLiteDatabase
from household_ledger.services.access import ScopeFilter
from household_ledger.services.interfaces import (
    TenantContext,
    TransferCommand,
    TransferDetails,
)
from household_ledger.services.ledger import require_household_category

logger = get_logger(__name__)


class TransferService:
    """Moves money between two accounts as one symmetric, atomic operation.

    A transfer is a TransferGroup plus exactly two transactions: a
    TRANSFER_OUT leg on the source and a TRANSFER_IN leg on the
    destination, sharing magnitude, category, description and date. The
    group and its legs are created and deleted together.
    """

    def __init__(
        self,
        database: SQLiteDatabase,
        transactions: TransactionRepository,
        transfer_groups: TransferGroupRepository,
        categories: CategoryRepository,
        scope_filter: ScopeFilter,
        transfer_category_name: str = "Transfer",
    ) -> None:
        self._db = database
        self._transactions = transactions
        self._transfer_groups = transfer_groups
        self._categories = categories
        self._scope = scope_filter
        self._category_name = transfer_category_name

    def create_transfer(
        self, ctx: TenantContext, command: TransferCommand
    ) -> TransferDetails:
        """Validate everything, then write the group and both legs in one unit of work.

        Raises:
            InvalidOperationError: Same account on both sides, non-positive amount,
                group mismatch or a category outside the household
            ForbiddenError: Either account is missing, in another household,
                or someone else's personal account
        """
        if command.from_account_id == command.to_account_id:
            raise InvalidOperationError(
                "from_account_id and to_account_id must differ",
                account_id=command.from_account_id,
            )
        if command.amount <= Decimal("0"):
            raise InvalidAmountError(command.amount, "must be positive")

        source = self._scope.require_accessible(ctx, command.from_account_id)
        destination = self._scope.require_accessible(ctx, command.to_account_id)

        if command.must_be_same_group and source.group_id != destination.group_id:
            raise InvalidOperationError(
                "Accounts must belong to the same group",
                from_group_id=source.group_id,
                to_group_id=destination.group_id,
            )

        if command.category_id is not None:
            category = require_household_category(
                self._categories, ctx, command.category_id
            )
        else:
            category = None

        when = command.transaction_date or date.today()
        group = TransferGroup(household_id=ctx.household_id)

        with self._db.transaction():
            if category is None:
                category = self._transfer_category(ctx.household_id)
            self._transfer_groups.add(group)
            out_leg = Transaction(
                account_id=source.id,
                category_id=category.id,
                magnitude=command.amount,
                type=TransactionType.TRANSFER_OUT,
                description=command.description,
                transaction_date=when,
                transfer_group_id=group.id,
            )
            in_leg = Transaction(
                account_id=destination.id,
                category_id=category.id,
                magnitude=command.amount,
                type=TransactionType.TRANSFER_IN,
                description=command.description,
                transaction_date=when,
                transfer_group_id=group.id,
            )
            self._transactions.add(out_leg)
            self._transactions.add(in_leg)

        logger.info(
            "transfer_created",
            transfer_group_id=str(group.id),
            from_account_id=str(source.id),
            to_account_id=str(destination.id),
            amount=str(command.amount),
        )
        legs = [out_leg, in_leg]
        return TransferDetails(
            summary=TransferSummary.from_legs(group.id, legs), legs=legs
        )

    def get_transfer(self, ctx: TenantContext, group_id: UUID) -> TransferDetails:
        legs = self._accessible_legs(ctx, group_id)
        try:
            summary = TransferSummary.from_legs(group_id, legs)
        except IncompleteTransferError:
            raise TransferNotFoundError(group_id) from None
        return TransferDetails(summary=summary, legs=legs)

    def delete_transfer(self, ctx: TenantContext, group_id: UUID) -> None:
        self._accessible_legs(ctx, group_id)
        self._transfer_groups.delete(group_id)
        logger.info("transfer_deleted", transfer_group_id=str(group_id))

    def _accessible_legs(self, ctx: TenantContext, group_id: UUID) -> list[Transaction]:
        group = self._transfer_groups.get(group_id)
        if group is None or group.household_id != ctx.household_id:
            raise TransferNotFoundError(group_id)

        legs = list(self._transactions.list_by_transfer_group(group_id))
        for account_id in {leg.account_id for leg in legs}:
            try:
                self._scope.require_accessible(ctx, account_id)
            except ForbiddenError:
                raise ForbiddenError(
                    "Forbidden: transfer involves inaccessible account(s)",
                    transfer_group_id=group_id,
                ) from None
        return legs

    def _transfer_category(self, household_id: UUID) -> Category:
        """Find or create the household's transfer category.

        The (household_id, name) uniqueness rule settles creation races: on
        conflict the row another writer created is fetched instead.
        """
        existing = self._categories.get_by_name(household_id, self._category_name)
        if existing is not None:
            return existing

        category = Category(
            name=self._category_name,
            household_id=household_id,
            type=CategoryType.EXPENSE,
        )
        try:
            self._categories.add(category)
        except ConflictError:
            existing = self._categories.get_by_name(household_id, self._category_name)
            if existing is None:
                raise
            return existing
        logger.info(
            "transfer_category_created",
            household_id=str(household_id),
            category_id=str(category.id),
        )
        return category

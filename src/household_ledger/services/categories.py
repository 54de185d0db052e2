"""Household-scoped categories. Names are unique within a household."""

from uuid import UUID

from household_ledger.domain.entities import Category
from household_ledger.domain.value_objects import CategoryType
from household_ledger.exceptions import CategoryNotFoundError, ConflictError
from household_ledger.logging_config import get_logger
from household_ledger.repositories.interfaces import CategoryRepository
from household_ledger.services.interfaces import CategoryUpdate, TenantContext

logger = get_logger(__name__)


class CategoryService:
    def __init__(self, categories: CategoryRepository) -> None:
        self._categories = categories

    def list_categories(
        self, ctx: TenantContext, category_type: CategoryType | None = None
    ) -> list[Category]:
        return list(self._categories.list_by_household(ctx.household_id, category_type))

    def get_category(self, ctx: TenantContext, category_id: UUID) -> Category:
        category = self._categories.get(category_id)
        if category is None or category.household_id != ctx.household_id:
            raise CategoryNotFoundError(category_id)
        return category

    def create_category(
        self,
        ctx: TenantContext,
        name: str,
        category_type: CategoryType = CategoryType.EXPENSE,
    ) -> Category:
        """Create a category.

        Duplicate names are rejected by the (household_id, name) uniqueness
        rule in the store, so concurrent creates cannot both succeed.
        """
        category = Category(name=name, household_id=ctx.household_id, type=category_type)
        try:
            self._categories.add(category)
        except ConflictError:
            raise ConflictError(
                "Category name already exists in this household", name=name
            ) from None
        logger.info("category_created", category_id=str(category.id), name=name)
        return category

    def update_category(
        self, ctx: TenantContext, category_id: UUID, command: CategoryUpdate
    ) -> Category:
        category = self.get_category(ctx, category_id)
        if command.name is not None:
            category.name = command.name
        if command.type is not None:
            category.type = command.type
        category.touch()
        try:
            self._categories.update(category)
        except ConflictError:
            raise ConflictError(
                "Category name already exists in this household", name=category.name
            ) from None
        return category

    def delete_category(self, ctx: TenantContext, category_id: UUID) -> None:
        category = self.get_category(ctx, category_id)
        if self._categories.is_in_use(category.id):
            raise ConflictError(
                "Category is used by existing transactions", category_id=category.id
            )
        self._categories.delete(category.id)
        logger.info("category_deleted", category_id=str(category.id))

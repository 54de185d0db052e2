"""Scope filter: which accounts a resolved caller may read or mutate."""

from collections.abc import Iterable
from uuid import UUID

from household_ledger.domain.entities import Account
from household_ledger.domain.value_objects import AccountScope
from household_ledger.exceptions import (
    AccountNotFoundError,
    ForbiddenError,
    OwnerRequiredError,
    PersonalAccountError,
)
from household_ledger.logging_config import get_logger
from household_ledger.repositories.interfaces import AccountRepository
from household_ledger.services.interfaces import TenantContext

logger = get_logger(__name__)


class ScopeFilter:
    """Applies the HOUSEHOLD/PERSONAL visibility rule.

    Household accounts are visible to every member; personal accounts
    only to their owner. The creator of an account is irrelevant except
    for the HOUSEHOLD -> PERSONAL scope change.
    """

    def __init__(self, accounts: AccountRepository) -> None:
        self._accounts = accounts

    def is_visible(self, ctx: TenantContext, account: Account) -> bool:
        return account.is_visible_to(ctx.user_id)

    def filter_accounts(
        self, ctx: TenantContext, accounts: Iterable[Account]
    ) -> list[Account]:
        return [account for account in accounts if self.is_visible(ctx, account)]

    def visible_accounts(self, ctx: TenantContext) -> list[Account]:
        return self.filter_accounts(
            ctx, self._accounts.list_by_household(ctx.household_id)
        )

    def require_account(self, ctx: TenantContext, account_id: UUID) -> Account:
        """Fetch an account for read or mutation.

        Raises:
            AccountNotFoundError: If it does not exist or belongs to another household
            PersonalAccountError: If it is someone else's personal account
        """
        account = self._accounts.get_for_household(account_id, ctx.household_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        if not self.is_visible(ctx, account):
            logger.info(
                "account_access_denied",
                user_id=str(ctx.user_id),
                account_id=str(account_id),
            )
            raise PersonalAccountError(account_id)
        return account

    def require_accessible(self, ctx: TenantContext, account_id: UUID) -> Account:
        """Like require_account, but every failure is a flat 403."""
        account = self._accounts.get_for_household(account_id, ctx.household_id)
        if account is None or not self.is_visible(ctx, account):
            raise ForbiddenError("Forbidden: account not accessible", account_id=account_id)
        return account

    def check_scope_change(
        self, ctx: TenantContext, account: Account, new_scope: AccountScope
    ) -> None:
        if new_scope == account.scope:
            return
        if new_scope == AccountScope.HOUSEHOLD:
            return
        if account.created_by_id != ctx.user_id:
            raise ForbiddenError(
                "Forbidden: only the account creator can make it personal",
                account_id=account.id,
            )

    def check_can_delete(self, ctx: TenantContext, account: Account) -> None:
        if account.scope == AccountScope.HOUSEHOLD:
            if not ctx.is_owner:
                raise OwnerRequiredError("delete household accounts", ctx.household_id)
            return
        if account.owner_user_id != ctx.user_id:
            raise PersonalAccountError(account.id)

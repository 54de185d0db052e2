"""Account groups and accounts, always returned with derived balances."""

from uuid import UUID

from household_ledger.config import Settings, get_settings
from household_ledger.domain.entities import Account, AccountGroup
from household_ledger.domain.value_objects import AccountGroupKind, AccountScope
from household_ledger.exceptions import (
    AccountGroupNotFoundError,
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
)
from household_ledger.logging_config import get_logger
from household_ledger.repositories.interfaces import (
    AccountGroupRepository,
    AccountRepository,
)
from household_ledger.services.access import ScopeFilter
from household_ledger.services.interfaces import (
    AccountCreate,
    AccountGroupUpdate,
    AccountGroupWithAccounts,
    AccountUpdate,
    AccountWithBalance,
    TenantContext,
)
from household_ledger.services.ledger import BalanceCalculator

logger = get_logger(__name__)


class AccountGroupService:
    def __init__(
        self,
        groups: AccountGroupRepository,
        accounts: AccountRepository,
        scope_filter: ScopeFilter,
        balances: BalanceCalculator,
    ) -> None:
        self._groups = groups
        self._accounts = accounts
        self._scope = scope_filter
        self._balances = balances

    def list_groups(self, ctx: TenantContext) -> list[AccountGroupWithAccounts]:
        visible = self._scope.visible_accounts(ctx)
        balances = self._balances.balances(visible)
        result = []
        for group in self._groups.list_by_household(ctx.household_id):
            accounts = [
                AccountWithBalance(account=a, balance=balances[a.id])
                for a in visible
                if a.group_id == group.id
            ]
            result.append(AccountGroupWithAccounts(group=group, accounts=accounts))
        return result

    def get_group(self, ctx: TenantContext, group_id: UUID) -> AccountGroupWithAccounts:
        group = self._require_group(ctx, group_id)
        visible = self._scope.filter_accounts(ctx, self._accounts.list_by_group(group.id))
        balances = self._balances.balances(visible)
        return AccountGroupWithAccounts(
            group=group,
            accounts=[AccountWithBalance(a, balances[a.id]) for a in visible],
        )

    def create_group(
        self,
        ctx: TenantContext,
        name: str,
        kind: AccountGroupKind = AccountGroupKind.CASH,
    ) -> AccountGroup:
        group = AccountGroup(name=name, household_id=ctx.household_id, kind=kind)
        try:
            self._groups.add(group)
        except ConflictError:
            raise ConflictError(
                "Account Group name already exists in this household", name=name
            ) from None
        logger.info("account_group_created", group_id=str(group.id), name=name)
        return group

    def update_group(
        self, ctx: TenantContext, group_id: UUID, command: AccountGroupUpdate
    ) -> AccountGroup:
        group = self._require_group(ctx, group_id)
        if command.name is not None:
            group.name = command.name
        if command.kind is not None:
            group.kind = command.kind
        group.touch()
        try:
            self._groups.update(group)
        except ConflictError:
            raise ConflictError(
                "Account Group name already exists in this household", name=group.name
            ) from None
        return group

    def delete_group(self, ctx: TenantContext, group_id: UUID) -> None:
        """Delete a group and, by cascade, its accounts and their transactions.

        Every account in the group must pass the single-account delete rule.
        """
        group = self._require_group(ctx, group_id)
        for account in self._accounts.list_by_group(group.id):
            if not self._scope.is_visible(ctx, account):
                raise ForbiddenError(
                    "Forbidden: Account Group holds another member's personal account",
                    group_id=group.id,
                )
            self._scope.check_can_delete(ctx, account)
        self._groups.delete(group.id)
        logger.info("account_group_deleted", group_id=str(group.id))

    def _require_group(self, ctx: TenantContext, group_id: UUID) -> AccountGroup:
        group = self._groups.get(group_id)
        if group is None or group.household_id != ctx.household_id:
            raise AccountGroupNotFoundError(group_id)
        return group


class AccountService:
    def __init__(
        self,
        accounts: AccountRepository,
        groups: AccountGroupRepository,
        scope_filter: ScopeFilter,
        balances: BalanceCalculator,
        settings: Settings | None = None,
    ) -> None:
        self._accounts = accounts
        self._groups = groups
        self._scope = scope_filter
        self._balances = balances
        self._settings = settings or get_settings()

    def list_accounts(self, ctx: TenantContext) -> list[AccountWithBalance]:
        visible = self._scope.visible_accounts(ctx)
        balances = self._balances.balances(visible)
        return [AccountWithBalance(a, balances[a.id]) for a in visible]

    def get_account(self, ctx: TenantContext, account_id: UUID) -> AccountWithBalance:
        account = self._scope.require_account(ctx, account_id)
        return AccountWithBalance(account, self._balances.balance(account))

    def create_account(self, ctx: TenantContext, command: AccountCreate) -> AccountWithBalance:
        self._require_household_group(ctx, command.group_id)
        account = Account(
            name=command.name,
            group_id=command.group_id,
            created_by_id=ctx.user_id,
            currency=command.currency or self._settings.default_currency,
            starting_balance=command.starting_balance,
            is_archived=command.is_archived,
            scope=command.scope,
            owner_user_id=ctx.user_id if command.scope == AccountScope.PERSONAL else None,
        )
        try:
            self._accounts.add(account)
        except ConflictError:
            raise ConflictError(
                "Account name already exists in this group", name=command.name
            ) from None
        logger.info(
            "account_created",
            account_id=str(account.id),
            scope=account.scope.value,
        )
        return AccountWithBalance(account, account.starting_balance)

    def update_account(
        self, ctx: TenantContext, account_id: UUID, command: AccountUpdate
    ) -> AccountWithBalance:
        account = self._scope.require_account(ctx, account_id)

        if command.group_id is not None:
            account.group_id = self._require_household_group(ctx, command.group_id).id
        if command.scope is not None:
            self._scope.check_scope_change(ctx, account, command.scope)
            if command.scope != account.scope:
                account.change_scope(command.scope, ctx.user_id)
                logger.info(
                    "account_scope_changed",
                    account_id=str(account.id),
                    scope=account.scope.value,
                )
        if command.name is not None:
            account.name = command.name
        if command.currency is not None:
            account.currency = command.currency
        if command.starting_balance is not None:
            account.starting_balance = command.starting_balance
        if command.is_archived is not None:
            account.is_archived = command.is_archived
        account.touch()

        try:
            self._accounts.update(account)
        except ConflictError:
            raise ConflictError(
                "Account name already exists in this group", name=account.name
            ) from None
        return AccountWithBalance(account, self._balances.balance(account))

    def delete_account(self, ctx: TenantContext, account_id: UUID) -> None:
        account = self._scope.require_account(ctx, account_id)
        self._scope.check_can_delete(ctx, account)
        self._accounts.delete(account.id)
        logger.info("account_deleted", account_id=str(account.id))

    def _require_household_group(self, ctx: TenantContext, group_id: UUID) -> AccountGroup:
        group = self._groups.get(group_id)
        if group is None or group.household_id != ctx.household_id:
            raise InvalidOperationError(
                "Target Account Group not in this household", group_id=group_id
            )
        return group

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from household_ledger.domain.auth import User
from household_ledger.domain.entities import Account, AccountGroup, Category
from household_ledger.domain.households import Household, Invitation, Membership
from household_ledger.domain.transactions import Transaction, TransferGroup
from household_ledger.domain.value_objects import CategoryType, TransactionType


@dataclass(frozen=True)
class TransactionQuery:
    """Filters for listing transactions across a set of accounts."""

    account_ids: tuple[UUID, ...]
    category_id: UUID | None = None
    type: TransactionType | None = None
    date_from: date | None = None
    date_to: date | None = None
    text: str | None = None


class UserRepository(ABC):
    @abstractmethod
    def add(self, user: User) -> None:
        pass

    @abstractmethod
    def get(self, user_id: UUID) -> User | None:
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> User | None:
        pass

    @abstractmethod
    def list_by_ids(self, user_ids: Iterable[UUID]) -> Iterable[User]:
        pass

    @abstractmethod
    def list_others(
        self,
        exclude_user_id: UUID,
        exclude_household_id: UUID | None = None,
        limit: int = 100,
    ) -> Iterable[User]:
        """Users other than exclude_user_id, newest first, optionally
        leaving out the members of one household."""
        pass

    @abstractmethod
    def update(self, user: User) -> None:
        pass


class HouseholdRepository(ABC):
    @abstractmethod
    def add(self, household: Household) -> None:
        pass

    @abstractmethod
    def get(self, household_id: UUID) -> Household | None:
        pass

    @abstractmethod
    def list_for_user(self, user_id: UUID) -> Iterable[Household]:
        pass

    @abstractmethod
    def update(self, household: Household) -> None:
        pass


class MembershipRepository(ABC):
    @abstractmethod
    def add(self, membership: Membership) -> None:
        pass

    @abstractmethod
    def get(self, user_id: UUID, household_id: UUID) -> Membership | None:
        pass

    @abstractmethod
    def list_by_household(self, household_id: UUID) -> Iterable[Membership]:
        pass

    @abstractmethod
    def list_by_user(self, user_id: UUID) -> Iterable[Membership]:
        pass


class InvitationRepository(ABC):
    @abstractmethod
    def add(self, invitation: Invitation) -> None:
        pass

    @abstractmethod
    def get_by_token(self, token: str) -> Invitation | None:
        pass

    @abstractmethod
    def list_by_household(self, household_id: UUID) -> Iterable[Invitation]:
        pass

    @abstractmethod
    def list_by_email(self, email: str) -> Iterable[Invitation]:
        pass

    @abstractmethod
    def update(self, invitation: Invitation) -> None:
        pass


class AccountGroupRepository(ABC):
    @abstractmethod
    def add(self, group: AccountGroup) -> None:
        pass

    @abstractmethod
    def get(self, group_id: UUID) -> AccountGroup | None:
        pass

    @abstractmethod
    def get_by_name(self, household_id: UUID, name: str) -> AccountGroup | None:
        pass

    @abstractmethod
    def list_by_household(self, household_id: UUID) -> Iterable[AccountGroup]:
        pass

    @abstractmethod
    def update(self, group: AccountGroup) -> None:
        pass

    @abstractmethod
    def delete(self, group_id: UUID) -> None:
        pass


class AccountRepository(ABC):
    @abstractmethod
    def add(self, account: Account) -> None:
        pass

    @abstractmethod
    def get(self, account_id: UUID) -> Account | None:
        pass

    @abstractmethod
    def get_for_household(
        self, account_id: UUID, household_id: UUID
    ) -> Account | None:
        """Return the account only if its group belongs to the household."""
        pass

    @abstractmethod
    def get_by_name(self, group_id: UUID, name: str) -> Account | None:
        pass

    @abstractmethod
    def list_by_household(self, household_id: UUID) -> Iterable[Account]:
        pass

    @abstractmethod
    def list_by_group(self, group_id: UUID) -> Iterable[Account]:
        pass

    @abstractmethod
    def update(self, account: Account) -> None:
        pass

    @abstractmethod
    def delete(self, account_id: UUID) -> None:
        pass


class CategoryRepository(ABC):
    @abstractmethod
    def add(self, category: Category) -> None:
        pass

    @abstractmethod
    def get(self, category_id: UUID) -> Category | None:
        pass

    @abstractmethod
    def get_by_name(self, household_id: UUID, name: str) -> Category | None:
        pass

    @abstractmethod
    def list_by_household(
        self, household_id: UUID, category_type: CategoryType | None = None
    ) -> Iterable[Category]:
        pass

    @abstractmethod
    def update(self, category: Category) -> None:
        pass

    @abstractmethod
    def delete(self, category_id: UUID) -> None:
        pass

    @abstractmethod
    def is_in_use(self, category_id: UUID) -> bool:
        pass


class TransactionRepository(ABC):
    @abstractmethod
    def add(self, txn: Transaction) -> None:
        pass

    @abstractmethod
    def get(self, txn_id: UUID) -> Transaction | None:
        pass

    @abstractmethod
    def get_for_household(self, txn_id: UUID, household_id: UUID) -> Transaction | None:
        pass

    @abstractmethod
    def query(self, query: TransactionQuery) -> Iterable[Transaction]:
        pass

    @abstractmethod
    def list_by_account(self, account_id: UUID) -> Iterable[Transaction]:
        pass

    @abstractmethod
    def list_by_transfer_group(self, group_id: UUID) -> Iterable[Transaction]:
        pass

    @abstractmethod
    def list_amounts(
        self, account_ids: Iterable[UUID]
    ) -> Iterable[tuple[UUID, TransactionType, Decimal]]:
        """Yield (account_id, type, magnitude) for every transaction on the accounts."""
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def update(self, txn: Transaction) -> None:
        pass

    @abstractmethod
    def delete(self, txn_id: UUID) -> None:
        pass


class TransferGroupRepository(ABC):
    @abstractmethod
    def add(self, group: TransferGroup) -> None:
        pass

    @abstractmethod
    def get(self, group_id: UUID) -> TransferGroup | None:
        pass

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def delete(self, group_id: UUID) -> None:
        """Delete the group together with both of its legs."""
        pass

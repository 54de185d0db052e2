from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from household_ledger.domain.value_objects import TransactionType


def _utc_now() -> datetime:
    return datetime.now(UTC)


class IncompleteTransferError(Exception):
    pass


@dataclass
class Transaction:
    """A single ledger movement on one account.

    The stored magnitude is never negative. The sign is derived from type
    on read, so changing type re-signs exactly once.
    """

    account_id: UUID
    category_id: UUID
    magnitude: Decimal
    type: TransactionType
    transaction_date: date = field(default_factory=date.today)
    id: UUID = field(default_factory=uuid4)
    description: str | None = None
    transfer_group_id: UUID | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        if not isinstance(self.magnitude, Decimal):
            self.magnitude = Decimal(str(self.magnitude))
        self.magnitude = abs(self.magnitude)

    @property
    def signed_amount(self) -> Decimal:
        if self.type.is_outflow:
            return -self.magnitude
        return self.magnitude

    @property
    def is_transfer_leg(self) -> bool:
        return self.transfer_group_id is not None

    def touch(self) -> None:
        self.updated_at = _utc_now()


@dataclass
class TransferGroup:
    household_id: UUID
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utc_now)


@dataclass(frozen=True)
class TransferSummary:
    """Transfer details reconstructed from its two legs."""

    group_id: UUID
    from_account_id: UUID
    to_account_id: UUID
    amount: Decimal
    transaction_date: date
    category_id: UUID
    description: str | None = None

    @classmethod
    def from_legs(cls, group_id: UUID, legs: list[Transaction]) -> "TransferSummary":
        """Build a summary by leg type, whatever order the legs arrive in."""
        out_leg = next((t for t in legs if t.type == TransactionType.TRANSFER_OUT), None)
        in_leg = next((t for t in legs if t.type == TransactionType.TRANSFER_IN), None)
        if out_leg is None or in_leg is None:
            raise IncompleteTransferError(
                f"Transfer {group_id} does not have both legs"
            )
        return cls(
            group_id=group_id,
            from_account_id=out_leg.account_id,
            to_account_id=in_leg.account_id,
            amount=out_leg.magnitude,
            transaction_date=out_leg.transaction_date,
            category_id=out_leg.category_id,
            description=out_leg.description,
        )

from decimal import Decimal, InvalidOperation
from enum import Enum


class Role(str, Enum):
    OWNER = "OWNER"
    MEMBER = "MEMBER"


class AccountScope(str, Enum):
    HOUSEHOLD = "HOUSEHOLD"
    PERSONAL = "PERSONAL"


class AccountGroupKind(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    BANK_ACCOUNTS = "BANK_ACCOUNTS"
    CREDIT_CARDS = "CREDIT_CARDS"
    LOANS = "LOANS"
    OTHER = "OTHER"


class CategoryType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"

    @property
    def is_outflow(self) -> bool:
        return self in (TransactionType.EXPENSE, TransactionType.TRANSFER_OUT)

    @property
    def is_transfer(self) -> bool:
        return self in (TransactionType.TRANSFER_IN, TransactionType.TRANSFER_OUT)


class InvitationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"


def parse_decimal(value: object) -> Decimal:
    """Parse a decimal string (or Decimal/int) without passing through float.

    Raises ValueError for floats, booleans, non-numeric text and
    non-finite values such as NaN or Infinity.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"amounts must be decimal strings, got {type(value).__name__}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValueError(f"not a decimal: {value!r}") from None
    else:
        raise ValueError(f"not a decimal: {value!r}")
    if not result.is_finite():
        raise ValueError(f"not a finite decimal: {value!r}")
    return result


def format_decimal(value: Decimal) -> str:
    """Render a Decimal as a plain string with no exponent.

    Trailing fractional zeros are dropped, so Decimal("50000.00") renders
    as "50000" and Decimal("-0") renders as "0".
    """
    if value == 0:
        return "0"
    return format(value.normalize(), "f")


__all__ = [
    "Role",
    "AccountScope",
    "AccountGroupKind",
    "CategoryType",
    "TransactionType",
    "InvitationStatus",
    "parse_decimal",
    "format_decimal",
]

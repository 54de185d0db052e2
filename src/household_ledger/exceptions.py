"""Domain exception hierarchy for Household Ledger.

All domain-specific exceptions inherit from HouseholdLedgerError. Each
top-level kind maps to exactly one HTTP status so callers can tell the
failure modes apart:

    UnauthenticatedError    401  no valid session or bearer token
    MissingTenantError      400  tenant header absent on a tenancy-scoped call
    NotAMemberError         403  caller has no membership in the household
    NotFoundError           404  missing, or outside the caller's household
    ForbiddenError          403  inside the household, fails ownership/role
    InvalidOperationError   400  structurally invalid request
    ConflictError           409  uniqueness violation
"""

from typing import Any
from uuid import UUID


class HouseholdLedgerError(Exception):
    """Base exception for all Household Ledger errors.

    Includes an error_code for API responses and optional extra context.
    """

    error_code: str = "HL_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Authentication & Tenancy
# =============================================================================


class UnauthenticatedError(HouseholdLedgerError):
    """Raised when no credential resolves to a known user."""

    error_code = "UNAUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class InvalidCredentialsError(UnauthenticatedError):
    """Raised when an email/password pair does not match."""

    error_code = "INVALID_CREDENTIALS"

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class MissingTenantError(HouseholdLedgerError):
    """Raised when the tenant header is absent or malformed."""

    error_code = "MISSING_TENANT"
    status_code = 400

    def __init__(self, header_name: str) -> None:
        super().__init__(
            f"{header_name} header is required",
            context={"header": header_name},
        )


class NotAMemberError(HouseholdLedgerError):
    """Raised when the caller is not a member of the target household."""

    error_code = "NOT_A_MEMBER"
    status_code = 403

    def __init__(self, household_id: UUID | str) -> None:
        super().__init__(
            "Forbidden: not a household member",
            context={"household_id": str(household_id)},
        )


# =============================================================================
# Resource Errors
# =============================================================================


class NotFoundError(HouseholdLedgerError):
    """Raised when a resource does not exist or lives in another household.

    The two cases are deliberately indistinguishable to the caller.
    """

    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: UUID | str) -> None:
        super().__init__(
            f"{resource} not found: {resource_id}",
            context={"resource": resource, "resource_id": str(resource_id)},
        )


class HouseholdNotFoundError(NotFoundError):
    error_code = "HOUSEHOLD_NOT_FOUND"

    def __init__(self, household_id: UUID | str) -> None:
        super().__init__("Household", household_id)


class AccountGroupNotFoundError(NotFoundError):
    error_code = "ACCOUNT_GROUP_NOT_FOUND"

    def __init__(self, group_id: UUID | str) -> None:
        super().__init__("AccountGroup", group_id)


class AccountNotFoundError(NotFoundError):
    error_code = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: UUID | str) -> None:
        super().__init__("Account", account_id)


class CategoryNotFoundError(NotFoundError):
    error_code = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: UUID | str) -> None:
        super().__init__("Category", category_id)


class TransactionNotFoundError(NotFoundError):
    error_code = "TRANSACTION_NOT_FOUND"

    def __init__(self, transaction_id: UUID | str) -> None:
        super().__init__("Transaction", transaction_id)


class TransferNotFoundError(NotFoundError):
    error_code = "TRANSFER_NOT_FOUND"

    def __init__(self, transfer_group_id: UUID | str) -> None:
        super().__init__("Transfer", transfer_group_id)


class InvitationNotFoundError(NotFoundError):
    error_code = "INVITATION_NOT_FOUND"

    def __init__(self) -> None:
        # Tokens are secrets; never echo them back.
        HouseholdLedgerError.__init__(self, "Invalid invitation token")


# =============================================================================
# Authorization Errors
# =============================================================================


class ForbiddenError(HouseholdLedgerError):
    """Raised when a resource is in the household but fails an access check."""

    error_code = "FORBIDDEN"
    status_code = 403

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(
            message,
            context={k: str(v) for k, v in context.items() if v is not None},
        )


class PersonalAccountError(ForbiddenError):
    """Raised when a personal account is touched by someone other than its owner."""

    error_code = "PERSONAL_ACCOUNT"

    def __init__(self, account_id: UUID | str) -> None:
        super().__init__("Forbidden: personal account", account_id=account_id)


class OwnerRequiredError(ForbiddenError):
    """Raised when a household-administrative action needs the OWNER role."""

    error_code = "OWNER_REQUIRED"

    def __init__(self, action: str, household_id: UUID | str) -> None:
        super().__init__(
            f"Forbidden: only household OWNER can {action}",
            action=action,
            household_id=household_id,
        )


# =============================================================================
# Validation Errors
# =============================================================================


class InvalidOperationError(HouseholdLedgerError):
    """Raised when a request is structurally invalid."""

    error_code = "INVALID_OPERATION"
    status_code = 400

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(
            message,
            context={k: str(v) for k, v in context.items() if v is not None},
        )


class InvalidAmountError(InvalidOperationError):
    """Raised when an invalid monetary amount is provided."""

    error_code = "INVALID_AMOUNT"

    def __init__(self, amount: object, reason: str) -> None:
        super().__init__(f"Invalid amount '{amount}': {reason}", amount=amount)


# =============================================================================
# Conflict Errors
# =============================================================================


class ConflictError(HouseholdLedgerError):
    """Raised when a write would violate a uniqueness rule."""

    error_code = "CONFLICT"
    status_code = 409

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(
            message,
            context={k: str(v) for k, v in context.items() if v is not None},
        )

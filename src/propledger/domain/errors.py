"""Shared domain error messages, error codes and error types."""

from decimal import Decimal
from enum import Enum
from typing import Optional, Union


class ReadingError(str, Enum):
    """Error codes for meter reading validation."""

    INVALID_INPUT = "INVALID_INPUT"
    NEGATIVE_VALUE = "NEGATIVE_VALUE"
    DECREASING_VALUE = "DECREASING_VALUE"


class CreateBillError(str, Enum):
    """Error codes for bill creation."""

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_DATES = "INVALID_DATES"
    INVALID_AMOUNT = "INVALID_AMOUNT"


class AllocateError(str, Enum):
    """Error codes for bill allocation."""

    INVALID_STATUS = "INVALID_STATUS"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    NO_UNITS_FOUND = "NO_UNITS_FOUND"
    MISSING_SPLIT_DATA = "MISSING_SPLIT_DATA"
    UNSUPPORTED_METHOD = "UNSUPPORTED_METHOD"
    SUM_MISMATCH = "SUM_MISMATCH"
    ALREADY_ALLOCATED = "ALREADY_ALLOCATED"


class ApproveError(str, Enum):
    """Error codes for bill approval."""

    INVALID_STATUS = "INVALID_STATUS"
    NO_ALLOCATIONS = "NO_ALLOCATIONS"
    ALLOCATION_SUM_MISMATCH = "ALLOCATION_SUM_MISMATCH"


class PostError(str, Enum):
    """Error codes for posting a bill to the ledger."""

    NOT_APPROVED = "NOT_APPROVED"
    ALREADY_POSTED = "ALREADY_POSTED"
    NO_ALLOCATIONS = "NO_ALLOCATIONS"
    NO_FINANCIAL_ENTITY = "NO_FINANCIAL_ENTITY"


BillErrorCode = Union[AllocateError, ApproveError, PostError]


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class PersistenceError(DomainError):
    """Storage failure during a write; the write was rolled back."""


class UnbalancedEntryError(ValidationError):
    """Journal entry whose debits and credits differ."""

    code = "UNBALANCED_ENTRY"

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Unbalanced entry: debits ({total_debit}) do not equal "
            f"credits ({total_credit})"
        )


class InvalidInputError(ValidationError):
    """Input rejected by a structural schema check."""

    def __init__(
        self,
        message: str,
        issues: Optional[list[str]] = None,
        code: Optional[Union[CreateBillError, ReadingError]] = None,
    ):
        self.issues = issues or [message]
        self.code = code
        super().__init__(message)


class ReadingValidationError(ValidationError):
    """Meter reading rejected before persistence."""

    def __init__(self, code: ReadingError, message: Optional[str] = None):
        self.code = code
        super().__init__(message or reading_rejected(code))


class FinancialEntityNotFoundError(NotFoundError):
    """Organization has no financial entity set up."""

    def __init__(self, organization_id: str):
        self.organization_id = organization_id
        super().__init__(financial_entity_not_found(organization_id))


class UnknownAccountError(NotFoundError):
    """Account code does not resolve within the organization's entity."""

    code = "UNKNOWN_ACCOUNT"

    def __init__(self, account_code: str, organization_id: str):
        self.account_code = account_code
        self.organization_id = organization_id
        super().__init__(
            f"Account code {account_code} not configured for organization {organization_id}"
        )


class BillNotFoundError(NotFoundError):
    def __init__(self, bill_id: int):
        self.bill_id = bill_id
        super().__init__(f"Utility bill {bill_id} not found")


class JournalEntryNotFoundError(NotFoundError):
    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"Journal entry {entry_id} not found")


class PostedBillError(ConflictError):
    """Attempted mutation of a bill already posted to the ledger."""

    code = "BILL_ALREADY_POSTED"

    def __init__(self, bill_id: int):
        self.bill_id = bill_id
        super().__init__(f"Cannot modify bill {bill_id}: already posted to financials")


class StaleBillError(ConflictError):
    """Bill status changed between read and write."""

    def __init__(self, bill_id: int, expected_status: str):
        self.bill_id = bill_id
        self.expected_status = expected_status
        super().__init__(
            f"Utility bill {bill_id} is no longer {expected_status}; reload and retry"
        )


class BillTransitionError(DomainError):
    """Bill lifecycle operation rejected by a guard."""

    def __init__(self, bill_id: int, code: BillErrorCode, message: Optional[str] = None):
        self.bill_id = bill_id
        self.code = code
        super().__init__(message or bill_transition_rejected(bill_id, code))


class AllocationError(BillTransitionError):
    """Allocation rejected."""


class ApprovalError(BillTransitionError):
    """Approval rejected."""


class BillPostingError(BillTransitionError):
    """Posting rejected."""


def financial_entity_not_found(organization_id: str) -> str:
    """Return message for an organization without financials."""
    return f"Financial entity not found for organization {organization_id}"


def account_code_exists(code: str) -> str:
    """Return message for duplicate account code."""
    return f"Account with code '{code}' already exists"


def account_delete_blocked(code: str, is_system: bool, line_count: int) -> str:
    """Return message when an account cannot be removed."""
    if is_system:
        return f"Cannot delete account {code}: it is a system account."
    return (
        f"Cannot delete account {code}: it is referenced by "
        f"{line_count} journal line{'s' if line_count != 1 else ''}."
    )


def reading_rejected(code: ReadingError) -> str:
    """Return message for a rejected meter reading."""
    messages = {
        ReadingError.NEGATIVE_VALUE: "Reading value cannot be negative",
        ReadingError.DECREASING_VALUE: "Reading value is lower than the previous reading",
        ReadingError.INVALID_INPUT: "Invalid reading input",
    }
    return messages[code]


_TRANSITION_MESSAGES = {
    AllocateError: {
        AllocateError.INVALID_STATUS: "only DRAFT bills can be allocated",
        AllocateError.INVALID_AMOUNT: "bill total must be positive",
        AllocateError.NO_UNITS_FOUND: "no units to allocate to",
        AllocateError.MISSING_SPLIT_DATA: "split data is missing or invalid",
        AllocateError.UNSUPPORTED_METHOD: "split method cannot be computed",
        AllocateError.SUM_MISMATCH: "allocations do not sum to the bill total",
        AllocateError.ALREADY_ALLOCATED: "bill already has allocations",
    },
    ApproveError: {
        ApproveError.INVALID_STATUS: "only PROCESSING bills can be approved",
        ApproveError.NO_ALLOCATIONS: "bill has no allocations",
        ApproveError.ALLOCATION_SUM_MISMATCH: "allocations do not sum to the bill total",
    },
    PostError: {
        PostError.NOT_APPROVED: "bill must be approved before posting",
        PostError.ALREADY_POSTED: "bill is already posted",
        PostError.NO_ALLOCATIONS: "bill has no allocations",
        PostError.NO_FINANCIAL_ENTITY: "organization has no financial entity",
    },
}


def bill_transition_rejected(bill_id: int, code: BillErrorCode) -> str:
    """Return message for a rejected bill lifecycle operation."""
    # Codes share values across enums, so look up per enum type.
    message = _TRANSITION_MESSAGES[type(code)][code]
    return f"Utility bill {bill_id}: {message} ({code.value})"

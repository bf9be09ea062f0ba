"""Utility billing guards.

Pure decision functions enforcing the bill lifecycle and the financial
invariants of allocations and meter readings. They perform no I/O and never
mutate their arguments: given a state snapshot they return a verdict, and the
caller decides what to do with it. The only exception is ``assert_not_posted``,
which raises because a mutation of a posted bill must never be silently
ignored.

The guards cannot prevent two callers racing on the same bill; the database
layer serializes transitions with a compare-and-set on the stored status.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from propledger.domain.entities import UtilityBillStatus
from propledger.domain.errors import (
    AllocateError,
    ApproveError,
    BillErrorCode,
    PostError,
    PostedBillError,
    ReadingError,
)
from propledger.domain.money import (
    MONETARY_TOLERANCE,
    RATIO_TOLERANCE,
    ZERO,
    Number,
    to_decimal,
)


class BillSnapshot(Protocol):
    id: int
    status: UtilityBillStatus
    total_amount: Decimal


class HasAmount(Protocol):
    amount: Decimal


@dataclass(frozen=True)
class GuardResult:
    """Allow/deny verdict of a lifecycle guard."""

    allowed: bool
    error: Optional[BillErrorCode] = None

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of an invariant check.

    ``difference`` is set by allocation sum checks, ``total`` by percentage
    sum checks, ``message`` by ratio checks.
    """

    valid: bool
    error: Optional[ReadingError] = None
    difference: Optional[Decimal] = None
    total: Optional[Decimal] = None
    message: Optional[str] = None

    def __bool__(self) -> bool:
        return self.valid


ALLOWED = GuardResult(allowed=True)
VALID = ValidationResult(valid=True)


# State transition guards


def can_allocate_bill(bill: BillSnapshot) -> GuardResult:
    """Only DRAFT bills can be allocated."""
    if bill.status != UtilityBillStatus.DRAFT:
        return GuardResult(allowed=False, error=AllocateError.INVALID_STATUS)
    return ALLOWED


def can_approve_bill(bill: BillSnapshot, allocations: Sequence[HasAmount]) -> GuardResult:
    """PROCESSING bills with a reconciled allocation set can be approved.

    Checks run in priority order: status, presence of allocations, sum.
    """
    if bill.status != UtilityBillStatus.PROCESSING:
        return GuardResult(allowed=False, error=ApproveError.INVALID_STATUS)

    if not allocations:
        return GuardResult(allowed=False, error=ApproveError.NO_ALLOCATIONS)

    if not validate_allocation_sum(allocations, bill.total_amount):
        return GuardResult(allowed=False, error=ApproveError.ALLOCATION_SUM_MISMATCH)

    return ALLOWED


def can_post_bill(bill: BillSnapshot) -> GuardResult:
    """Only APPROVED bills can be posted."""
    if bill.status != UtilityBillStatus.APPROVED:
        return GuardResult(allowed=False, error=PostError.NOT_APPROVED)
    return ALLOWED


def assert_not_posted(bill: BillSnapshot) -> None:
    """Raise PostedBillError if the bill is POSTED.

    Call before every bill mutation path.
    """
    if bill.status == UtilityBillStatus.POSTED:
        raise PostedBillError(bill.id)


# Allocation integrity checks


def validate_allocation_sum(
    allocations: Sequence[HasAmount], bill_total: Number
) -> ValidationResult:
    """Every cent of the bill must be allocated, within one cent."""
    total = sum((to_decimal(a.amount) for a in allocations), ZERO)
    difference = abs(total - to_decimal(bill_total))
    if difference > MONETARY_TOLERANCE:
        return ValidationResult(valid=False, difference=difference)
    return VALID


def validate_percentage_sum(percentages: Sequence[Number]) -> ValidationResult:
    """Ratios must sum to 1.0."""
    total = sum((to_decimal(p) for p in percentages), Decimal("0"))
    if abs(total - Decimal("1")) > RATIO_TOLERANCE:
        return ValidationResult(valid=False, total=total)
    return VALID


def validate_custom_ratio(ratio: Number) -> ValidationResult:
    """A single ratio must lie between 0.0 and 1.0 inclusive."""
    value = to_decimal(ratio)
    if value < 0 or value > 1:
        return ValidationResult(
            valid=False, message=f"Ratio {value} must be between 0.0 and 1.0"
        )
    return VALID


# Reading safety rules


def validate_non_negative_reading(value: Number) -> ValidationResult:
    if to_decimal(value) < 0:
        return ValidationResult(valid=False, error=ReadingError.NEGATIVE_VALUE)
    return VALID


def validate_monotonic_reading(
    new_reading: Number, previous_reading: Optional[Number]
) -> ValidationResult:
    """Meters never run backward; the first reading always passes."""
    if previous_reading is None:
        return VALID
    if to_decimal(new_reading) < to_decimal(previous_reading):
        return ValidationResult(valid=False, error=ReadingError.DECREASING_VALUE)
    return VALID


def validate_new_reading(
    value: Number, previous_reading: Optional[Number]
) -> ValidationResult:
    """Non-negative then monotonic, stopping at the first failure."""
    check = validate_non_negative_reading(value)
    if not check:
        return check
    return validate_monotonic_reading(value, previous_reading)

"""Utility bill allocation strategies.

Pure math: no database access. Each strategy turns a list of unit contexts and
a bill total into allocations, or raises AllocationRejected with the error
code to report.

Business rules:
- A unit missing the basis its split method needs fails the whole allocation.
  Zero occupants or a missing meter are missing data, not "exclude the unit".
- Amounts are floored to the cent per unit and the residual goes to the last
  unit with a share, so the allocation sum always equals the bill total and
  no share is negative.
- Percentages are derived ratios kept for the audit trail; amounts are
  authoritative.
- A single-unit property is allocated the same way (100% to one unit).
"""

import hashlib
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Optional, Sequence

from propledger.domain.entities import (
    UnitSplitContext,
    UtilityAllocation,
    UtilitySplitMethod,
)
from propledger.domain.errors import AllocateError
from propledger.domain.guards import validate_custom_ratio, validate_percentage_sum
from propledger.domain.money import ZERO, floor_money, to_decimal, to_money, to_ratio


class AllocationRejected(Exception):
    """Raised by a strategy when the split cannot be computed."""

    def __init__(self, code: AllocateError, message: Optional[str] = None):
        self.code = code
        super().__init__(message or code.value)


def _proportional(
    contexts: Sequence[UnitSplitContext],
    total_amount: Decimal,
    basis_of: Callable[[UnitSplitContext], Optional[Decimal]],
    label: str,
) -> list[UtilityAllocation]:
    bases = []
    for ctx in contexts:
        basis = basis_of(ctx)
        if basis is None or to_decimal(basis) < 0:
            raise AllocationRejected(
                AllocateError.MISSING_SPLIT_DATA,
                f"Unit {ctx.unit_id} has no valid {label}",
            )
        bases.append(to_decimal(basis))

    total_basis = sum(bases, Decimal("0"))
    if total_basis == 0:
        raise AllocationRejected(
            AllocateError.MISSING_SPLIT_DATA, f"Total {label} is zero"
        )

    return [
        UtilityAllocation(
            unit_id=ctx.unit_id,
            lease_id=ctx.lease_id,
            amount=floor_money(basis * total_amount / total_basis),
            percentage=to_ratio(basis / total_basis),
            basis=basis,
        )
        for ctx, basis in zip(contexts, bases)
    ]


def allocate_equal(
    contexts: Sequence[UnitSplitContext], total_amount: Decimal
) -> list[UtilityAllocation]:
    count = len(contexts)
    if count == 0:
        return []
    amount = floor_money(total_amount / count)
    percentage = to_ratio(Decimal(1) / count)
    return [
        UtilityAllocation(
            unit_id=ctx.unit_id, lease_id=ctx.lease_id, amount=amount, percentage=percentage
        )
        for ctx in contexts
    ]


def allocate_by_sq_footage(
    contexts: Sequence[UnitSplitContext], total_amount: Decimal
) -> list[UtilityAllocation]:
    return _proportional(contexts, total_amount, lambda c: c.sq_footage, "square footage")


def allocate_by_occupancy(
    contexts: Sequence[UnitSplitContext], total_amount: Decimal
) -> list[UtilityAllocation]:
    def occupants(ctx: UnitSplitContext) -> Optional[Decimal]:
        # Zero occupants counts as missing data.
        if not ctx.occupant_count:
            return None
        return Decimal(ctx.occupant_count)

    return _proportional(contexts, total_amount, occupants, "occupant count")


def allocate_sub_metered(
    contexts: Sequence[UnitSplitContext], total_amount: Decimal
) -> list[UtilityAllocation]:
    """Split by metered usage; ``meter_usage`` is the delta between readings."""
    return _proportional(contexts, total_amount, lambda c: c.meter_usage, "meter usage")


def allocate_custom_ratio(
    contexts: Sequence[UnitSplitContext], total_amount: Decimal
) -> list[UtilityAllocation]:
    ratios = []
    for ctx in contexts:
        if ctx.custom_ratio is None:
            raise AllocationRejected(
                AllocateError.MISSING_SPLIT_DATA, f"Unit {ctx.unit_id} has no ratio"
            )
        check = validate_custom_ratio(ctx.custom_ratio)
        if not check:
            raise AllocationRejected(AllocateError.MISSING_SPLIT_DATA, check.message)
        ratios.append(to_decimal(ctx.custom_ratio))

    sum_check = validate_percentage_sum(ratios)
    if not sum_check:
        raise AllocationRejected(
            AllocateError.MISSING_SPLIT_DATA,
            f"Custom ratios sum to {sum_check.total}, expected 1.0",
        )

    # Scale by the actual sum so ratios within tolerance never over-allocate
    return _proportional(
        contexts, total_amount, lambda c: to_decimal(c.custom_ratio), "custom ratio"
    )


STRATEGIES: dict[UtilitySplitMethod, Callable[..., list[UtilityAllocation]]] = {
    UtilitySplitMethod.EQUAL: allocate_equal,
    UtilitySplitMethod.SQ_FOOTAGE: allocate_by_sq_footage,
    UtilitySplitMethod.OCCUPANCY_BASED: allocate_by_occupancy,
    UtilitySplitMethod.SUB_METERED: allocate_sub_metered,
    UtilitySplitMethod.CUSTOM_RATIO: allocate_custom_ratio,
}


def apply_rounding_correction(
    allocations: list[UtilityAllocation], total_amount: Decimal
) -> list[UtilityAllocation]:
    """Make the allocation sum equal the total.

    A shortfall goes to the last unit holding a share. An excess is taken
    back from the largest shares first, and no share drops below zero.
    """
    if not allocations:
        return allocations

    current = sum((a.amount for a in allocations), ZERO)
    diff = to_money(total_amount - current)
    if diff == 0:
        return allocations

    amounts = [a.amount for a in allocations]
    if diff > 0:
        # Units with a zero share stay at zero
        funded = [i for i, amount in enumerate(amounts) if amount > 0]
        target = funded[-1] if funded else len(amounts) - 1
        amounts[target] = to_money(amounts[target] + diff)
    else:
        excess = -diff
        by_size = sorted(range(len(amounts)), key=lambda i: amounts[i], reverse=True)
        for i in by_size:
            if excess == 0:
                break
            taken = min(excess, amounts[i])
            amounts[i] = to_money(amounts[i] - taken)
            excess -= taken

    return [
        alloc if alloc.amount == amount else replace(alloc, amount=amount)
        for alloc, amount in zip(allocations, amounts)
    ]


def compute_allocations(
    split_method: UtilitySplitMethod,
    contexts: Sequence[UnitSplitContext],
    total_amount: Decimal,
) -> list[UtilityAllocation]:
    """Run the strategy for ``split_method`` and correct rounding.

    Raises:
        AllocationRejected: If the split cannot be computed
    """
    strategy = STRATEGIES.get(split_method)
    if strategy is None:
        raise AllocationRejected(
            AllocateError.UNSUPPORTED_METHOD,
            f"Split method {split_method.value} cannot be computed automatically",
        )
    total = to_money(total_amount)
    return apply_rounding_correction(strategy(contexts, total), total)


def compute_allocation_hash(allocations: Sequence[UtilityAllocation]) -> str:
    """SHA-256 over the allocation set, independent of row order."""
    payload = "|".join(
        sorted(
            f"{a.unit_id}:{to_money(a.amount)}:{to_ratio(a.percentage)}"
            for a in allocations
        )
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()

"""
Ledger arithmetic (``budget_kernel.domain.ledger_math``).

Pure Decimal computations behind the Budget Ledger.  The ledger service
loads rows, calls these, and writes the results back; keeping the math
here lets the commit/rollup rules be tested without a database.

Rules:
    remaining          = current_budget - executed_amount
    execution_rate     = executed / current * 100, 2 places (0 if current == 0)
    pending on release = max(0, pending - amount)
    pending on commit  = max(0, pending - amount)
    project rollup     = full recomputation over active line items
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from budget_kernel.db.types import ZERO, round_percent

HUNDRED = Decimal("100")


def remaining(current_budget: Decimal, executed_amount: Decimal) -> Decimal:
    return current_budget - executed_amount


def execution_rate(executed_amount: Decimal, current_budget: Decimal) -> Decimal:
    if current_budget == ZERO:
        return round_percent(ZERO)
    return round_percent(executed_amount / current_budget * HUNDRED)


@dataclass(frozen=True)
class PendingRelease:
    """Result of taking ``amount`` off a pending reservation."""

    pending: Decimal
    clamped: bool
    shortfall: Decimal


def release_pending(pending: Decimal, amount: Decimal) -> PendingRelease:
    """Floor-at-zero subtraction; ``clamped`` reports when the floor was hit."""
    after = pending - amount
    if after < ZERO:
        return PendingRelease(pending=ZERO, clamped=True, shortfall=-after)
    return PendingRelease(pending=after, clamped=False, shortfall=ZERO)


@dataclass(frozen=True)
class CommitOutcome:
    executed_amount: Decimal
    pending: PendingRelease
    remaining_before_exec: Decimal
    remaining_after_exec: Decimal
    execution_rate: Decimal


def apply_commit(
    current_budget: Decimal,
    executed_amount: Decimal,
    pending_amount: Decimal,
    amount: Decimal,
) -> CommitOutcome:
    """Debit ``amount`` from a line item and recompute its derived fields."""
    before = remaining(current_budget, executed_amount)
    executed_after = executed_amount + amount
    return CommitOutcome(
        executed_amount=executed_after,
        pending=release_pending(pending_amount, amount),
        remaining_before_exec=before,
        remaining_after_exec=remaining(current_budget, executed_after),
        execution_rate=execution_rate(executed_after, current_budget),
    )


@dataclass(frozen=True)
class ProjectRollup:
    current_budget: Decimal
    executed_amount: Decimal
    remaining_budget: Decimal
    execution_rate: Decimal
    line_item_count: int


def rollup(line_items: Iterable[tuple[Decimal, Decimal]]) -> ProjectRollup:
    """Aggregate ``(current_budget, executed_amount)`` pairs of active items."""
    current_total = ZERO
    executed_total = ZERO
    count = 0
    for current_budget, executed_amount in line_items:
        current_total += current_budget
        executed_total += executed_amount
        count += 1
    return ProjectRollup(
        current_budget=current_total,
        executed_amount=executed_total,
        remaining_budget=remaining(current_total, executed_total),
        execution_rate=execution_rate(executed_total, current_total),
        line_item_count=count,
    )

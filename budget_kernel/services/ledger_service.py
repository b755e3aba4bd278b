"""
BudgetLedger -- per-line-item and per-project financial aggregates.

Responsibility:
    The only writer of BudgetLineItem and Project money columns.
    Implements the four ledger operations:

        reserve(line_item, amount)   pending += amount (advisory)
        commit(line_item, amount)    executed += amount, pending released,
                                     remaining/rate recomputed
        release(line_item, amount)   pending released
        rollup(project)              project totals recomputed from
                                     active line items

Architecture position:
    Kernel > Services.  Called by RequestIntakeService, WorkflowOrchestrator
    and BudgetService, always inside a transaction owned by the caller.
    Flush-only (see BaseService).

Invariants enforced:
    - line_item.remaining_budget == current_budget - executed_amount after
      every write.
    - pending_execution_amount never goes below zero.  When a release or
      commit would take it negative the value is floored and a
      ``pending_amount_clamped`` WARNING is logged, so the floor is visible
      in logs instead of silently absorbing a double release.
    - Rollup is a full recomputation (never a delta), run in the same
      transaction as the commit that triggered it.

Locking:
    Line item and project rows are read with SELECT ... FOR UPDATE and
    populate_existing, so a decision never works from a stale balance.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select

from budget_kernel.db.types import ZERO
from budget_kernel.domain import ledger_math
from budget_kernel.domain.dtos import LineItemBalance, ProjectTotals
from budget_kernel.exceptions import (
    InsufficientBudgetError,
    LineItemNotFoundError,
    ProjectNotFoundError,
)
from budget_kernel.logging_config import get_logger
from budget_kernel.models.project import BudgetLineItem, Project
from budget_kernel.services.base import BaseService

logger = get_logger("services.ledger")


class BudgetLedger(BaseService):
    """Reserve / commit / release / rollup over locked rows."""

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_line_item(self, line_item_id: UUID, lock: bool = True) -> BudgetLineItem:
        stmt = select(BudgetLineItem).where(BudgetLineItem.id == line_item_id)
        if lock:
            stmt = stmt.with_for_update()
        item = self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if item is None:
            raise LineItemNotFoundError(str(line_item_id))
        return item

    def load_project(self, project_id: UUID, lock: bool = True) -> Project:
        stmt = select(Project).where(Project.id == project_id)
        if lock:
            stmt = stmt.with_for_update()
        project = self.session.execute(
            stmt.execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    @staticmethod
    def available(item: BudgetLineItem) -> Decimal:
        """Live available balance: current_budget - executed_amount."""
        return ledger_math.remaining(item.current_budget, item.executed_amount)

    def ensure_available(self, item: BudgetLineItem, amount: Decimal) -> None:
        available = self.available(item)
        if amount > available:
            raise InsufficientBudgetError(str(item.id), amount, available)

    # ------------------------------------------------------------------
    # Ledger operations
    # ------------------------------------------------------------------

    def reserve(
        self, line_item_id: UUID, amount: Decimal, actor_id: UUID | None = None
    ) -> LineItemBalance:
        """Add an advisory reservation.  Budget and executed are untouched."""
        item = self.load_line_item(line_item_id)
        self.ensure_available(item, amount)

        item.pending_execution_amount = item.pending_execution_amount + amount
        self._touch(item, actor_id)
        self.session.flush()

        logger.info(
            "ledger_reserved",
            extra={
                "line_item_id": str(item.id),
                "amount": str(amount),
                "pending_execution_amount": str(item.pending_execution_amount),
            },
        )
        return item.to_dto()

    def commit(
        self, line_item_id: UUID, amount: Decimal, actor_id: UUID | None = None
    ) -> LineItemBalance:
        """Debit ``amount`` for good and release the matching reservation."""
        item = self.load_line_item(line_item_id)
        outcome = ledger_math.apply_commit(
            current_budget=item.current_budget,
            executed_amount=item.executed_amount,
            pending_amount=item.pending_execution_amount,
            amount=amount,
        )
        self._log_clamp(item, amount, outcome.pending, "commit")

        item.executed_amount = outcome.executed_amount
        item.pending_execution_amount = outcome.pending.pending
        item.remaining_budget = outcome.remaining_after_exec
        item.remaining_before_exec = outcome.remaining_before_exec
        item.remaining_after_exec = outcome.remaining_after_exec
        item.execution_rate = outcome.execution_rate
        self._touch(item, actor_id)
        self.session.flush()

        logger.info(
            "ledger_committed",
            extra={
                "line_item_id": str(item.id),
                "amount": str(amount),
                "executed_amount": str(item.executed_amount),
                "remaining_before_exec": str(item.remaining_before_exec),
                "remaining_after_exec": str(item.remaining_after_exec),
                "execution_rate": str(item.execution_rate),
            },
        )
        return item.to_dto()

    def release(
        self, line_item_id: UUID, amount: Decimal, actor_id: UUID | None = None
    ) -> LineItemBalance:
        """Drop a reservation (rejection or cancellation)."""
        item = self.load_line_item(line_item_id)
        released = ledger_math.release_pending(item.pending_execution_amount, amount)
        self._log_clamp(item, amount, released, "release")

        item.pending_execution_amount = released.pending
        self._touch(item, actor_id)
        self.session.flush()

        logger.info(
            "ledger_released",
            extra={
                "line_item_id": str(item.id),
                "amount": str(amount),
                "pending_execution_amount": str(item.pending_execution_amount),
            },
        )
        return item.to_dto()

    def rollup(self, project_id: UUID, actor_id: UUID | None = None) -> ProjectTotals:
        """Recompute project totals from scratch over its active line items."""
        project = self.load_project(project_id)
        rows = self.session.execute(
            select(BudgetLineItem.current_budget, BudgetLineItem.executed_amount)
            .where(
                BudgetLineItem.project_id == project_id,
                BudgetLineItem.is_active.is_(True),
            )
        ).all()
        totals = ledger_math.rollup((row[0], row[1]) for row in rows)

        project.current_budget = totals.current_budget
        project.executed_amount = totals.executed_amount
        project.remaining_budget = totals.remaining_budget
        project.execution_rate = totals.execution_rate
        self._touch(project, actor_id)
        self.session.flush()

        logger.info(
            "project_rolled_up",
            extra={
                "project_id": str(project.id),
                "line_item_count": totals.line_item_count,
                "current_budget": str(totals.current_budget),
                "executed_amount": str(totals.executed_amount),
                "execution_rate": str(totals.execution_rate),
            },
        )
        return project.to_dto()

    # ------------------------------------------------------------------

    def _touch(self, row: BudgetLineItem | Project, actor_id: UUID | None) -> None:
        row.updated_at = self.clock.now()
        if actor_id is not None:
            row.updated_by_id = actor_id

    @staticmethod
    def _log_clamp(
        item: BudgetLineItem,
        amount: Decimal,
        released: ledger_math.PendingRelease,
        operation: str,
    ) -> None:
        if released.clamped:
            logger.warning(
                "pending_amount_clamped",
                extra={
                    "line_item_id": str(item.id),
                    "operation": operation,
                    "amount": str(amount),
                    "pending_before": str(item.pending_execution_amount),
                    "shortfall": str(released.shortfall),
                    "pending_after": str(ZERO),
                },
            )

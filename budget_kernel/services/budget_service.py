"""
BudgetService -- project and budget line item administration.

Responsibility:
    Creates projects, adds budget line items, revises a line item's
    budget and deactivates line items.  Every change that affects money
    columns ends with BudgetLedger.rollup() in the same transaction, so
    project totals never lag behind their line items.

Architecture position:
    Kernel > Services.  Flush-only: callers wrap calls in
    ``session_scope()`` (or commit themselves).

Invariants enforced:
    - A new line item starts with initial_budget == current_budget ==
      remaining_budget == remaining_before_exec == remaining_after_exec,
      nothing executed, nothing pending, rate 0.
    - A revised budget may not drop below the executed amount.
    - Deactivated line items drop out of project totals.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from budget_kernel.db.types import ZERO
from budget_kernel.domain import ledger_math
from budget_kernel.domain.clock import Clock
from budget_kernel.domain.dtos import LineItemBalance, ProjectTotals
from budget_kernel.domain.validation import (
    optional_text,
    parse_budget_amount,
    require_text,
)
from budget_kernel.exceptions import DuplicateProjectCodeError, ValidationError
from budget_kernel.logging_config import get_logger
from budget_kernel.models.project import BudgetLineItem, Project
from budget_kernel.services.base import BaseService
from budget_kernel.services.ledger_service import BudgetLedger


logger = get_logger("services.budget")


class BudgetService(BaseService):
    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session, clock)
        self._ledger = BudgetLedger(session, self.clock)

    def create_project(self, code: str, name: str, actor_id: UUID) -> ProjectTotals:
        code = require_text(code, "code", 50)
        name = require_text(name, "name", 255)

        existing = self.session.execute(
            select(Project.id).where(Project.code == code)
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateProjectCodeError(code)

        now = self.clock.now()
        project = Project(
            id=uuid4(),
            code=code,
            name=name,
            current_budget=ZERO,
            executed_amount=ZERO,
            remaining_budget=ZERO,
            execution_rate=ZERO,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
        )
        self.session.add(project)
        self.session.flush()

        logger.info("project_created", extra={"project_id": str(project.id), "code": code})
        return project.to_dto()

    def add_line_item(
        self,
        project_id: UUID,
        category: str,
        main_item: str,
        current_budget: Any,
        actor_id: UUID,
        sub_item: str | None = None,
        display_order: int = 0,
    ) -> LineItemBalance:
        budget = parse_budget_amount(current_budget)
        category = require_text(category, "category", 100)
        main_item = require_text(main_item, "main_item", 255)
        sub_item = optional_text(sub_item, "sub_item", 255)

        self._ledger.load_project(project_id, lock=False)

        now = self.clock.now()
        item = BudgetLineItem(
            id=uuid4(),
            project_id=project_id,
            category=category,
            main_item=main_item,
            sub_item=sub_item,
            initial_budget=budget,
            current_budget=budget,
            executed_amount=ZERO,
            pending_execution_amount=ZERO,
            remaining_budget=budget,
            remaining_before_exec=budget,
            remaining_after_exec=budget,
            execution_rate=ledger_math.execution_rate(ZERO, budget),
            display_order=display_order,
            is_active=True,
            created_at=now,
            updated_at=now,
            created_by_id=actor_id,
        )
        self.session.add(item)
        self.session.flush()
        self._ledger.rollup(project_id, actor_id=actor_id)

        logger.info(
            "line_item_added",
            extra={
                "project_id": str(project_id),
                "line_item_id": str(item.id),
                "current_budget": str(budget),
            },
        )
        return item.to_dto()

    def revise_line_item_budget(
        self, line_item_id: UUID, new_budget: Any, actor_id: UUID
    ) -> LineItemBalance:
        budget = parse_budget_amount(new_budget)
        item = self._ledger.load_line_item(line_item_id)
        if budget < item.executed_amount:
            raise ValidationError(
                "current_budget",
                f"{budget} is below the executed amount {item.executed_amount}",
            )

        previous = item.current_budget
        item.current_budget = budget
        item.remaining_budget = ledger_math.remaining(budget, item.executed_amount)
        item.execution_rate = ledger_math.execution_rate(item.executed_amount, budget)
        if item.executed_amount == ZERO:
            # No commit yet: the exec snapshots still mirror the full budget
            item.remaining_before_exec = budget
            item.remaining_after_exec = budget
        item.updated_at = self.clock.now()
        item.updated_by_id = actor_id
        self.session.flush()
        self._ledger.rollup(item.project_id, actor_id=actor_id)

        logger.info(
            "line_item_budget_revised",
            extra={
                "line_item_id": str(item.id),
                "previous_budget": str(previous),
                "current_budget": str(budget),
            },
        )
        return item.to_dto()

    def deactivate_line_item(self, line_item_id: UUID, actor_id: UUID) -> ProjectTotals:
        item = self._ledger.load_line_item(line_item_id)
        item.is_active = False
        item.updated_at = self.clock.now()
        item.updated_by_id = actor_id
        self.session.flush()

        logger.info("line_item_deactivated", extra={"line_item_id": str(item.id)})
        return self._ledger.rollup(item.project_id, actor_id=actor_id)

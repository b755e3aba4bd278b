"""
Module: budget_kernel.models.project
Responsibility: ORM persistence for projects and their budget line items.

Architecture position: Kernel > Models.  May import from db/ and the
    pure domain layer only.

Invariants enforced:
    - project.remaining_budget = current_budget - executed_amount, and
      the project totals equal the sums over ACTIVE line items.  Both are
      maintained by BudgetLedger.rollup(); the model only stores them.
    - line_item.remaining_budget = current_budget - executed_amount.
    - pending_execution_amount >= 0 (CHECK constraint).
    - Every line item belongs to exactly one project.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_kernel.db.base import TrackedBase, UUIDString
from budget_kernel.db.types import ZERO

if TYPE_CHECKING:
    from budget_kernel.domain.dtos import LineItemBalance, ProjectTotals


class Project(TrackedBase):
    """Construction project; its money columns are a rollup of its line items."""

    __tablename__ = "projects"

    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    current_budget: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    executed_amount: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    remaining_budget: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    execution_rate: Mapped[Decimal] = mapped_column(
        Numeric(9, 2), default=ZERO, nullable=False
    )

    line_items: Mapped[list["BudgetLineItem"]] = relationship(
        back_populates="project",
        order_by="BudgetLineItem.display_order",
    )

    def __repr__(self) -> str:
        return f"<Project {self.code} executed={self.executed_amount}/{self.current_budget}>"

    def to_dto(self) -> ProjectTotals:
        from budget_kernel.domain.dtos import ProjectTotals

        return ProjectTotals(
            id=self.id,
            code=self.code,
            name=self.name,
            current_budget=self.current_budget,
            executed_amount=self.executed_amount,
            remaining_budget=self.remaining_budget,
            execution_rate=self.execution_rate,
        )


class BudgetLineItem(TrackedBase):
    """Leaf budget category owned by one project."""

    __tablename__ = "budget_line_items"

    __table_args__ = (
        CheckConstraint(
            "pending_execution_amount >= 0",
            name="ck_budget_line_items_pending_non_negative",
        ),
        CheckConstraint(
            "executed_amount >= 0",
            name="ck_budget_line_items_executed_non_negative",
        ),
        Index("ix_budget_line_items_project_active", "project_id", "is_active"),
    )

    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id"), nullable=False
    )
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    main_item: Mapped[str] = mapped_column(String(255), nullable=False)
    sub_item: Mapped[str | None] = mapped_column(String(255), nullable=True)

    initial_budget: Mapped[Decimal] = mapped_column(nullable=False)
    current_budget: Mapped[Decimal] = mapped_column(nullable=False)
    executed_amount: Mapped[Decimal] = mapped_column(default=ZERO, nullable=False)
    pending_execution_amount: Mapped[Decimal] = mapped_column(
        default=ZERO, nullable=False
    )
    remaining_budget: Mapped[Decimal] = mapped_column(nullable=False)
    # Snapshot of the last commit: available balance just before / after it
    remaining_before_exec: Mapped[Decimal] = mapped_column(nullable=False)
    remaining_after_exec: Mapped[Decimal] = mapped_column(nullable=False)
    execution_rate: Mapped[Decimal] = mapped_column(
        Numeric(9, 2), default=ZERO, nullable=False
    )

    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    project: Mapped[Project] = relationship(back_populates="line_items")

    def __repr__(self) -> str:
        return (
            f"<BudgetLineItem {self.category}/{self.main_item} "
            f"executed={self.executed_amount}/{self.current_budget} "
            f"pending={self.pending_execution_amount}>"
        )

    def to_dto(self) -> LineItemBalance:
        from budget_kernel.domain.dtos import LineItemBalance

        return LineItemBalance(
            id=self.id,
            project_id=self.project_id,
            category=self.category,
            main_item=self.main_item,
            sub_item=self.sub_item,
            initial_budget=self.initial_budget,
            current_budget=self.current_budget,
            executed_amount=self.executed_amount,
            pending_execution_amount=self.pending_execution_amount,
            remaining_budget=self.remaining_budget,
            remaining_before_exec=self.remaining_before_exec,
            remaining_after_exec=self.remaining_after_exec,
            execution_rate=self.execution_rate,
            display_order=self.display_order,
            is_active=self.is_active,
        )

"""Read-side queries over projects and budget line items."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from budget_kernel.domain.dtos import LineItemBalance, ProjectTotals
from budget_kernel.exceptions import LineItemNotFoundError, ProjectNotFoundError
from budget_kernel.models.project import BudgetLineItem, Project
from budget_kernel.selectors.base import BaseSelector


class BudgetSelector(BaseSelector):
    def get_project(self, project_id: UUID) -> ProjectTotals:
        project = self.session.execute(
            select(Project)
            .where(Project.id == project_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if project is None:
            raise ProjectNotFoundError(str(project_id))
        return project.to_dto()

    def get_line_item(self, line_item_id: UUID) -> LineItemBalance:
        item = self.session.execute(
            select(BudgetLineItem)
            .where(BudgetLineItem.id == line_item_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if item is None:
            raise LineItemNotFoundError(str(line_item_id))
        return item.to_dto()

    def list_line_items(
        self, project_id: UUID, include_inactive: bool = False
    ) -> list[LineItemBalance]:
        stmt = select(BudgetLineItem).where(BudgetLineItem.project_id == project_id)
        if not include_inactive:
            stmt = stmt.where(BudgetLineItem.is_active.is_(True))
        stmt = stmt.order_by(BudgetLineItem.display_order, BudgetLineItem.category)
        return [
            item.to_dto()
            for item in self.session.execute(
                stmt.execution_options(populate_existing=True)
            ).scalars()
        ]

"""
Tests for BudgetService -- project and line item administration.

Covers:
- create_project(): duplicate codes refused
- add_line_item(): initial balances and project rollup
- revise_line_item_budget(): never below executed; snapshots follow the
  budget only while nothing is executed
- deactivate_line_item(): drops out of project totals and the default listing
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from budget_kernel.exceptions import (
    DuplicateProjectCodeError,
    ProjectNotFoundError,
    ValidationError,
)
from budget_kernel.selectors.budget_selector import BudgetSelector
from budget_kernel.services.ledger_service import BudgetLedger


class TestProjects:
    def test_new_project_has_zero_totals(self, project):
        assert project.code == "PRJ-2025-001"
        assert project.current_budget == Decimal("0")
        assert project.execution_rate == Decimal("0")

    def test_duplicate_code(self, budget_service, project, admin):
        with pytest.raises(DuplicateProjectCodeError) as exc_info:
            budget_service.create_project("PRJ-2025-001", "Another tower", admin.id)
        assert exc_info.value.project_code == "PRJ-2025-001"

    def test_blank_name(self, budget_service, admin):
        with pytest.raises(ValidationError):
            budget_service.create_project("PRJ-X", "  ", admin.id)


class TestLineItems:
    def test_new_line_item_balances(self, line_item):
        assert line_item.initial_budget == Decimal("1000000")
        assert line_item.current_budget == Decimal("1000000")
        assert line_item.remaining_budget == Decimal("1000000")
        assert line_item.remaining_before_exec == Decimal("1000000")
        assert line_item.remaining_after_exec == Decimal("1000000")
        assert line_item.executed_amount == Decimal("0")
        assert line_item.pending_execution_amount == Decimal("0")
        assert line_item.execution_rate == Decimal("0.00")
        assert line_item.is_active

    def test_adding_items_rolls_up(self, session, project, make_line_item):
        make_line_item(Decimal("1000000"))
        make_line_item(Decimal("250000.50"), category="MEP", main_item="Electrical")
        totals = BudgetSelector(session).get_project(project.id)
        assert totals.current_budget == Decimal("1250000.50")
        assert totals.remaining_budget == Decimal("1250000.50")

    def test_unknown_project(self, budget_service, admin):
        with pytest.raises(ProjectNotFoundError):
            budget_service.add_line_item(uuid4(), "Structure", "Piling", "10", admin.id)

    def test_negative_budget_refused(self, budget_service, project, admin):
        with pytest.raises(ValidationError):
            budget_service.add_line_item(project.id, "Structure", "Piling", "-1", admin.id)

    def test_listing_is_ordered_and_hides_inactive(
        self, session, project, make_line_item, budget_service, admin
    ):
        second = make_line_item(category="Finishes", main_item="Tiling", display_order=2)
        first = make_line_item(category="Structure", main_item="Piling", display_order=1)
        gone = make_line_item(category="Temporary", main_item="Hoarding", display_order=3)
        budget_service.deactivate_line_item(gone.id, admin.id)
        session.commit()

        selector = BudgetSelector(session)
        assert [i.id for i in selector.list_line_items(project.id)] == [first.id, second.id]
        assert len(selector.list_line_items(project.id, include_inactive=True)) == 3


class TestRevision:
    def test_revise_before_any_execution(self, session, budget_service, project, line_item, admin):
        revised = budget_service.revise_line_item_budget(line_item.id, "1200000", admin.id)
        session.commit()

        assert revised.current_budget == Decimal("1200000")
        assert revised.initial_budget == Decimal("1000000")
        assert revised.remaining_budget == Decimal("1200000")
        assert revised.remaining_before_exec == Decimal("1200000")
        assert revised.remaining_after_exec == Decimal("1200000")
        assert BudgetSelector(session).get_project(project.id).current_budget == Decimal("1200000")

    def test_revise_after_execution_keeps_snapshots(
        self, session, budget_service, deterministic_clock, line_item, admin
    ):
        ledger = BudgetLedger(session, deterministic_clock)
        ledger.reserve(line_item.id, Decimal("300000"))
        ledger.commit(line_item.id, Decimal("300000"))

        revised = budget_service.revise_line_item_budget(line_item.id, "600000", admin.id)
        assert revised.remaining_budget == Decimal("300000")
        assert revised.execution_rate == Decimal("50.00")
        assert revised.remaining_before_exec == Decimal("1000000")
        assert revised.remaining_after_exec == Decimal("700000")

    def test_cannot_drop_below_executed(
        self, session, budget_service, deterministic_clock, line_item, admin
    ):
        ledger = BudgetLedger(session, deterministic_clock)
        ledger.reserve(line_item.id, Decimal("300000"))
        ledger.commit(line_item.id, Decimal("300000"))

        with pytest.raises(ValidationError) as exc_info:
            budget_service.revise_line_item_budget(line_item.id, "299999.99", admin.id)
        assert exc_info.value.field == "current_budget"


class TestDeactivation:
    def test_deactivated_item_leaves_totals(
        self, session, budget_service, project, make_line_item, admin
    ):
        keep = make_line_item(Decimal("400000"))
        drop = make_line_item(Decimal("600000"), main_item="Cladding")

        totals = budget_service.deactivate_line_item(drop.id, admin.id)
        session.commit()

        assert totals.current_budget == Decimal("400000")
        assert BudgetSelector(session).get_line_item(keep.id).is_active
        assert not BudgetSelector(session).get_line_item(drop.id).is_active

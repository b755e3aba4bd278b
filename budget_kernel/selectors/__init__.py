"""Read-only query selectors."""

from budget_kernel.selectors.budget_selector import BudgetSelector
from budget_kernel.selectors.execution_selector import ExecutionSelector

__all__ = ["BudgetSelector", "ExecutionSelector"]

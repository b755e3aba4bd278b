"""ORM models for the budget kernel."""

from budget_kernel.models.execution_request import (
    ApprovalStepModel,
    ExecutionRequestModel,
)
from budget_kernel.models.project import BudgetLineItem, Project
from budget_kernel.models.request_counter import RequestNumberCounter

__all__ = [
    "Project",
    "BudgetLineItem",
    "ExecutionRequestModel",
    "ApprovalStepModel",
    "RequestNumberCounter",
]

"""Kernel services: the imperative shell around the pure domain layer."""

from budget_kernel.services.authorization import AuthorizationGate
from budget_kernel.services.budget_service import BudgetService
from budget_kernel.services.intake_service import RequestIntakeService
from budget_kernel.services.ledger_service import BudgetLedger
from budget_kernel.services.notification import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
)
from budget_kernel.services.request_numbering import RequestNumberService
from budget_kernel.services.workflow_orchestrator import WorkflowOrchestrator

__all__ = [
    "AuthorizationGate",
    "BudgetLedger",
    "BudgetService",
    "LoggingNotificationDispatcher",
    "NotificationDispatcher",
    "RequestIntakeService",
    "RequestNumberService",
    "WorkflowOrchestrator",
]

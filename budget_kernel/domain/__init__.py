"""
Pure domain layer.

Value objects and arithmetic with NO dependencies on the ORM, the
database or wall-clock time.  Everything here is immutable and
deterministic.
"""

from budget_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from budget_kernel.domain.dtos import (
    Actor,
    ApprovalStepInfo,
    DecisionResult,
    ExecutionRequestInfo,
    LineItemBalance,
    ProjectTotals,
)
from budget_kernel.domain.policy import (
    ApprovalChain,
    FieldLimits,
    Role,
    WorkflowPolicy,
)
from budget_kernel.domain.workflow import (
    Approved,
    AwaitingStep,
    Cancelled,
    Rejected,
    RequestStatus,
    StepStatus,
    WorkflowState,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Actor",
    "ApprovalStepInfo",
    "DecisionResult",
    "ExecutionRequestInfo",
    "LineItemBalance",
    "ProjectTotals",
    "ApprovalChain",
    "FieldLimits",
    "Role",
    "WorkflowPolicy",
    "Approved",
    "AwaitingStep",
    "Cancelled",
    "Rejected",
    "RequestStatus",
    "StepStatus",
    "WorkflowState",
]

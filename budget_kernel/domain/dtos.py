"""
DTOs -- immutable data crossing the service boundary.

Responsibility:
    Services and selectors return these instead of ORM instances, so a
    caller can never mutate a managed row behind the orchestrator's back.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Models build them via ``to_dto()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from budget_kernel.domain.workflow import (
    AwaitingStep,
    RequestStatus,
    StepStatus,
    WorkflowState,
)


@dataclass(frozen=True)
class Actor:
    """An already-authenticated caller."""

    id: UUID
    role: str


@dataclass(frozen=True)
class ProjectTotals:
    id: UUID
    code: str
    name: str
    current_budget: Decimal
    executed_amount: Decimal
    remaining_budget: Decimal
    execution_rate: Decimal


@dataclass(frozen=True)
class LineItemBalance:
    """Snapshot of one budget line item's balances."""

    id: UUID
    project_id: UUID
    category: str
    main_item: str
    sub_item: str | None
    initial_budget: Decimal
    current_budget: Decimal
    executed_amount: Decimal
    pending_execution_amount: Decimal
    remaining_budget: Decimal
    remaining_before_exec: Decimal
    remaining_after_exec: Decimal
    execution_rate: Decimal
    display_order: int = 0
    is_active: bool = True


@dataclass(frozen=True)
class ApprovalStepInfo:
    """One approval step, with enough request context for an approver's inbox."""

    id: UUID
    request_id: UUID
    step: int
    approver_role: str
    status: StepStatus
    approver_id: UUID | None = None
    decision: str | None = None
    decided_at: datetime | None = None
    request_number: str | None = None
    amount: Decimal | None = None
    requested_at: datetime | None = None


@dataclass(frozen=True)
class ExecutionRequestInfo:
    id: UUID
    request_number: str
    project_id: UUID
    line_item_id: UUID
    requested_by_id: UUID
    amount: Decimal
    execution_date: date
    purpose: str
    description: str | None
    request_type: str
    state: WorkflowState
    rejection_reason: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    steps: tuple[ApprovalStepInfo, ...] = field(default_factory=tuple)

    @property
    def status(self) -> RequestStatus:
        return self.state.status

    @property
    def current_step(self) -> int | None:
        if isinstance(self.state, AwaitingStep):
            return self.state.step
        return None


@dataclass(frozen=True)
class DecisionResult:
    """Outcome of approve / reject / cancel."""

    message: str
    request_id: UUID
    state: WorkflowState
    step_id: UUID | None = None

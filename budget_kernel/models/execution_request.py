"""
Module: budget_kernel.models.execution_request
Responsibility: ORM persistence for execution requests and their approval
    steps.

Architecture position: Kernel > Models.  May import from db/, domain/
    and exceptions only.

Invariants enforced:
    - status/current_step consistency (CHECK): current_step is set iff the
      request is PENDING, and then lies in 1..total_steps.
    - UNIQUE(request_id, step): one row per chain position.
    - UNIQUE(request_number).
    - Terminal requests (APPROVED, REJECTED, CANCELLED) and decided steps
      are frozen: ORM-level before_update/before_delete listeners raise
      ImmutabilityViolationError.

Failure modes:
    - IntegrityError on a duplicate request number or step index.
    - ImmutabilityViolationError on a write to a terminal request or a
      decided step.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    event,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_kernel.db.base import TrackedBase, UUIDString
from budget_kernel.domain.workflow import (
    TERMINAL_REQUEST_STATUSES,
    RequestStatus,
    StepStatus,
    state_from_columns,
)
from budget_kernel.exceptions import ImmutabilityViolationError

if TYPE_CHECKING:
    from budget_kernel.domain.dtos import ApprovalStepInfo, ExecutionRequestInfo
    from budget_kernel.domain.workflow import WorkflowState


class ExecutionRequestModel(TrackedBase):
    """Request to spend against one budget line item."""

    __tablename__ = "execution_requests"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'CANCELLED')",
            name="ck_execution_requests_valid_status",
        ),
        CheckConstraint(
            "(status = 'PENDING' AND current_step IS NOT NULL "
            "AND current_step BETWEEN 1 AND total_steps) "
            "OR (status <> 'PENDING' AND current_step IS NULL)",
            name="ck_execution_requests_step_matches_status",
        ),
        CheckConstraint("amount > 0", name="ck_execution_requests_positive_amount"),
        CheckConstraint("total_steps >= 1", name="ck_execution_requests_has_steps"),
        Index("ix_execution_requests_project_status", "project_id", "status"),
        Index("ix_execution_requests_status_created", "status", "created_at"),
    )

    request_number: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    project_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("projects.id"), nullable=False
    )
    line_item_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("budget_line_items.id"), nullable=False
    )
    requested_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    execution_date: Mapped[date] = mapped_column(Date, nullable=False)
    purpose: Mapped[str] = mapped_column(String(1000), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    request_type: Mapped[str] = mapped_column(String(50), nullable=False)
    total_steps: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequestStatus.PENDING.value
    )
    current_step: Mapped[int | None] = mapped_column(Integer, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    steps: Mapped[list["ApprovalStepModel"]] = relationship(
        back_populates="request",
        order_by="ApprovalStepModel.step",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<ExecutionRequest {self.request_number} amount={self.amount} "
            f"status={self.status} step={self.current_step}/{self.total_steps}>"
        )

    @property
    def state(self) -> WorkflowState:
        return state_from_columns(self.status, self.current_step, self.total_steps)

    def to_dto(self, include_steps: bool = True) -> ExecutionRequestInfo:
        from budget_kernel.domain.dtos import ExecutionRequestInfo

        return ExecutionRequestInfo(
            id=self.id,
            request_number=self.request_number,
            project_id=self.project_id,
            line_item_id=self.line_item_id,
            requested_by_id=self.requested_by_id,
            amount=self.amount,
            execution_date=self.execution_date,
            purpose=self.purpose,
            description=self.description,
            request_type=self.request_type,
            state=self.state,
            rejection_reason=self.rejection_reason,
            created_at=self.created_at,
            completed_at=self.completed_at,
            steps=tuple(s.to_dto() for s in self.steps) if include_steps else (),
        )


class ApprovalStepModel(TrackedBase):
    """One role-gated decision point of a request's chain."""

    __tablename__ = "approval_steps"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED', 'SKIPPED')",
            name="ck_approval_steps_valid_status",
        ),
        UniqueConstraint("request_id", "step", name="uq_approval_steps_request_step"),
        Index("ix_approval_steps_role_status", "approver_role", "status"),
    )

    request_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("execution_requests.id"), nullable=False
    )
    step: Mapped[int] = mapped_column(Integer, nullable=False)
    approver_role: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=StepStatus.PENDING.value
    )
    approver_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    decision: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    request: Mapped[ExecutionRequestModel] = relationship(back_populates="steps")

    def __repr__(self) -> str:
        return f"<ApprovalStep {self.step} role={self.approver_role} status={self.status}>"

    def to_dto(self, request: ExecutionRequestModel | None = None) -> ApprovalStepInfo:
        from budget_kernel.domain.dtos import ApprovalStepInfo

        return ApprovalStepInfo(
            id=self.id,
            request_id=self.request_id,
            step=self.step,
            approver_role=self.approver_role,
            status=StepStatus(self.status),
            approver_id=self.approver_id,
            decision=self.decision,
            decided_at=self.decided_at,
            request_number=request.request_number if request is not None else None,
            amount=request.amount if request is not None else None,
            requested_at=request.created_at if request is not None else None,
        )


# =============================================================================
# ORM-level immutability of terminal requests and decided steps
# =============================================================================


def _persisted_status(target) -> str:
    """Status as last loaded from the database, ignoring unflushed edits."""
    history = inspect(target).attrs.status.history
    if history.deleted:
        return history.deleted[0]
    return target.status


@event.listens_for(ExecutionRequestModel, "before_update")
def prevent_terminal_request_update(mapper, connection, target):
    status = _persisted_status(target)
    if RequestStatus(status) in TERMINAL_REQUEST_STATUSES:
        raise ImmutabilityViolationError(
            entity_type="ExecutionRequest",
            entity_id=str(target.id),
            reason=f"Request is {status} -- cannot modify",
        )


@event.listens_for(ExecutionRequestModel, "before_delete")
def prevent_request_delete(mapper, connection, target):
    raise ImmutabilityViolationError(
        entity_type="ExecutionRequest",
        entity_id=str(target.id),
        reason="Execution requests cannot be deleted",
    )


@event.listens_for(ApprovalStepModel, "before_update")
def prevent_decided_step_update(mapper, connection, target):
    status = _persisted_status(target)
    if status != StepStatus.PENDING.value:
        raise ImmutabilityViolationError(
            entity_type="ApprovalStep",
            entity_id=str(target.id),
            reason=f"Step is {status} -- cannot modify",
        )


@event.listens_for(ApprovalStepModel, "before_delete")
def prevent_step_delete(mapper, connection, target):
    raise ImmutabilityViolationError(
        entity_type="ApprovalStep",
        entity_id=str(target.id),
        reason="Approval steps cannot be deleted",
    )

"""
Module: budget_kernel.selectors.execution_selector
Responsibility: Read-side queries over execution requests and approval
    steps: an approver's pending inbox, request detail and listings.

The pending inbox only shows a step that is actually actionable: the
step is PENDING, it is the request's current step, the request itself is
PENDING, and the step's role matches.  Oldest request first.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from budget_kernel.domain.dtos import ApprovalStepInfo, ExecutionRequestInfo
from budget_kernel.domain.workflow import RequestStatus, StepStatus
from budget_kernel.exceptions import (
    ApprovalStepNotFoundError,
    ExecutionRequestNotFoundError,
)
from budget_kernel.models.execution_request import (
    ApprovalStepModel,
    ExecutionRequestModel,
)
from budget_kernel.selectors.base import BaseSelector


class ExecutionSelector(BaseSelector):
    def list_pending_for(self, role: str) -> list[ApprovalStepInfo]:
        rows = self.session.execute(
            select(ApprovalStepModel, ExecutionRequestModel)
            .join(
                ExecutionRequestModel,
                ExecutionRequestModel.id == ApprovalStepModel.request_id,
            )
            .where(
                ApprovalStepModel.approver_role == role,
                ApprovalStepModel.status == StepStatus.PENDING.value,
                ExecutionRequestModel.status == RequestStatus.PENDING.value,
                ApprovalStepModel.step == ExecutionRequestModel.current_step,
            )
            .order_by(
                ExecutionRequestModel.created_at,
                ExecutionRequestModel.request_number,
            )
        ).all()
        return [step.to_dto(request) for step, request in rows]

    def get_request(self, request_id: UUID) -> ExecutionRequestInfo:
        request = self.session.execute(
            select(ExecutionRequestModel)
            .where(ExecutionRequestModel.id == request_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if request is None:
            raise ExecutionRequestNotFoundError(str(request_id))
        return request.to_dto()

    def get_step(self, step_id: UUID) -> ApprovalStepInfo:
        row = self.session.execute(
            select(ApprovalStepModel, ExecutionRequestModel)
            .join(
                ExecutionRequestModel,
                ExecutionRequestModel.id == ApprovalStepModel.request_id,
            )
            .where(ApprovalStepModel.id == step_id)
            .execution_options(populate_existing=True)
        ).one_or_none()
        if row is None:
            raise ApprovalStepNotFoundError(str(step_id))
        step, request = row
        return step.to_dto(request)

    def list_requests(
        self,
        project_id: UUID | None = None,
        status: RequestStatus | str | None = None,
    ) -> list[ExecutionRequestInfo]:
        """Requests newest first, optionally filtered by project and status."""
        stmt = select(ExecutionRequestModel)
        if project_id is not None:
            stmt = stmt.where(ExecutionRequestModel.project_id == project_id)
        if status is not None:
            stmt = stmt.where(
                ExecutionRequestModel.status == RequestStatus(status).value
            )
        stmt = stmt.order_by(
            ExecutionRequestModel.created_at.desc(),
            ExecutionRequestModel.request_number.desc(),
        )
        return [r.to_dto() for r in self.session.execute(stmt).scalars()]

"""
RequestIntakeService -- validates and creates execution requests.

Responsibility:
    Turns caller input into an ExecutionRequest, its pre-built chain of
    ApprovalStep rows and a ledger reservation.

Architecture position:
    Kernel > Services.  Invoked through WorkflowOrchestrator.create_request,
    which owns the transaction; this service only flushes.

Steps:
    1. Validate the closed field set (amount, date, purpose, description).
    2. Resolve the approval chain for the request type.
    3. Lock the line item; it must exist, be active and belong to the
       project.
    4. amount <= current_budget - executed_amount, else InsufficientBudget.
    5. Allocate EXE-<year>-<seq> (year from the injected clock).
    6. Insert the request (PENDING, step 1) and steps 1..N (all PENDING).
    7. BudgetLedger.reserve().

Failure modes:
    - ValidationError (and subclasses) for malformed input.
    - LineItemNotFoundError / ProjectNotFoundError.
    - InsufficientBudgetError.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from budget_kernel.domain.clock import Clock
from budget_kernel.domain.dtos import Actor, ExecutionRequestInfo
from budget_kernel.domain.policy import WorkflowPolicy
from budget_kernel.domain.validation import (
    optional_text,
    parse_amount,
    parse_execution_date,
    require_text,
)
from budget_kernel.domain.workflow import StepStatus, initial_state, state_to_columns
from budget_kernel.exceptions import (
    InactiveLineItemError,
    LineItemProjectMismatchError,
)
from budget_kernel.logging_config import get_logger
from budget_kernel.models.execution_request import (
    ApprovalStepModel,
    ExecutionRequestModel,
)
from budget_kernel.services.base import BaseService
from budget_kernel.services.ledger_service import BudgetLedger
from budget_kernel.services.request_numbering import RequestNumberService

logger = get_logger("services.intake")


class RequestIntakeService(BaseService):
    def __init__(
        self,
        session: Session,
        policy: WorkflowPolicy | None = None,
        clock: Clock | None = None,
        ledger: BudgetLedger | None = None,
    ):
        super().__init__(session, clock)
        self._policy = policy or WorkflowPolicy.default()
        self._ledger = ledger or BudgetLedger(session, self.clock)
        self._numbering = RequestNumberService(
            session,
            prefix=self._policy.request_number_prefix,
            width=self._policy.sequence_width,
        )

    def create_request(
        self,
        project_id: UUID,
        line_item_id: UUID,
        amount: Any,
        execution_date: date | str,
        purpose: str,
        requested_by: Actor,
        description: str | None = None,
        request_type: str | None = None,
    ) -> ExecutionRequestInfo:
        limits = self._policy.limits
        amount_value: Decimal = parse_amount(amount)
        exec_date = parse_execution_date(execution_date)
        purpose_text = require_text(purpose, "purpose", limits.purpose_max_length)
        description_text = optional_text(
            description, "description", limits.description_max_length
        )
        chain = self._policy.chain_for(request_type)

        item = self._ledger.load_line_item(line_item_id)
        if item.project_id != project_id:
            # Distinguish a bad project id from a line item of another project
            self._ledger.load_project(project_id, lock=False)
            raise LineItemProjectMismatchError(str(line_item_id), str(project_id))
        if not item.is_active:
            raise InactiveLineItemError(str(line_item_id))
        self._ledger.ensure_available(item, amount_value)

        now = self.clock.now()
        request_number = self._numbering.next_number(now.year)
        state = initial_state(chain.total_steps)
        status, current_step = state_to_columns(state)

        request = ExecutionRequestModel(
            id=uuid4(),
            request_number=request_number,
            project_id=project_id,
            line_item_id=line_item_id,
            requested_by_id=requested_by.id,
            amount=amount_value,
            execution_date=exec_date,
            purpose=purpose_text,
            description=description_text,
            request_type=chain.request_type,
            total_steps=chain.total_steps,
            status=status,
            current_step=current_step,
            created_at=now,
            updated_at=now,
            created_by_id=requested_by.id,
        )
        request.steps = [
            ApprovalStepModel(
                step=index,
                approver_role=chain.role_for_step(index),
                status=StepStatus.PENDING.value,
                created_at=now,
                updated_at=now,
                created_by_id=requested_by.id,
            )
            for index in range(1, chain.total_steps + 1)
        ]
        self.session.add(request)
        self.session.flush()

        self._ledger.reserve(line_item_id, amount_value, actor_id=requested_by.id)

        logger.info(
            "execution_request_created",
            extra={
                "request_id": str(request.id),
                "request_number": request_number,
                "line_item_id": str(line_item_id),
                "amount": str(amount_value),
                "request_type": chain.request_type,
                "total_steps": chain.total_steps,
            },
        )
        return request.to_dto()

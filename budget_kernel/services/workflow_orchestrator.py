"""
WorkflowOrchestrator -- drives execution requests through their approval chain.

Responsibility:
    The single entry point for every mutating workflow operation:

        create_request   intake + reservation
        approve          advance the chain; final step commits the ledger
        reject           close the request, skip later steps, release funds
        cancel_request   requester withdraws a pending request

    plus the ``list_pending`` inbox query.  Each mutating call is exactly
    one transaction owned by this class: commit on success, rollback on
    any failure, then the exception is re-raised unchanged.

Architecture position:
    Kernel > Services.  Composes AuthorizationGate, BudgetLedger,
    RequestIntakeService and ExecutionSelector.  The only kernel component
    that calls ``session.commit()``.

Invariants enforced:
    - Each owned operation runs in a transaction of its own, opened as a
      writer (BEGIN IMMEDIATE on SQLite); a read transaction left open on
      the session is committed first.
    - Every check (existence, role, step status, step order, final budget
      re-check) runs before the first write.
    - Rows are locked in a fixed order: step -> request -> line item ->
      project, fresh from the database (populate_existing).
    - The step decision is a compare-and-set UPDATE guarded by
      ``status = 'PENDING'``; a losing racer gets AlreadyDecidedError and
      no ledger effect is applied.
    - Request state moves only through ``budget_kernel.domain.workflow``.

Failure modes:
    - ApprovalStepNotFoundError / ExecutionRequestNotFoundError (NOT_FOUND)
    - RoleMismatchError / NotRequesterError (FORBIDDEN)
    - AlreadyDecidedError / StepOutOfOrderError (BAD_REQUEST, conflict)
    - InsufficientBudgetError at intake or at final approval
    - ValidationError for malformed input or a blank rejection reason

Notifications are dispatched after commit and never fail the operation.
"""

from __future__ import annotations

import time
from datetime import date, datetime
from typing import Any, Callable, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from budget_kernel.db.engine import begin_write_transaction
from budget_kernel.domain.clock import Clock, SystemClock
from budget_kernel.domain.dtos import (
    Actor,
    ApprovalStepInfo,
    DecisionResult,
    ExecutionRequestInfo,
)
from budget_kernel.domain.policy import WorkflowPolicy
from budget_kernel.domain.validation import optional_text, require_text
from budget_kernel.domain import workflow
from budget_kernel.domain.workflow import (
    Approved,
    AwaitingStep,
    StepStatus,
    state_to_columns,
)
from budget_kernel.exceptions import (
    AlreadyDecidedError,
    ApprovalStepNotFoundError,
    BudgetKernelError,
    ExecutionRequestNotFoundError,
    NotRequesterError,
    StepOutOfOrderError,
)
from budget_kernel.logging_config import LogContext, get_logger
from budget_kernel.models.execution_request import (
    ApprovalStepModel,
    ExecutionRequestModel,
)
from budget_kernel.models.project import BudgetLineItem
from budget_kernel.selectors.execution_selector import ExecutionSelector
from budget_kernel.services.authorization import AuthorizationGate
from budget_kernel.services.intake_service import RequestIntakeService
from budget_kernel.services.ledger_service import BudgetLedger
from budget_kernel.services.notification import (
    LoggingNotificationDispatcher,
    NotificationDispatcher,
    dispatch_safely,
)

logger = get_logger("services.workflow_orchestrator")

T = TypeVar("T")

APPROVED_MESSAGE = "Approved successfully"
REJECTED_MESSAGE = "Rejected successfully"
CANCELLED_MESSAGE = "Cancelled successfully"


class WorkflowOrchestrator:
    """
    Owns the transaction of every workflow operation.

    Set ``auto_commit=False`` to let the caller own the transaction
    instead (the orchestrator then only flushes, and notifications are
    left to the caller).
    """

    def __init__(
        self,
        session: Session,
        policy: WorkflowPolicy | None = None,
        clock: Clock | None = None,
        notifier: NotificationDispatcher | None = None,
        gate: AuthorizationGate | None = None,
        auto_commit: bool = True,
    ):
        self._session = session
        self._policy = policy or WorkflowPolicy.default()
        self._clock = clock or SystemClock()
        self._notifier = notifier or LoggingNotificationDispatcher()
        self._gate = gate or AuthorizationGate()
        self._auto_commit = auto_commit
        self._ledger = BudgetLedger(session, self._clock)
        self._intake = RequestIntakeService(
            session, self._policy, self._clock, ledger=self._ledger
        )
        self._selector = ExecutionSelector(session)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

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
        def _create() -> tuple[ExecutionRequestInfo, ExecutionRequestInfo]:
            info = self._intake.create_request(
                project_id=project_id,
                line_item_id=line_item_id,
                amount=amount,
                execution_date=execution_date,
                purpose=purpose,
                requested_by=requested_by,
                description=description,
                request_type=request_type,
            )
            return info, info

        info = self._run(
            "create_request",
            _create,
            actor=requested_by,
            project_id=project_id,
        )
        self._notify("request_created", self._notifier.request_created, info)
        return info

    def approve(
        self, step_id: UUID, actor: Actor, note: str | None = None
    ) -> DecisionResult:
        def _approve() -> tuple[DecisionResult, ExecutionRequestInfo]:
            note_text = optional_text(note, "note", self._policy.limits.note_max_length)
            step, request, item = self._load_decision_context(step_id)
            awaiting = self._check_decidable(step, request, actor)

            new_state = workflow.advance(awaiting)
            is_final = isinstance(new_state, Approved)
            if is_final:
                # Other commits may have consumed the balance since intake
                self._ledger.ensure_available(item, request.amount)

            now = self._clock.now()
            self._claim_step(step, StepStatus.APPROVED, actor, note_text, now)
            self._set_state(request, new_state, actor, now)
            self._session.flush()

            if is_final:
                self._ledger.commit(item.id, request.amount, actor_id=actor.id)
                self._ledger.rollup(request.project_id, actor_id=actor.id)

            logger.info(
                "approval_step_approved",
                extra={
                    "step": step.step,
                    "total_steps": request.total_steps,
                    "final": is_final,
                },
            )
            result = DecisionResult(
                message=APPROVED_MESSAGE,
                request_id=request.id,
                state=new_state,
                step_id=step.id,
            )
            return result, request.to_dto()

        return self._decide("approve", _approve, actor, step_id=step_id)

    def reject(self, step_id: UUID, actor: Actor, reason: str) -> DecisionResult:
        def _reject() -> tuple[DecisionResult, ExecutionRequestInfo]:
            reason_text = require_text(
                reason, "reason", self._policy.limits.reason_max_length
            )
            step, request, item = self._load_decision_context(step_id)
            awaiting = self._check_decidable(step, request, actor)

            new_state = workflow.reject(awaiting)
            now = self._clock.now()
            self._claim_step(step, StepStatus.REJECTED, actor, reason_text, now)
            skipped = self._skip_pending_steps(
                request, after_step=step.step, actor=actor, now=now
            )
            self._set_state(request, new_state, actor, now)
            request.rejection_reason = reason_text
            self._session.flush()

            self._ledger.release(item.id, request.amount, actor_id=actor.id)

            logger.info(
                "approval_step_rejected",
                extra={"step": step.step, "skipped_steps": skipped},
            )
            result = DecisionResult(
                message=REJECTED_MESSAGE,
                request_id=request.id,
                state=new_state,
                step_id=step.id,
            )
            return result, request.to_dto()

        return self._decide("reject", _reject, actor, step_id=step_id)

    def cancel_request(self, request_id: UUID, actor: Actor) -> DecisionResult:
        def _cancel() -> tuple[DecisionResult, ExecutionRequestInfo]:
            # Steps before request, same order as approve/reject
            self._session.execute(
                select(ApprovalStepModel)
                .where(ApprovalStepModel.request_id == request_id)
                .order_by(ApprovalStepModel.step)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalars().all()
            request = self._load_request(request_id)

            if request.requested_by_id != actor.id:
                raise NotRequesterError(str(request_id), str(actor.id))
            state = request.state
            if not isinstance(state, AwaitingStep):
                raise AlreadyDecidedError("ExecutionRequest", str(request.id), request.status)
            item = self._ledger.load_line_item(request.line_item_id)

            new_state = workflow.cancel(state)
            now = self._clock.now()
            skipped = self._skip_pending_steps(
                request, after_step=0, actor=actor, now=now
            )
            self._set_state(request, new_state, actor, now)
            self._session.flush()

            self._ledger.release(item.id, request.amount, actor_id=actor.id)

            logger.info("execution_request_cancelled", extra={"skipped_steps": skipped})
            result = DecisionResult(
                message=CANCELLED_MESSAGE,
                request_id=request.id,
                state=new_state,
            )
            return result, request.to_dto()

        return self._decide("cancel", _cancel, actor, request_id=request_id)

    def list_pending(self, actor: Actor) -> list[ApprovalStepInfo]:
        """Steps this actor can decide right now, oldest request first."""
        return self._selector.list_pending_for(actor.role)

    def get_request(self, request_id: UUID) -> ExecutionRequestInfo:
        return self._selector.get_request(request_id)

    # ------------------------------------------------------------------
    # Transaction and logging envelope
    # ------------------------------------------------------------------

    def _decide(
        self,
        operation: str,
        fn: Callable[[], tuple[DecisionResult, ExecutionRequestInfo]],
        actor: Actor,
        **ids: UUID,
    ) -> DecisionResult:
        result, request_info = self._run_with_info(operation, fn, actor=actor, **ids)
        if self._auto_commit and not isinstance(result.state, AwaitingStep):
            self._notify(
                "request_decided", self._notifier.request_decided, request_info, actor
            )
        return result

    def _run(
        self,
        operation: str,
        fn: Callable[[], tuple[T, ExecutionRequestInfo]],
        actor: Actor,
        **ids: UUID,
    ) -> T:
        result, _ = self._run_with_info(operation, fn, actor=actor, **ids)
        return result

    def _run_with_info(
        self,
        operation: str,
        fn: Callable[[], tuple[T, ExecutionRequestInfo]],
        actor: Actor,
        **ids: UUID,
    ) -> tuple[T, ExecutionRequestInfo]:
        with LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=str(actor.id),
            **{key: str(value) for key, value in ids.items()},
        ):
            logger.info(
                "workflow_operation_started",
                extra={"operation": operation, "actor_role": actor.role},
            )
            t0 = time.monotonic()
            try:
                if self._auto_commit:
                    self._begin()
                outcome = fn()
                if self._auto_commit:
                    self._session.commit()
            except BudgetKernelError as exc:
                self._rollback()
                logger.warning(
                    "workflow_operation_failed",
                    extra={
                        "operation": operation,
                        "error_code": exc.code,
                        "error_kind": exc.kind,
                        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                    },
                )
                raise
            except Exception:
                self._rollback()
                logger.error(
                    "workflow_operation_failed",
                    extra={
                        "operation": operation,
                        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                    },
                    exc_info=True,
                )
                raise

            logger.info(
                "workflow_operation_completed",
                extra={
                    "operation": operation,
                    "request_id": str(outcome[1].id),
                    "status": outcome[1].status.value,
                    "current_step": outcome[1].current_step,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return outcome

    def _begin(self) -> None:
        # Reads made earlier on this session would leave a stale snapshot open
        if self._session.in_transaction():
            self._session.commit()
        begin_write_transaction(self._session)

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()

    def _notify(self, action: str, call: Callable[..., None], *args: Any) -> None:
        if self._auto_commit:
            dispatch_safely(action, call, *args)

    # ------------------------------------------------------------------
    # Loading and checks (no writes)
    # ------------------------------------------------------------------

    def _load_request(self, request_id: UUID) -> ExecutionRequestModel:
        request = self._session.execute(
            select(ExecutionRequestModel)
            .where(ExecutionRequestModel.id == request_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if request is None:
            raise ExecutionRequestNotFoundError(str(request_id))
        return request

    def _load_decision_context(
        self, step_id: UUID
    ) -> tuple[ApprovalStepModel, ExecutionRequestModel, BudgetLineItem]:
        step = self._session.execute(
            select(ApprovalStepModel)
            .where(ApprovalStepModel.id == step_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if step is None:
            raise ApprovalStepNotFoundError(str(step_id))

        request = self._load_request(step.request_id)
        item = self._ledger.load_line_item(request.line_item_id)
        return step, request, item

    def _check_decidable(
        self,
        step: ApprovalStepModel,
        request: ExecutionRequestModel,
        actor: Actor,
    ) -> AwaitingStep:
        self._gate.require(actor, step)

        if step.status != StepStatus.PENDING.value:
            raise AlreadyDecidedError("ApprovalStep", str(step.id), step.status)

        state = request.state
        if not isinstance(state, AwaitingStep):
            raise AlreadyDecidedError("ExecutionRequest", str(request.id), request.status)

        if step.step != state.step:
            raise StepOutOfOrderError(str(step.id), step.step, state.step)
        return state

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _claim_step(
        self,
        step: ApprovalStepModel,
        status: StepStatus,
        actor: Actor,
        decision: str | None,
        now: datetime,
    ) -> None:
        """Compare-and-set the step out of PENDING; lose -> AlreadyDecidedError."""
        result = self._session.execute(
            update(ApprovalStepModel)
            .where(
                ApprovalStepModel.id == step.id,
                ApprovalStepModel.status == StepStatus.PENDING.value,
            )
            .values(
                status=status.value,
                approver_id=actor.id,
                decision=decision,
                decided_at=now,
                updated_at=now,
                updated_by_id=actor.id,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise AlreadyDecidedError("ApprovalStep", str(step.id), "decided concurrently")
        self._session.refresh(step)

    def _skip_pending_steps(
        self,
        request: ExecutionRequestModel,
        after_step: int,
        actor: Actor,
        now: datetime,
    ) -> int:
        skipped = 0
        for other in request.steps:
            if other.step > after_step and other.status == StepStatus.PENDING.value:
                other.status = StepStatus.SKIPPED.value
                other.updated_at = now
                other.updated_by_id = actor.id
                skipped += 1
        return skipped

    def _set_state(
        self,
        request: ExecutionRequestModel,
        state: workflow.WorkflowState,
        actor: Actor,
        now: datetime,
    ) -> None:
        status, current_step = state_to_columns(state)
        request.status = status
        request.current_step = current_step
        request.updated_at = now
        request.updated_by_id = actor.id
        if workflow.is_terminal(state):
            request.completed_at = now

"""
Execution request workflow state (``budget_kernel.domain.workflow``).

Responsibility
--------------
The approval chain of one execution request as an explicit tagged state:

    AwaitingStep(step=k, total_steps=N)   k = 1..N
    Approved | Rejected | Cancelled       terminal

plus the pure transition functions the orchestrator applies.  The
persisted ``(status, current_step)`` column pair is only ever read and
written through ``state_from_columns`` / ``state_to_columns``, so a
combination such as ``current_step=3`` on a REJECTED request cannot be
produced by the kernel (and is also refused by a CHECK constraint).

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``1 <= step <= total_steps`` for AwaitingStep.
* Terminal states have no outgoing transitions.
* Approving the last step is the only way to reach Approved.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from budget_kernel.exceptions import InvalidWorkflowTransitionError


class RequestStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class StepStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SKIPPED = "SKIPPED"


TERMINAL_REQUEST_STATUSES: frozenset[RequestStatus] = frozenset({
    RequestStatus.APPROVED,
    RequestStatus.REJECTED,
    RequestStatus.CANCELLED,
})


@dataclass(frozen=True)
class AwaitingStep:
    """Request is waiting on approval step ``step`` of ``total_steps``."""

    step: int
    total_steps: int

    def __post_init__(self) -> None:
        if self.total_steps < 1:
            raise ValueError("total_steps must be >= 1")
        if not 1 <= self.step <= self.total_steps:
            raise ValueError(
                f"step must be within 1..{self.total_steps}, got {self.step}"
            )

    @property
    def is_final(self) -> bool:
        return self.step == self.total_steps

    @property
    def status(self) -> RequestStatus:
        return RequestStatus.PENDING


@dataclass(frozen=True)
class Approved:
    @property
    def status(self) -> RequestStatus:
        return RequestStatus.APPROVED


@dataclass(frozen=True)
class Rejected:
    @property
    def status(self) -> RequestStatus:
        return RequestStatus.REJECTED


@dataclass(frozen=True)
class Cancelled:
    @property
    def status(self) -> RequestStatus:
        return RequestStatus.CANCELLED


WorkflowState = AwaitingStep | Approved | Rejected | Cancelled


def initial_state(total_steps: int) -> AwaitingStep:
    return AwaitingStep(step=1, total_steps=total_steps)


def is_terminal(state: WorkflowState) -> bool:
    return not isinstance(state, AwaitingStep)


def _require_awaiting(state: WorkflowState, action: str) -> AwaitingStep:
    if not isinstance(state, AwaitingStep):
        raise InvalidWorkflowTransitionError(state.status.value, action)
    return state


def advance(state: WorkflowState) -> AwaitingStep | Approved:
    """Approve the current step: move to the next one, or finish."""
    awaiting = _require_awaiting(state, "approve")
    if awaiting.is_final:
        return Approved()
    return AwaitingStep(step=awaiting.step + 1, total_steps=awaiting.total_steps)


def reject(state: WorkflowState) -> Rejected:
    _require_awaiting(state, "reject")
    return Rejected()


def cancel(state: WorkflowState) -> Cancelled:
    _require_awaiting(state, "cancel")
    return Cancelled()


def state_from_columns(
    status: str, current_step: int | None, total_steps: int
) -> WorkflowState:
    """Rebuild the tagged state from persisted columns.

    Raises ValueError on combinations the schema should never hold.
    """
    status = RequestStatus(status)
    if status is RequestStatus.PENDING:
        if current_step is None:
            raise ValueError("PENDING request without a current step")
        return AwaitingStep(step=current_step, total_steps=total_steps)
    if current_step is not None:
        raise ValueError(f"{status.value} request with current step {current_step}")
    if status is RequestStatus.APPROVED:
        return Approved()
    if status is RequestStatus.REJECTED:
        return Rejected()
    return Cancelled()


def state_to_columns(state: WorkflowState) -> tuple[str, int | None]:
    """Return ``(status, current_step)`` for persistence."""
    if isinstance(state, AwaitingStep):
        return RequestStatus.PENDING.value, state.step
    return state.status.value, None

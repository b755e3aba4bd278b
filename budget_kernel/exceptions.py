"""
Typed exception hierarchy for the budget kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the approval workflow need to tell "somebody else already decided
this step" apart from "you are not allowed to decide this step" without
parsing message strings. Every error therefore:

  1. Has its own exception class (catch by type, not message)
  2. Carries a class-level ``code`` (machine-readable, API-safe)
  3. Carries a class-level ``kind`` mapping it onto the caller-facing
     error surface: NOT_FOUND, BAD_REQUEST or FORBIDDEN
  4. Stores its context as structured attributes

Example:
    try:
        orchestrator.approve(step_id, actor)
    except AlreadyDecidedError as e:
        refresh_view(e.step_id)
    except BudgetKernelError as e:
        api_response(status=e.kind, code=e.code, message=str(e))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    BudgetKernelError (base)
    |
    +-- NotFoundError
    |   +-- ProjectNotFoundError
    |   +-- LineItemNotFoundError
    |   +-- ExecutionRequestNotFoundError
    |   +-- ApprovalStepNotFoundError
    |
    +-- WorkflowError
    |   +-- WorkflowConflictError
    |   |   +-- AlreadyDecidedError
    |   |   +-- StepOutOfOrderError
    |   +-- InvalidWorkflowTransitionError
    |
    +-- AuthorizationError
    |   +-- RoleMismatchError
    |   +-- NotRequesterError
    |
    +-- LedgerError
    |   +-- InsufficientBudgetError
    |
    +-- ValidationError
    |   +-- UnknownRequestTypeError
    |   +-- InactiveLineItemError
    |   +-- LineItemProjectMismatchError
    |   +-- DuplicateProjectCodeError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                          | Kind        | When Raised
------------------------------|-------------|--------------------------------
PROJECT_NOT_FOUND             | NOT_FOUND   | Project ID doesn't exist
LINE_ITEM_NOT_FOUND           | NOT_FOUND   | Line item ID doesn't exist
EXECUTION_REQUEST_NOT_FOUND   | NOT_FOUND   | Request ID doesn't exist
APPROVAL_STEP_NOT_FOUND       | NOT_FOUND   | Step ID doesn't exist
ALREADY_DECIDED               | BAD_REQUEST | Step (or request) no longer PENDING
STEP_OUT_OF_ORDER             | BAD_REQUEST | Step index != request.current_step
INVALID_WORKFLOW_TRANSITION   | BAD_REQUEST | Transition from a terminal state
ROLE_MISMATCH                 | FORBIDDEN   | Actor role != step approver role
NOT_REQUESTER                 | FORBIDDEN   | Cancel by someone other than requester
INSUFFICIENT_BUDGET           | BAD_REQUEST | Amount > current - executed
VALIDATION_ERROR              | BAD_REQUEST | Malformed amount/date/text field
UNKNOWN_REQUEST_TYPE          | BAD_REQUEST | No approval chain configured
INACTIVE_LINE_ITEM            | BAD_REQUEST | Line item deactivated
LINE_ITEM_PROJECT_MISMATCH    | BAD_REQUEST | Line item owned by another project
DUPLICATE_PROJECT_CODE        | BAD_REQUEST | Project code already used
IMMUTABILITY_VIOLATION        | BAD_REQUEST | Write to a terminal request

===============================================================================
"""

from decimal import Decimal


class ErrorKind:
    """Caller-facing error categories."""

    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    FORBIDDEN = "FORBIDDEN"


class BudgetKernelError(Exception):
    """
    Base exception for all budget kernel errors.

    All subclasses must have ``code`` and ``kind`` class attributes.
    """

    code: str = "BUDGET_KERNEL_ERROR"
    kind: str = ErrorKind.BAD_REQUEST


# Not-found exceptions


class NotFoundError(BudgetKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"
    kind: str = ErrorKind.NOT_FOUND


class ProjectNotFoundError(NotFoundError):
    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class LineItemNotFoundError(NotFoundError):
    code: str = "LINE_ITEM_NOT_FOUND"

    def __init__(self, line_item_id: str):
        self.line_item_id = line_item_id
        super().__init__(f"Budget line item not found: {line_item_id}")


class ExecutionRequestNotFoundError(NotFoundError):
    code: str = "EXECUTION_REQUEST_NOT_FOUND"

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Execution request not found: {request_id}")


class ApprovalStepNotFoundError(NotFoundError):
    code: str = "APPROVAL_STEP_NOT_FOUND"

    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"Approval step not found: {step_id}")


# Workflow exceptions


class WorkflowError(BudgetKernelError):
    """Base exception for approval workflow errors."""

    code: str = "WORKFLOW_ERROR"


class WorkflowConflictError(WorkflowError):
    """
    The decision raced with (or trailed) another decision.

    The caller must refresh its view; nothing was written.
    """

    code: str = "WORKFLOW_CONFLICT"


class AlreadyDecidedError(WorkflowConflictError):
    """Step (or request) is no longer PENDING."""

    code: str = "ALREADY_DECIDED"

    def __init__(self, entity_type: str, entity_id: str, status: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.status = status
        super().__init__(
            f"{entity_type} {entity_id} has already been decided (status={status})"
        )


class StepOutOfOrderError(WorkflowConflictError):
    """Step index does not match the request's current step."""

    code: str = "STEP_OUT_OF_ORDER"

    def __init__(self, step_id: str, step: int, current_step: int | None):
        self.step_id = step_id
        self.step = step
        self.current_step = current_step
        super().__init__(
            f"Approval step {step_id} is step {step} but the request "
            f"is at step {current_step}"
        )


class InvalidWorkflowTransitionError(WorkflowError):
    code: str = "INVALID_WORKFLOW_TRANSITION"

    def __init__(self, from_state: str, action: str):
        self.from_state = from_state
        self.action = action
        super().__init__(f"Cannot {action} a request in state {from_state}")


# Authorization exceptions


class AuthorizationError(BudgetKernelError):
    """Base exception for actor permission failures."""

    code: str = "FORBIDDEN"
    kind: str = ErrorKind.FORBIDDEN


class RoleMismatchError(AuthorizationError):
    code: str = "ROLE_MISMATCH"

    def __init__(self, actor_id: str, actor_role: str, required_role: str):
        self.actor_id = actor_id
        self.actor_role = actor_role
        self.required_role = required_role
        super().__init__(
            f"Actor {actor_id} with role {actor_role} cannot decide a step "
            f"requiring role {required_role}"
        )


class NotRequesterError(AuthorizationError):
    code: str = "NOT_REQUESTER"

    def __init__(self, request_id: str, actor_id: str):
        self.request_id = request_id
        self.actor_id = actor_id
        super().__init__(
            f"Only the requester can cancel execution request {request_id}"
        )


# Ledger exceptions


class LedgerError(BudgetKernelError):
    """Base exception for budget ledger errors."""

    code: str = "LEDGER_ERROR"


class InsufficientBudgetError(LedgerError):
    """Requested amount exceeds the line item's available balance."""

    code: str = "INSUFFICIENT_BUDGET"

    def __init__(self, line_item_id: str, requested: Decimal, available: Decimal):
        self.line_item_id = line_item_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient budget on line item {line_item_id}: "
            f"requested {requested}, available {available}"
        )


# Validation exceptions


class ValidationError(BudgetKernelError):
    """Malformed or out-of-range input."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Invalid {field}: {message}")


class UnknownRequestTypeError(ValidationError):
    code: str = "UNKNOWN_REQUEST_TYPE"

    def __init__(self, request_type: str):
        self.request_type = request_type
        super().__init__(
            "request_type", f"no approval chain configured for {request_type!r}"
        )


class InactiveLineItemError(ValidationError):
    code: str = "INACTIVE_LINE_ITEM"

    def __init__(self, line_item_id: str):
        self.line_item_id = line_item_id
        super().__init__("line_item_id", f"line item {line_item_id} is inactive")


class LineItemProjectMismatchError(ValidationError):
    code: str = "LINE_ITEM_PROJECT_MISMATCH"

    def __init__(self, line_item_id: str, project_id: str):
        self.line_item_id = line_item_id
        self.project_id = project_id
        super().__init__(
            "line_item_id",
            f"line item {line_item_id} does not belong to project {project_id}",
        )


class DuplicateProjectCodeError(ValidationError):
    code: str = "DUPLICATE_PROJECT_CODE"

    def __init__(self, project_code: str):
        self.project_code = project_code
        super().__init__("code", f"project code {project_code!r} already exists")


# Immutability exceptions


class ImmutabilityError(BudgetKernelError):
    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify a terminal execution request or one of its steps.

    APPROVED, REJECTED and CANCELLED requests are frozen.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )

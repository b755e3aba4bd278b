"""
BaseService -- common constructor and transaction contract for kernel services.

Every service receives the caller's ``Session`` and persists with
``session.flush()`` only.  It never commits or rolls back: the
WorkflowOrchestrator (or a ``session_scope()`` block, or a test) owns the
transaction, which is what makes create/approve/reject/cancel atomic.
"""

from abc import ABC

from sqlalchemy.orm import Session

from budget_kernel.domain.clock import Clock, SystemClock


class BaseService(ABC):
    """Flush-only service base."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self.clock = clock or SystemClock()

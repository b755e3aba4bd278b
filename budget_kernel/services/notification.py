"""
Notification dispatch -- the external collaborator informed of request
creation and terminal decisions.

The orchestrator calls the dispatcher only after its transaction has
committed.  Dispatch is best effort: any exception is logged at WARNING
and never propagates into (or undoes) the core operation.
"""

from __future__ import annotations

from typing import Protocol

from budget_kernel.domain.dtos import Actor, ExecutionRequestInfo
from budget_kernel.logging_config import get_logger

logger = get_logger("services.notification")


class NotificationDispatcher(Protocol):
    def request_created(self, request: ExecutionRequestInfo) -> None:
        ...

    def request_decided(self, request: ExecutionRequestInfo, actor: Actor) -> None:
        ...


class LoggingNotificationDispatcher:
    """Default dispatcher: records the notification as a structured log line."""

    def request_created(self, request: ExecutionRequestInfo) -> None:
        logger.info(
            "notify_request_created",
            extra={
                "request_id": str(request.id),
                "request_number": request.request_number,
                "amount": str(request.amount),
            },
        )

    def request_decided(self, request: ExecutionRequestInfo, actor: Actor) -> None:
        logger.info(
            "notify_request_decided",
            extra={
                "request_id": str(request.id),
                "request_number": request.request_number,
                "status": request.status.value,
                "decided_by": str(actor.id),
            },
        )


def dispatch_safely(action: str, call, *args) -> bool:
    """Run a dispatcher call; log and swallow any failure.  Returns success."""
    try:
        call(*args)
    except Exception:
        logger.warning("notification_dispatch_failed", extra={"action": action}, exc_info=True)
        return False
    return True

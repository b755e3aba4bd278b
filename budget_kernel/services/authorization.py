"""
AuthorizationGate -- which actor may decide which approval step.

The required role is data on the step row (copied from the configured
chain at intake), so chains of any length or composition are supported
without touching this module.
"""

from __future__ import annotations

from budget_kernel.domain.dtos import Actor
from budget_kernel.exceptions import RoleMismatchError
from budget_kernel.models.execution_request import ApprovalStepModel


class AuthorizationGate:
    def authorize(self, actor: Actor, step: ApprovalStepModel) -> bool:
        return actor.role == step.approver_role

    def require(self, actor: Actor, step: ApprovalStepModel) -> None:
        """Raise RoleMismatchError (FORBIDDEN) unless ``authorize`` holds."""
        if not self.authorize(actor, step):
            raise RoleMismatchError(str(actor.id), actor.role, step.approver_role)

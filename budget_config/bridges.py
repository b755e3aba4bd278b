"""
Bridges from configuration artifacts to kernel inputs.

The kernel never imports ``budget_config``; this module translates a
validated ``WorkflowConfigurationSet`` into the kernel's own
``WorkflowPolicy`` value object.
"""

from __future__ import annotations

from budget_config.schema import WorkflowConfigurationSet
from budget_kernel.domain.policy import ApprovalChain, FieldLimits, WorkflowPolicy


def build_workflow_policy(config: WorkflowConfigurationSet) -> WorkflowPolicy:
    chains = {
        chain.request_type: ApprovalChain(
            request_type=chain.request_type, roles=chain.roles
        )
        for chain in config.approval_chains
    }
    limits = FieldLimits(
        purpose_max_length=config.limits.purpose_max_length,
        description_max_length=config.limits.description_max_length,
        note_max_length=config.limits.note_max_length,
        reason_max_length=config.limits.reason_max_length,
    )
    return WorkflowPolicy(
        chains=chains,
        default_request_type=config.default_request_type,
        limits=limits,
        request_number_prefix=config.request_number.prefix,
        sequence_width=config.request_number.sequence_width,
    )

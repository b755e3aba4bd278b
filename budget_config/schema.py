"""
WorkflowConfigurationSet schema.

The human-authored, reviewable source artifact for approval workflow
configuration.  YAML files are parsed into these frozen types by the
loader, checked by the validator and bridged into the kernel's
``WorkflowPolicy`` by ``budget_config.bridges``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ApprovalChainDef:
    request_type: str
    roles: tuple[str, ...]
    description: str = ""


@dataclass(frozen=True)
class FieldLimitsDef:
    purpose_max_length: int = 1000
    description_max_length: int = 2000
    note_max_length: int = 500
    reason_max_length: int = 1000


@dataclass(frozen=True)
class RequestNumberDef:
    prefix: str = "EXE"
    sequence_width: int = 4


@dataclass(frozen=True)
class WorkflowConfigurationSet:
    config_id: str
    version: int
    default_request_type: str
    approval_chains: tuple[ApprovalChainDef, ...]
    limits: FieldLimitsDef = FieldLimitsDef()
    request_number: RequestNumberDef = RequestNumberDef()
    checksum: str = ""

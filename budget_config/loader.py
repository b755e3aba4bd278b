"""
Configuration loader (``budget_config.loader``).

Loads a YAML workflow configuration file and parses it into the frozen
``budget_config.schema`` dataclasses.  Runtime callers go through
``budget_config.get_active_config()`` instead of calling this directly.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML     -> ``yaml.YAMLError`` propagates.
* Missing required keys -> ``KeyError`` propagates.
* Wrongly typed values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from budget_config.schema import (
    ApprovalChainDef,
    FieldLimitsDef,
    RequestNumberDef,
    WorkflowConfigurationSet,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_chain(data: dict[str, Any]) -> ApprovalChainDef:
    roles = data["roles"]
    if not isinstance(roles, list):
        raise ValueError(
            f"Approval chain {data.get('request_type')!r}: roles must be a list"
        )
    return ApprovalChainDef(
        request_type=str(data["request_type"]),
        roles=tuple(str(role) for role in roles),
        description=data.get("description", ""),
    )


def parse_limits(data: dict[str, Any]) -> FieldLimitsDef:
    defaults = FieldLimitsDef()
    return FieldLimitsDef(
        purpose_max_length=int(data.get("purpose_max_length", defaults.purpose_max_length)),
        description_max_length=int(
            data.get("description_max_length", defaults.description_max_length)
        ),
        note_max_length=int(data.get("note_max_length", defaults.note_max_length)),
        reason_max_length=int(data.get("reason_max_length", defaults.reason_max_length)),
    )


def parse_request_number(data: dict[str, Any]) -> RequestNumberDef:
    return RequestNumberDef(
        prefix=str(data.get("prefix", "EXE")),
        sequence_width=int(data.get("sequence_width", 4)),
    )


def parse_configuration(data: dict[str, Any]) -> WorkflowConfigurationSet:
    chains = data.get("approval_chains") or []
    return WorkflowConfigurationSet(
        config_id=str(data["config_id"]),
        version=int(data.get("version", 1)),
        default_request_type=str(data["default_request_type"]),
        approval_chains=tuple(parse_chain(chain) for chain in chains),
        limits=parse_limits(data.get("limits") or {}),
        request_number=parse_request_number(data.get("request_number") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form; identical input, identical hash."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()

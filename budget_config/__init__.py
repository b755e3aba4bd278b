"""
budget_config -- single public entrypoint for workflow configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains the
    approval chains and field limits.  It loads a YAML configuration set,
    validates it and returns the kernel's ``WorkflowPolicy``.

Architecture position:
    Configuration layer above ``budget_kernel``.  The kernel never
    imports from here; ``bridges`` translates into kernel value objects.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``ValueError`` -- validation failures (all errors listed).

Audit relevance:
    Every successful call emits a ``BUDGET_CONFIG_TRACE`` log entry with
    the config id, version and checksum, tying decisions back to the
    configuration that governed them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from budget_config.bridges import build_workflow_policy
from budget_config.loader import load_yaml_file, parse_configuration
from budget_config.validator import validate_configuration
from budget_kernel.domain.policy import WorkflowPolicy

_logger = logging.getLogger("budget_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> WorkflowPolicy:
    """Load, validate and bridge a workflow configuration file.

    Args:
        config_path: YAML file to load.  Defaults to
            ``budget_config/sets/default.yaml``.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config_set = parse_configuration(load_yaml_file(path))

    validation = validate_configuration(config_set)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("budget_config_warning", extra={"detail": warning})

    policy = build_workflow_policy(config_set)

    _logger.info(
        "BUDGET_CONFIG_TRACE",
        extra={
            "trace_type": "BUDGET_CONFIG_TRACE",
            "config_set_id": config_set.config_id,
            "config_set_version": config_set.version,
            "checksum": config_set.checksum,
            "config_path": str(path),
            "request_types": sorted(policy.chains),
        },
    )
    return policy


__all__ = ["get_active_config", "DEFAULT_CONFIG_PATH"]

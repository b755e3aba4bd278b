"""
Configuration validator (``budget_config.validator``).

Structural checks on a parsed ``WorkflowConfigurationSet``.  A set with
errors must never be bridged into a kernel ``WorkflowPolicy``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from budget_config.schema import WorkflowConfigurationSet


@dataclass
class ConfigValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_configuration(config: WorkflowConfigurationSet) -> ConfigValidationResult:
    result = ConfigValidationResult()

    _validate_chains(config, result)
    _validate_default_request_type(config, result)
    _validate_limits(config, result)
    _validate_request_number(config, result)

    return result


def _validate_chains(
    config: WorkflowConfigurationSet, result: ConfigValidationResult
) -> None:
    if not config.approval_chains:
        result.add_error("At least one approval chain is required")

    seen: set[str] = set()
    for chain in config.approval_chains:
        if chain.request_type in seen:
            result.add_error(f"Duplicate approval chain for {chain.request_type!r}")
        seen.add(chain.request_type)

        if not chain.roles:
            result.add_error(f"Approval chain {chain.request_type!r} has no roles")
        for index, role in enumerate(chain.roles, start=1):
            if not role.strip():
                result.add_error(
                    f"Approval chain {chain.request_type!r} step {index} has a blank role"
                )
        if len(set(chain.roles)) != len(chain.roles):
            # Legal, but one person could then decide several steps in a row
            result.add_warning(
                f"Approval chain {chain.request_type!r} repeats a role"
            )


def _validate_default_request_type(
    config: WorkflowConfigurationSet, result: ConfigValidationResult
) -> None:
    known = {chain.request_type for chain in config.approval_chains}
    if config.default_request_type not in known:
        result.add_error(
            f"Default request type {config.default_request_type!r} "
            "has no approval chain"
        )


def _validate_limits(
    config: WorkflowConfigurationSet, result: ConfigValidationResult
) -> None:
    for name in (
        "purpose_max_length",
        "description_max_length",
        "note_max_length",
        "reason_max_length",
    ):
        if getattr(config.limits, name) <= 0:
            result.add_error(f"limits.{name} must be positive")


def _validate_request_number(
    config: WorkflowConfigurationSet, result: ConfigValidationResult
) -> None:
    if not config.request_number.prefix.strip():
        result.add_error("request_number.prefix must not be blank")
    if not 1 <= config.request_number.sequence_width <= 9:
        result.add_error("request_number.sequence_width must be within 1..9")

"""
Approval chain policy (``budget_kernel.domain.policy``).

Responsibility
--------------
Which roles must approve a request, in which order, per request type,
plus the field-length limits applied at intake and on decisions.  The
kernel receives a ``WorkflowPolicy`` by injection; ``budget_config``
builds one from YAML.  Nothing here is hardcoded into the orchestrator:
a chain of any length or composition works without code changes.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from budget_kernel.exceptions import UnknownRequestTypeError


class Role:
    """Well-known approver roles used by the built-in chain."""

    STAFF = "STAFF"
    MANAGER = "MANAGER"
    CFO = "CFO"
    ADMIN = "ADMIN"


DEFAULT_REQUEST_TYPE = "STANDARD"


@dataclass(frozen=True)
class ApprovalChain:
    """Ordered approver roles; index 0 decides step 1."""

    request_type: str
    roles: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.roles:
            raise ValueError(f"Approval chain {self.request_type!r} has no roles")
        if any(not role or not role.strip() for role in self.roles):
            raise ValueError(f"Approval chain {self.request_type!r} has a blank role")

    @property
    def total_steps(self) -> int:
        return len(self.roles)

    def role_for_step(self, step: int) -> str:
        return self.roles[step - 1]


@dataclass(frozen=True)
class FieldLimits:
    purpose_max_length: int = 1000
    description_max_length: int = 2000
    note_max_length: int = 500
    reason_max_length: int = 1000


@dataclass(frozen=True)
class WorkflowPolicy:
    """Approval chains keyed by request type."""

    chains: Mapping[str, ApprovalChain]
    default_request_type: str = DEFAULT_REQUEST_TYPE
    limits: FieldLimits = field(default_factory=FieldLimits)
    request_number_prefix: str = "EXE"
    sequence_width: int = 4

    def __post_init__(self) -> None:
        if self.default_request_type not in self.chains:
            raise ValueError(
                f"Default request type {self.default_request_type!r} "
                "has no approval chain"
            )
        object.__setattr__(self, "chains", MappingProxyType(dict(self.chains)))

    def chain_for(self, request_type: str | None = None) -> ApprovalChain:
        key = request_type or self.default_request_type
        chain = self.chains.get(key)
        if chain is None:
            raise UnknownRequestTypeError(key)
        return chain

    @classmethod
    def default(cls) -> WorkflowPolicy:
        """Built-in three-step chain MANAGER -> CFO -> ADMIN."""
        chain = ApprovalChain(
            request_type=DEFAULT_REQUEST_TYPE,
            roles=(Role.MANAGER, Role.CFO, Role.ADMIN),
        )
        return cls(chains={chain.request_type: chain})

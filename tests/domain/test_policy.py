"""Tests for approval chain policy value objects."""

import pytest

from budget_kernel.domain.policy import (
    DEFAULT_REQUEST_TYPE,
    ApprovalChain,
    FieldLimits,
    Role,
    WorkflowPolicy,
)
from budget_kernel.exceptions import UnknownRequestTypeError


class TestApprovalChain:
    def test_roles_map_to_one_based_steps(self):
        chain = ApprovalChain("STANDARD", (Role.MANAGER, Role.CFO, Role.ADMIN))
        assert chain.total_steps == 3
        assert chain.role_for_step(1) == Role.MANAGER
        assert chain.role_for_step(3) == Role.ADMIN

    def test_empty_chain_refused(self):
        with pytest.raises(ValueError, match="no roles"):
            ApprovalChain("EMPTY", ())

    def test_blank_role_refused(self):
        with pytest.raises(ValueError, match="blank role"):
            ApprovalChain("BROKEN", (Role.MANAGER, "  "))


class TestWorkflowPolicy:
    def test_default_chain(self):
        policy = WorkflowPolicy.default()
        chain = policy.chain_for()
        assert chain.request_type == DEFAULT_REQUEST_TYPE
        assert chain.roles == (Role.MANAGER, Role.CFO, Role.ADMIN)
        assert policy.limits == FieldLimits()
        assert policy.request_number_prefix == "EXE"

    def test_unknown_request_type(self):
        with pytest.raises(UnknownRequestTypeError) as exc_info:
            WorkflowPolicy.default().chain_for("CAPEX")
        assert exc_info.value.request_type == "CAPEX"
        assert exc_info.value.code == "UNKNOWN_REQUEST_TYPE"

    def test_default_type_must_have_chain(self):
        chain = ApprovalChain("SMALL_PURCHASE", (Role.STAFF,))
        with pytest.raises(ValueError, match="Default request type"):
            WorkflowPolicy(chains={"SMALL_PURCHASE": chain})

    def test_chains_are_read_only(self):
        policy = WorkflowPolicy.default()
        with pytest.raises(TypeError):
            policy.chains["OTHER"] = ApprovalChain("OTHER", (Role.CFO,))

    def test_custom_chain_selected_by_type(self):
        small = ApprovalChain("SMALL_PURCHASE", (Role.STAFF, Role.MANAGER))
        standard = ApprovalChain(DEFAULT_REQUEST_TYPE, (Role.MANAGER,))
        policy = WorkflowPolicy(chains={c.request_type: c for c in (small, standard)})
        assert policy.chain_for("SMALL_PURCHASE").total_steps == 2
        assert policy.chain_for(None).total_steps == 1

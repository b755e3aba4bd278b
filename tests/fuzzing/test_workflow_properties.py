"""
Property-based tests (Hypothesis) for the workflow state machine and the
ledger arithmetic.

Properties:
- Any chain of N roles needs exactly N approvals; any rejection or
  cancellation along the way is terminal.
- Persisted columns always round-trip, and never hold a current step for
  a terminal request.
- Ledger money is conserved: pending never goes negative, remaining always
  equals budget minus executed, and the project rollup equals the sum of
  its items whatever the order.
"""

from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from budget_kernel.domain import ledger_math, workflow
from budget_kernel.domain.workflow import (
    Approved,
    AwaitingStep,
    state_from_columns,
    state_to_columns,
)

money = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("999999999"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

actions = st.sampled_from(["approve", "reject", "cancel"])


@settings(max_examples=200)
@given(total_steps=st.integers(min_value=1, max_value=12), script=st.lists(actions, max_size=20))
def test_any_action_script_respects_the_chain(total_steps, script):
    state = workflow.initial_state(total_steps)
    approvals = 0
    for action in script:
        if workflow.is_terminal(state):
            break
        if action == "approve":
            state = workflow.advance(state)
            approvals += 1
        elif action == "reject":
            state = workflow.reject(state)
        else:
            state = workflow.cancel(state)

        status, current_step = state_to_columns(state)
        assert (current_step is None) == workflow.is_terminal(state)
        assert state_from_columns(status, current_step, total_steps) == state

    if isinstance(state, Approved):
        assert approvals == total_steps
    if isinstance(state, AwaitingStep):
        assert state.step == approvals + 1


@given(budget=money, amounts=st.lists(money, min_size=1, max_size=15))
def test_reserve_then_settle_conserves_money(budget, amounts):
    executed = Decimal("0")
    pending = sum(amounts, Decimal("0"))
    for index, amount in enumerate(amounts):
        if index % 2 == 0 and ledger_math.remaining(budget, executed) >= amount:
            outcome = ledger_math.apply_commit(budget, executed, pending, amount)
            assert outcome.remaining_before_exec - amount == outcome.remaining_after_exec
            executed, pending = outcome.executed_amount, outcome.pending.pending
        else:
            pending = ledger_math.release_pending(pending, amount).pending
        assert pending >= 0
        assert ledger_math.remaining(budget, executed) == budget - executed
    assert pending == Decimal("0")


@given(pending=money, amount=money)
def test_release_never_goes_negative(pending, amount):
    result = ledger_math.release_pending(pending, amount)
    assert result.pending >= 0
    assert result.clamped == (amount > pending)
    assert result.pending + amount - result.shortfall == pending


@given(items=st.lists(st.tuples(money, money), max_size=30), data=st.data())
def test_rollup_is_order_independent(items, data):
    shuffled = data.draw(st.permutations(items))
    assert ledger_math.rollup(items) == ledger_math.rollup(shuffled)
    totals = ledger_math.rollup(items)
    assert totals.remaining_budget == totals.current_budget - totals.executed_amount
    assert totals.line_item_count == len(items)

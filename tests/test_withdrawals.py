"""Tests for the withdrawal policy evaluator."""

import pytest

from pcalc.errors import PolicyError
from pcalc.withdrawals import (
    Guardrails,
    GuardrailsState,
    InflationAdjustedFixed,
    PercentOfInitial,
    base_withdrawal_for_period,
    compute_withdrawal,
    initial_guardrails_state,
    is_withdrawal_period,
)


def _evaluate(policy, *, balance=1_000_000.0, frequency="monthly", withdrawal_month=True, ytd=0.05, state=None, **kwargs):
    return compute_withdrawal(
        policy,
        initial_balance=1_000_000.0,
        balance=balance,
        frequency=frequency,
        is_withdrawal_month=withdrawal_month,
        ytd_return_after_market=ytd,
        state=state,
        **kwargs,
    )


def test_percent_of_initial_ignores_current_balance():
    policy = PercentOfInitial(rate=0.04)
    monthly = _evaluate(policy, balance=10.0)
    annual = _evaluate(policy, balance=5_000_000.0, frequency="annual")
    assert monthly.amount == pytest.approx(40_000 / 12)
    assert annual.amount == pytest.approx(40_000)
    assert monthly.state is None


def test_inflation_adjusted_scales_base_amount():
    policy = InflationAdjustedFixed(rate=0.04, annual_inflation_pct=3.0)
    base = base_withdrawal_for_period(policy, 1_000_000.0, "monthly")
    decision = _evaluate(policy, balance=1.0, base_period_withdrawal=base, inflation_factor=1.5)
    assert base == pytest.approx(40_000 / 12)
    assert decision.amount == pytest.approx(base * 1.5)


def test_base_withdrawal_is_zero_for_other_policies():
    assert base_withdrawal_for_period(PercentOfInitial(rate=0.04), 1_000_000.0, "annual") == 0.0


def test_guardrails_raises_rate_after_strong_year():
    policy = Guardrails(rate=0.05, min_rate=0.03, max_rate=0.06)
    state = initial_guardrails_state(policy)
    decision = _evaluate(policy, ytd=0.10, state=state)
    assert decision.state.current_rate == pytest.approx(0.0525)
    assert decision.amount == pytest.approx(1_000_000 * 0.0525 / 12)
    assert state.current_rate == 0.05


def test_guardrails_lowers_rate_after_weak_year():
    policy = Guardrails(rate=0.05, min_rate=0.03, max_rate=0.06)
    decision = _evaluate(policy, ytd=0.01, state=GuardrailsState(0.05))
    assert decision.state.current_rate == pytest.approx(0.0475)


def test_guardrails_holds_rate_between_thresholds():
    policy = Guardrails(rate=0.05, min_rate=0.03, max_rate=0.06)
    state = GuardrailsState(0.05)
    decision = _evaluate(policy, ytd=0.05, state=state)
    assert decision.state is state


def test_guardrails_rate_clamped_at_ceiling_and_floor():
    policy = Guardrails(rate=0.05, min_rate=0.03, max_rate=0.06)
    assert _evaluate(policy, ytd=0.20, state=GuardrailsState(0.059)).state.current_rate == 0.06
    assert _evaluate(policy, ytd=-0.20, state=GuardrailsState(0.031)).state.current_rate == 0.03


def test_guardrails_start_rate_clamped_on_initialization():
    policy = Guardrails(rate=0.10, min_rate=0.03, max_rate=0.06)
    assert initial_guardrails_state(policy).current_rate == 0.06
    assert initial_guardrails_state(PercentOfInitial(rate=0.04)) is None


def test_guardrails_dollar_floor_raises_withdrawal():
    policy = Guardrails(rate=0.05, min_rate=0.03, max_rate=0.06, min_dollar_floor=10_000.0)
    decision = _evaluate(policy, balance=100_000.0, state=GuardrailsState(0.05))
    assert decision.amount == 10_000.0


def test_non_finite_ytd_leaves_rate_alone():
    policy = Guardrails(rate=0.05, min_rate=0.03, max_rate=0.06)
    decision = _evaluate(policy, ytd=float("nan"), state=GuardrailsState(0.05))
    assert decision.state.current_rate == 0.05


def test_non_withdrawal_month_returns_zero_and_keeps_state():
    policy = Guardrails(rate=0.05, min_rate=0.03, max_rate=0.06)
    state = GuardrailsState(0.05)
    decision = _evaluate(policy, ytd=0.50, withdrawal_month=False, state=state)
    assert decision.amount == 0.0
    assert decision.state is state
    assert decision.guardrails_rate == 0.05


def test_is_withdrawal_period():
    assert all(is_withdrawal_period("monthly", month) for month in range(1, 13))
    assert [month for month in range(1, 13) if is_withdrawal_period("annual", month)] == [1]


def test_unknown_policy_is_rejected():
    with pytest.raises(PolicyError, match="unknown withdrawal policy"):
        _evaluate(object())


def test_guardrails_without_state_is_rejected():
    with pytest.raises(PolicyError):
        _evaluate(Guardrails(rate=0.05, min_rate=0.03, max_rate=0.06))


@pytest.mark.parametrize(
    ("factory", "message"),
    [
        (lambda: PercentOfInitial(rate=0.0), "rate must be > 0"),
        (lambda: InflationAdjustedFixed(rate=-0.01), "rate must be > 0"),
        (lambda: InflationAdjustedFixed(rate=0.04, annual_inflation_pct=150.0), "between -50 and 100"),
        (lambda: Guardrails(rate=0.05, min_rate=0.07, max_rate=0.06), "min rate must be <= max rate"),
        (lambda: Guardrails(rate=0.05, min_rate=-0.01, max_rate=0.06), "min rate must be >= 0"),
        (lambda: Guardrails(rate=0.05, min_rate=0.03, max_rate=0.0), "max rate must be > 0"),
        (lambda: Guardrails(rate=0.05, min_rate=0.03, max_rate=0.06, min_dollar_floor=-1.0), "floor must be >= 0"),
    ],
)
def test_invalid_policy_parameters(factory, message):
    with pytest.raises(PolicyError, match=message):
        factory()

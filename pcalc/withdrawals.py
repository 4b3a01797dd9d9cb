"""Withdrawal policy logic.

Three spending policies are supported, each as its own frozen dataclass:

* ``PercentOfInitial`` pays a fixed share of the starting balance every year.
* ``InflationAdjustedFixed`` starts from the same fixed amount and grows it
  with a monthly-compounded inflation assumption, whatever the account does.
* ``Guardrails`` takes a share of the *current* balance and nudges that share
  up or down by one step depending on how the year has gone so far.

Only ``Guardrails`` carries state between months. The state lives in a
``GuardrailsState`` that the caller threads through ``compute_withdrawal``
and must create fresh for every independent run.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import math
from typing import ClassVar, Union

from .errors import PolicyError
from .inflation import DEFAULT_ANNUAL_INFLATION_PCT

FREQUENCIES = {"monthly", "annual"}
ANNUAL_WITHDRAWAL_MONTH = 1
MIN_INFLATION_PCT = -50.0
MAX_INFLATION_PCT = 100.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _check_rate(rate: float, label: str = "rate") -> None:
    if not math.isfinite(rate) or rate <= 0:
        raise PolicyError(f"{label} must be > 0")


@dataclass(frozen=True, slots=True)
class PercentOfInitial:
    kind: ClassVar[str] = "percent_of_initial"
    rate: float

    def __post_init__(self) -> None:
        _check_rate(self.rate)


@dataclass(frozen=True, slots=True)
class InflationAdjustedFixed:
    kind: ClassVar[str] = "inflation_adjusted"
    rate: float
    annual_inflation_pct: float = DEFAULT_ANNUAL_INFLATION_PCT

    def __post_init__(self) -> None:
        _check_rate(self.rate)
        if not math.isfinite(self.annual_inflation_pct) or not (
            MIN_INFLATION_PCT <= self.annual_inflation_pct <= MAX_INFLATION_PCT
        ):
            raise PolicyError("annual_inflation_pct must be between -50 and 100")


@dataclass(frozen=True, slots=True)
class Guardrails:
    kind: ClassVar[str] = "guardrails"
    rate: float
    min_rate: float
    max_rate: float
    min_dollar_floor: float = 0.0
    step: float = 0.0025
    upper_threshold: float = 0.08
    lower_threshold: float = 0.03

    def __post_init__(self) -> None:
        _check_rate(self.rate, "guardrails starting rate")
        if not math.isfinite(self.min_rate) or self.min_rate < 0:
            raise PolicyError("guardrails min rate must be >= 0")
        if not math.isfinite(self.max_rate) or self.max_rate <= 0:
            raise PolicyError("guardrails max rate must be > 0")
        if self.min_rate > self.max_rate:
            raise PolicyError("guardrails min rate must be <= max rate")
        if not math.isfinite(self.min_dollar_floor) or self.min_dollar_floor < 0:
            raise PolicyError("guardrails min dollar floor must be >= 0")
        if not math.isfinite(self.step) or self.step < 0:
            raise PolicyError("guardrails step must be >= 0")


WithdrawalPolicy = Union[PercentOfInitial, InflationAdjustedFixed, Guardrails]
POLICY_TYPES = (PercentOfInitial, InflationAdjustedFixed, Guardrails)
POLICY_KINDS = {cls.kind for cls in POLICY_TYPES}


@dataclass(frozen=True, slots=True)
class GuardrailsState:
    current_rate: float


@dataclass(frozen=True, slots=True)
class WithdrawalDecision:
    amount: float
    state: GuardrailsState | None

    @property
    def guardrails_rate(self) -> float | None:
        return None if self.state is None else self.state.current_rate


def initial_guardrails_state(policy: WithdrawalPolicy) -> GuardrailsState | None:
    if not isinstance(policy, Guardrails):
        return None
    return GuardrailsState(current_rate=clamp(policy.rate, policy.min_rate, policy.max_rate))


def base_withdrawal_for_period(policy: WithdrawalPolicy, initial_balance: float, frequency: str) -> float:
    """Fixed per-period amount for ``InflationAdjustedFixed``; 0 for other policies."""
    if not isinstance(policy, InflationAdjustedFixed):
        return 0.0
    annual = initial_balance * policy.rate
    return annual / 12.0 if frequency == "monthly" else annual


def is_withdrawal_period(frequency: str, calendar_month: int) -> bool:
    if frequency == "monthly":
        return True
    return calendar_month == ANNUAL_WITHDRAWAL_MONTH


def adjust_guardrails(policy: Guardrails, state: GuardrailsState, ytd_return_after_market: float) -> GuardrailsState:
    if not math.isfinite(ytd_return_after_market):
        return state
    if ytd_return_after_market > policy.upper_threshold:
        rate = state.current_rate + policy.step
    elif ytd_return_after_market < policy.lower_threshold:
        rate = state.current_rate - policy.step
    else:
        return state
    return replace(state, current_rate=clamp(rate, policy.min_rate, policy.max_rate))


def compute_withdrawal(
    policy: WithdrawalPolicy,
    *,
    initial_balance: float,
    balance: float,
    frequency: str,
    is_withdrawal_month: bool,
    ytd_return_after_market: float,
    state: GuardrailsState | None = None,
    base_period_withdrawal: float = 0.0,
    inflation_factor: float = 1.0,
) -> WithdrawalDecision:
    """Return this period's withdrawal and the (possibly updated) guardrails state.

    ``balance`` is the balance after the month's market return and before any
    withdrawal. The amount is not clamped here; the simulator bounds it by
    the available balance.
    """
    if not is_withdrawal_month:
        return WithdrawalDecision(amount=0.0, state=state)

    if isinstance(policy, PercentOfInitial):
        annual = initial_balance * policy.rate
        amount = annual / 12.0 if frequency == "monthly" else annual
        return WithdrawalDecision(amount=amount, state=None)

    if isinstance(policy, InflationAdjustedFixed):
        return WithdrawalDecision(amount=base_period_withdrawal * inflation_factor, state=None)

    if isinstance(policy, Guardrails):
        if state is None:
            raise PolicyError("guardrails policy requires a GuardrailsState")
        state = adjust_guardrails(policy, state, ytd_return_after_market)
        annual = balance * state.current_rate
        amount = annual / 12.0 if frequency == "monthly" else annual
        if policy.min_dollar_floor > 0:
            amount = max(amount, policy.min_dollar_floor)
        return WithdrawalDecision(amount=amount, state=state)

    raise PolicyError(f"unknown withdrawal policy: {policy!r}")

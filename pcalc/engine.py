"""Core month-by-month retirement and accumulation simulators."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Sequence

from .errors import ConfigurationError, InsufficientDataError, PolicyError
from .inflation import monthly_inflation_rate_from_annual_pct
from .market_data import MonthlyPricePoint
from .returns import build_returns, find_month_index, month_parts
from .withdrawals import (
    FREQUENCIES,
    POLICY_TYPES,
    InflationAdjustedFixed,
    WithdrawalPolicy,
    base_withdrawal_for_period,
    compute_withdrawal,
    initial_guardrails_state,
    is_withdrawal_period,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MonthlySnapshot:
    month: str
    value: float
    withdrawal: float
    guardrails_rate_pct: float | None = None
    inflation_factor: float | None = None


@dataclass(slots=True)
class SimulationResult:
    success: bool
    total_withdrawn: float
    ending_value: float
    max_drawdown: float
    highest_balance: float
    lowest_balance: float
    series: list[MonthlySnapshot]


@dataclass(slots=True)
class DcaPoint:
    month: str
    value: float


@dataclass(slots=True)
class DcaResult:
    start_month: str
    end_month: str
    initial_lump_sum: float
    monthly_contribution: float
    contributed: float
    ending_value: float
    series: list[DcaPoint]


def check_run_inputs(initial_balance: float, duration_years: int, frequency: str, policy: WithdrawalPolicy) -> None:
    if not isinstance(policy, POLICY_TYPES):
        raise PolicyError(f"unknown withdrawal policy: {policy!r}")
    if not math.isfinite(initial_balance) or initial_balance <= 0:
        raise ConfigurationError("initial_balance must be > 0")
    if isinstance(duration_years, bool) or not isinstance(duration_years, int) or duration_years <= 0:
        raise ConfigurationError("duration_years must be a positive integer")
    if frequency not in FREQUENCIES:
        expected = ", ".join(sorted(FREQUENCIES))
        raise ConfigurationError(f"frequency: '{frequency}' is not valid; expected one of [{expected}]")


def window_fits(series_length: int, start_idx: int, duration_years: int) -> bool:
    return start_idx + duration_years * 12 <= series_length


def simulate_path(
    monthly: Sequence[MonthlyPricePoint],
    returns: Sequence[float],
    *,
    start_idx: int,
    initial_balance: float,
    duration_years: int,
    policy: WithdrawalPolicy,
    frequency: str,
) -> SimulationResult:
    """Run one retirement path over ``duration_years`` starting at ``start_idx``.

    Callers are expected to have checked that the window fits. Every call
    builds its own guardrails state and inflation factor, so paths never
    share mutable state.
    """
    end_idx = start_idx + duration_years * 12

    balance = initial_balance
    success = True
    total_withdrawn = 0.0
    highest = balance
    lowest = balance
    peak = balance
    max_drawdown = 0.0

    state = initial_guardrails_state(policy)
    inflation_adjusted = isinstance(policy, InflationAdjustedFixed)
    monthly_inflation = monthly_inflation_rate_from_annual_pct(policy.annual_inflation_pct) if inflation_adjusted else 0.0
    base_withdrawal = base_withdrawal_for_period(policy, initial_balance, frequency)
    inflation_factor = 1.0

    current_year, _ = month_parts(monthly[start_idx].month)
    year_start_balance = balance
    series: list[MonthlySnapshot] = []

    for idx in range(start_idx, end_idx):
        month = monthly[idx].month
        year, calendar_month = month_parts(month)
        if year != current_year:
            current_year = year
            year_start_balance = balance

        balance = max(0.0, balance * (1.0 + returns[idx]))
        ytd_return = balance / year_start_balance - 1.0 if year_start_balance > 0 else 0.0

        decision = compute_withdrawal(
            policy,
            initial_balance=initial_balance,
            balance=balance,
            frequency=frequency,
            is_withdrawal_month=is_withdrawal_period(frequency, calendar_month),
            ytd_return_after_market=ytd_return,
            state=state,
            base_period_withdrawal=base_withdrawal,
            inflation_factor=inflation_factor,
        )
        state = decision.state
        withdrawal = max(0.0, min(balance, decision.amount))
        balance -= withdrawal
        total_withdrawn += withdrawal

        if balance <= 0:
            balance = 0.0
            success = False

        highest = max(highest, balance)
        lowest = min(lowest, balance)
        peak = max(peak, balance)
        drawdown = (peak - balance) / peak if peak > 0 else 0.0
        max_drawdown = max(max_drawdown, drawdown)

        rate = decision.guardrails_rate
        series.append(
            MonthlySnapshot(
                month=month,
                value=balance,
                withdrawal=withdrawal,
                guardrails_rate_pct=rate * 100.0 if rate is not None else None,
                inflation_factor=inflation_factor if inflation_adjusted else None,
            )
        )

        if not success:
            logger.debug("ruin in %s after %d months", month, idx - start_idx + 1)
            break

        # Next month's spending reflects this month's inflation.
        if inflation_adjusted:
            inflation_factor *= 1.0 + monthly_inflation

    return SimulationResult(
        success=success,
        total_withdrawn=total_withdrawn,
        ending_value=balance,
        max_drawdown=max_drawdown,
        highest_balance=highest,
        lowest_balance=lowest,
        series=series,
    )


def run_retirement(
    monthly: Sequence[MonthlyPricePoint],
    *,
    initial_balance: float,
    start_month: str,
    duration_years: int,
    policy: WithdrawalPolicy,
    frequency: str = "monthly",
    returns: Sequence[float] | None = None,
) -> SimulationResult:
    """Simulate retirement withdrawals from ``start_month`` for ``duration_years``."""
    check_run_inputs(initial_balance, duration_years, frequency, policy)
    start_idx = find_month_index(monthly, start_month)
    if not window_fits(len(monthly), start_idx, duration_years):
        raise InsufficientDataError(f"not enough data for {duration_years} years from {start_month}")

    if returns is None:
        returns = build_returns(monthly)
    result = simulate_path(
        monthly,
        returns,
        start_idx=start_idx,
        initial_balance=initial_balance,
        duration_years=duration_years,
        policy=policy,
        frequency=frequency,
    )
    logger.info(
        "%s retirement from %s for %d years: success=%s ending=%.2f",
        policy.kind,
        start_month,
        duration_years,
        result.success,
        result.ending_value,
    )
    return result


def run_dca(
    monthly: Sequence[MonthlyPricePoint],
    *,
    initial_lump_sum: float,
    monthly_contribution: float,
    start_month: str,
    end_month: str,
) -> DcaResult:
    """Dollar-cost average a fixed monthly contribution over an inclusive month range."""
    if not math.isfinite(initial_lump_sum) or initial_lump_sum < 0:
        raise ConfigurationError("initial_lump_sum must be >= 0")
    if not math.isfinite(monthly_contribution) or monthly_contribution <= 0:
        raise ConfigurationError("monthly_contribution must be > 0")

    start_idx = find_month_index(monthly, start_month)
    end_idx = find_month_index(monthly, end_month, label="end_month")
    if start_idx > end_idx:
        raise ConfigurationError("start_month must be <= end_month")

    returns = build_returns(monthly)
    balance = initial_lump_sum
    contributed = initial_lump_sum
    series: list[DcaPoint] = []
    for idx in range(start_idx, end_idx + 1):
        balance *= 1.0 + returns[idx]
        balance += monthly_contribution
        contributed += monthly_contribution
        series.append(DcaPoint(month=monthly[idx].month, value=balance))

    return DcaResult(
        start_month=start_month,
        end_month=end_month,
        initial_lump_sum=initial_lump_sum,
        monthly_contribution=monthly_contribution,
        contributed=contributed,
        ending_value=balance,
        series=series,
    )

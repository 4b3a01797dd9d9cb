"""Historical success-rate sweep over every January start."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Sequence

from .engine import check_run_inputs, simulate_path, window_fits
from .market_data import MonthlyPricePoint
from .returns import build_returns, month_parts
from .withdrawals import WithdrawalPolicy

logger = logging.getLogger(__name__)

SWEEP_START_MONTH = 1


@dataclass(slots=True)
class YearOutcome:
    start_year: int
    passed: bool
    starting_balance: float
    highest_balance: float
    lowest_balance: float
    ending_balance: float


@dataclass(slots=True)
class SweepSummary:
    total_start_years_tested: int
    successes: int
    success_rate: float
    average_ending_balance: float | None
    median_ending_balance: float | None
    highest_balance_hit: float | None
    lowest_balance_hit: float | None


@dataclass(slots=True)
class SweepResult:
    summary: SweepSummary
    results: list[YearOutcome]


def _median(values: list[float]) -> float | None:
    if not values:
        return None
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 1:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2.0


def _summarize(results: list[YearOutcome]) -> SweepSummary:
    total = len(results)
    if total == 0:
        return SweepSummary(
            total_start_years_tested=0,
            successes=0,
            success_rate=0.0,
            average_ending_balance=None,
            median_ending_balance=None,
            highest_balance_hit=None,
            lowest_balance_hit=None,
        )

    successes = sum(1 for row in results if row.passed)
    endings = [row.ending_balance for row in results]
    return SweepSummary(
        total_start_years_tested=total,
        successes=successes,
        success_rate=successes / total,
        average_ending_balance=sum(endings) / total,
        median_ending_balance=_median(endings),
        highest_balance_hit=max(row.highest_balance for row in results),
        lowest_balance_hit=min(row.lowest_balance for row in results),
    )


def run_success_sweep(
    monthly: Sequence[MonthlyPricePoint],
    *,
    initial_balance: float,
    duration_years: int,
    policy: WithdrawalPolicy,
    frequency: str = "monthly",
) -> SweepResult:
    """Replay the same policy from every January with enough trailing data."""
    check_run_inputs(initial_balance, duration_years, frequency, policy)
    returns = build_returns(monthly)

    results: list[YearOutcome] = []
    for idx, point in enumerate(monthly):
        year, calendar_month = month_parts(point.month)
        if calendar_month != SWEEP_START_MONTH:
            continue
        if not window_fits(len(monthly), idx, duration_years):
            break

        run = simulate_path(
            monthly,
            returns,
            start_idx=idx,
            initial_balance=initial_balance,
            duration_years=duration_years,
            policy=policy,
            frequency=frequency,
        )
        results.append(
            YearOutcome(
                start_year=year,
                passed=run.success,
                starting_balance=initial_balance,
                highest_balance=run.highest_balance,
                lowest_balance=run.lowest_balance,
                ending_balance=run.ending_value,
            )
        )

    summary = _summarize(results)
    logger.info(
        "%s sweep over %d start years: %d passed",
        policy.kind,
        summary.total_start_years_tested,
        summary.successes,
    )
    return SweepResult(summary=summary, results=results)

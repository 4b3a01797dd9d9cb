"""Inflation compounding helpers and flat-amount purchasing-power calculators."""

from __future__ import annotations

from dataclasses import dataclass
import math

from .errors import ConfigurationError, DataAvailabilityError
from .inflation_data import InflationDataset

DEFAULT_ANNUAL_INFLATION_PCT = 3.0
MIN_ANNUAL_INFLATION = -0.99


def monthly_inflation_rate_from_annual_pct(annual_pct: float | None) -> float:
    """Convert an annual inflation percent into the equivalent monthly compounding rate.

    3% a year becomes roughly 0.2466% a month. Missing or non-finite input
    falls back to the 3% default.
    """
    if annual_pct is None or not math.isfinite(annual_pct):
        annual_pct = DEFAULT_ANNUAL_INFLATION_PCT
    annual = max(MIN_ANNUAL_INFLATION, annual_pct / 100.0)
    return (1.0 + annual) ** (1.0 / 12.0) - 1.0


@dataclass(slots=True)
class InflationYear:
    year: int
    avg_inflation_pct: float
    cumulative_factor: float
    future_equivalent: float
    real_value_in_start_dollars: float


@dataclass(slots=True)
class InflationWindowResult:
    amount: float
    start_year: int
    end_year: int
    duration_years: int
    cumulative_inflation_factor: float
    future_equivalent_same_buying_power: float
    purchasing_power_in_start_dollars: float
    series: list[InflationYear]


@dataclass(slots=True)
class InflationSweepRow:
    start_year: int
    end_year: int
    start_amount: float
    end_amount: float
    real_value_in_start_dollars: float
    cumulative_factor: float
    avg_inflation_pct: float


@dataclass(slots=True)
class InflationSweepSummary:
    start_years_tested: int
    first_start_year: int
    last_start_year: int


@dataclass(slots=True)
class InflationSweepResult:
    amount: float
    duration_years: int
    summary: InflationSweepSummary
    results: list[InflationSweepRow]


def _check_amount_and_years(amount: float, duration_years: int) -> None:
    if not math.isfinite(duration_years) or duration_years <= 0:
        raise ConfigurationError("duration_years must be > 0")
    if not math.isfinite(amount) or amount <= 0:
        raise ConfigurationError("amount must be > 0")


def _year_multiplier(dataset: InflationDataset, year: int) -> tuple[float, float]:
    row = dataset.by_year.get(year)
    if row is None:
        raise DataAvailabilityError(f"missing inflation data for year {year}")
    multiplier = 1.0 + row.avg_rate_pct / 100.0
    if multiplier <= 0:
        raise DataAvailabilityError(
            f"inflation factor became non-positive at year {year} (rate={row.avg_rate_pct}%)"
        )
    return row.avg_rate_pct, multiplier


def run_inflation_window(dataset: InflationDataset, *, amount: float, start_year: int, duration_years: int) -> InflationWindowResult:
    """Compound ``amount`` through ``duration_years`` of historical inflation."""
    dataset.check_meta()
    _check_amount_and_years(amount, duration_years)
    start = int(start_year)
    years = int(duration_years)
    end = start + years - 1

    first = dataset.meta.first_year
    last = dataset.meta.last_year
    if start < first or end > last:
        raise DataAvailabilityError(
            f"inflation range must be within {first}-{last}. Requested {start}-{end}."
        )

    factor = 1.0
    series: list[InflationYear] = []
    for year in range(start, end + 1):
        rate_pct, multiplier = _year_multiplier(dataset, year)
        factor *= multiplier
        series.append(
            InflationYear(
                year=year,
                avg_inflation_pct=rate_pct,
                cumulative_factor=factor,
                future_equivalent=amount * factor,
                real_value_in_start_dollars=amount / factor,
            )
        )

    return InflationWindowResult(
        amount=amount,
        start_year=start,
        end_year=end,
        duration_years=years,
        cumulative_inflation_factor=factor,
        future_equivalent_same_buying_power=amount * factor,
        purchasing_power_in_start_dollars=amount / factor,
        series=series,
    )


def run_inflation_sweep(dataset: InflationDataset, *, amount: float, duration_years: int) -> InflationSweepResult:
    """Run the inflation window for every start year that fits in the dataset."""
    dataset.check_meta()
    _check_amount_and_years(amount, duration_years)
    years = int(duration_years)

    first = dataset.meta.first_year
    last = dataset.meta.last_year
    max_start = last - years + 1
    if max_start < first:
        raise DataAvailabilityError(
            f"duration_years is too large for inflation dataset. Max duration is {last - first + 1} years."
        )

    results: list[InflationSweepRow] = []
    for start in range(first, max_start + 1):
        end = start + years - 1
        factor = 1.0
        rate_sum = 0.0
        for year in range(start, end + 1):
            rate_pct, multiplier = _year_multiplier(dataset, year)
            factor *= multiplier
            rate_sum += rate_pct
        results.append(
            InflationSweepRow(
                start_year=start,
                end_year=end,
                start_amount=amount,
                end_amount=amount * factor,
                real_value_in_start_dollars=amount / factor,
                cumulative_factor=factor,
                avg_inflation_pct=rate_sum / years,
            )
        )

    return InflationSweepResult(
        amount=amount,
        duration_years=years,
        summary=InflationSweepSummary(
            start_years_tested=len(results),
            first_start_year=first,
            last_start_year=max_start,
        ),
        results=results,
    )

"""JSON report payloads and text summaries."""

from __future__ import annotations

from dataclasses import asdict
from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Any

from .engine import DcaResult, SimulationResult
from .inflation import InflationSweepResult, InflationWindowResult
from .simulation import SweepResult

Result = SimulationResult | SweepResult | DcaResult | InflationWindowResult | InflationSweepResult


def _money(value: float | None) -> str:
    return "n/a" if value is None else f"${value:,.0f}"


def _pct(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.1%}"


def build_payload(mode: str, result: Result, *, scenario_path: str | None = None) -> dict[str, Any]:
    return {
        "mode": mode,
        "scenario": scenario_path,
        "generated_at": datetime.now(UTC).isoformat(timespec="seconds"),
        "result": asdict(result),
    }


def write_report(path: str | Path, payload: dict[str, Any]) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def summary_lines(mode: str, result: Result) -> list[str]:
    lines = [f"Mode: {mode}"]
    if isinstance(result, SimulationResult):
        first = result.series[0].month if result.series else "n/a"
        last = result.series[-1].month if result.series else "n/a"
        lines.append(f"Months: {first} to {last} ({len(result.series)})")
        lines.append(f"Outcome: {'success' if result.success else 'ran out of money'}")
        lines.append(f"Total withdrawn: {_money(result.total_withdrawn)}")
        lines.append(f"Ending value: {_money(result.ending_value)}")
        lines.append(f"Max drawdown: {_pct(result.max_drawdown)}")
        lines.append(f"Balance range: {_money(result.lowest_balance)} - {_money(result.highest_balance)}")
    elif isinstance(result, SweepResult):
        summary = result.summary
        lines.append(
            f"Success rate: {_pct(summary.success_rate)} "
            f"({summary.successes}/{summary.total_start_years_tested} start years)"
        )
        lines.append(f"Average ending balance: {_money(summary.average_ending_balance)}")
        lines.append(f"Median ending balance: {_money(summary.median_ending_balance)}")
        lines.append(f"Balance range: {_money(summary.lowest_balance_hit)} - {_money(summary.highest_balance_hit)}")
        failed = [str(row.start_year) for row in result.results if not row.passed]
        if failed:
            lines.append(f"Failed start years: {', '.join(failed)}")
    elif isinstance(result, DcaResult):
        lines.append(f"Months: {result.start_month} to {result.end_month}")
        lines.append(f"Contributed: {_money(result.contributed)}")
        lines.append(f"Ending value: {_money(result.ending_value)}")
    elif isinstance(result, InflationWindowResult):
        lines.append(f"Years: {result.start_year}-{result.end_year}")
        lines.append(f"Cumulative inflation factor: {result.cumulative_inflation_factor:.4f}")
        lines.append(f"Same buying power: {_money(result.future_equivalent_same_buying_power)}")
        lines.append(f"Purchasing power in start dollars: {_money(result.purchasing_power_in_start_dollars)}")
    elif isinstance(result, InflationSweepResult):
        lines.append(
            f"Start years: {result.summary.first_start_year}-{result.summary.last_start_year} "
            f"({result.summary.start_years_tested})"
        )
        if result.results:
            worst = min(result.results, key=lambda row: row.real_value_in_start_dollars)
            lines.append(
                f"Worst window: {worst.start_year}-{worst.end_year} "
                f"({_money(worst.real_value_in_start_dollars)} in start dollars)"
            )
    return lines

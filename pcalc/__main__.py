"""CLI entry point for pcalc."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys

from .engine import run_dca, run_retirement
from .errors import ConfigurationError, DataAvailabilityError, DataFormatError
from .inflation import run_inflation_sweep, run_inflation_window
from .inflation_data import load_inflation_csv
from .market_data import load_price_csv
from .report import Result, build_payload, summary_lines, write_report
from .schema import Scenario, SchemaError, load_scenario
from .simulation import run_success_sweep
from .validate import INFLATION_MODES, PRICE_MODES, RUN_MODES, validate_scenario

logger = logging.getLogger("pcalc")

RUN_ERRORS = (ConfigurationError, DataAvailabilityError, DataFormatError, OSError)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Historical portfolio calculator")
    parser.add_argument("scenario", help="Path to scenario JSON file")
    parser.add_argument("-o", "--output", default="report.json", help="Output JSON path")
    parser.add_argument("--mode", choices=sorted(RUN_MODES), help="Override run mode")
    parser.add_argument("--prices", help="Daily price CSV (overrides PCALC_PRICES_CSV and data.prices_csv)")
    parser.add_argument("--inflation", help="Annual inflation CSV (overrides PCALC_INFLATION_CSV and data.inflation_csv)")
    parser.add_argument("--validate", action="store_true", help="Validate JSON only")
    parser.add_argument("--summary", action="store_true", help="Print text summary to stdout")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _print_validation(errors: list[str], warnings: list[str]) -> None:
    for warning in warnings:
        print(f"WARNING: {warning}")
    for error in errors:
        print(f"ERROR: {error}", file=sys.stderr)


def _required_path(path: Path | None, label: str) -> Path:
    if path is None:
        raise ConfigurationError(f"no {label} CSV configured; set data.{label}_csv or pass --{label}")
    return path


def run_scenario(scenario: Scenario, mode: str, *, prices: str | None = None, inflation: str | None = None) -> Result:
    """Load whatever data ``mode`` needs and run it."""
    if mode in PRICE_MODES:
        dataset = load_price_csv(_required_path(scenario.prices_path(prices), "prices"))
        monthly = dataset.monthly
        if mode == "dca":
            dca = scenario.dca
            return run_dca(
                monthly,
                initial_lump_sum=dca.initial_lump_sum,
                monthly_contribution=dca.monthly_contribution,
                start_month=dca.start_month,
                end_month=dca.end_month,
            )

        settings = scenario.retirement
        policy = settings.withdrawal.to_policy()
        if mode == "sweep":
            return run_success_sweep(
                monthly,
                initial_balance=settings.initial_balance,
                duration_years=settings.duration_years,
                policy=policy,
                frequency=settings.withdrawal.frequency,
            )
        return run_retirement(
            monthly,
            initial_balance=settings.initial_balance,
            start_month=settings.start_month,
            duration_years=settings.duration_years,
            policy=policy,
            frequency=settings.withdrawal.frequency,
        )

    if mode in INFLATION_MODES:
        dataset = load_inflation_csv(_required_path(scenario.inflation_path(inflation), "inflation"))
        settings = scenario.inflation
        if mode == "inflation_sweep":
            return run_inflation_sweep(dataset, amount=settings.amount, duration_years=settings.duration_years)
        return run_inflation_window(
            dataset,
            amount=settings.amount,
            start_year=settings.start_year,
            duration_years=settings.duration_years,
        )

    raise ConfigurationError(f"unsupported run mode: {mode}")


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        scenario = load_scenario(args.scenario)
    except (SchemaError, OSError, ValueError) as exc:
        print(f"Failed to load scenario: {exc}", file=sys.stderr)
        return 2

    mode = args.mode or scenario.mode
    validation = validate_scenario(scenario, mode)
    _print_validation(validation.errors, validation.warnings)
    if not validation.is_valid:
        return 1

    if args.validate:
        print("Scenario is valid.")
        return 0

    try:
        result = run_scenario(scenario, mode, prices=args.prices, inflation=args.inflation)
    except RUN_ERRORS as exc:
        logger.debug("run failed", exc_info=True)
        print(f"Run failed: {exc}", file=sys.stderr)
        return 1

    write_report(args.output, build_payload(mode, result, scenario_path=args.scenario))
    if args.summary:
        for line in summary_lines(mode, result):
            print(line)
    print(f"Wrote report to {Path(args.output)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

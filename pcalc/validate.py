"""Semantic validation for scenarios."""

from __future__ import annotations

from dataclasses import dataclass, field
import math
import re
from typing import Iterable

from .returns import month_to_index
from .schema import DcaSettings, InflationSettings, RetirementSettings, Scenario, WithdrawalSettings
from .withdrawals import FREQUENCIES, MAX_INFLATION_PCT, MIN_INFLATION_PCT, POLICY_KINDS

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

RUN_MODES = {"retirement", "sweep", "dca", "inflation", "inflation_sweep"}
RETIREMENT_MODES = {"retirement", "sweep"}
INFLATION_MODES = {"inflation", "inflation_sweep"}
PRICE_MODES = RETIREMENT_MODES | {"dca"}


@dataclass(slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _check_enum(result: ValidationResult, path: str, value: str, allowed: Iterable[str]) -> bool:
    allowed_set = set(allowed)
    if not isinstance(value, str) or value not in allowed_set:
        expected = ", ".join(sorted(allowed_set))
        result.errors.append(f"{path}: '{value}' is not valid; expected one of [{expected}]")
        return False
    return True


def _check_month(result: ValidationResult, path: str, value: str | None) -> bool:
    if value is None:
        result.errors.append(f"{path}: month is required")
        return False
    if not isinstance(value, str) or not MONTH_RE.match(value):
        result.errors.append(f"{path}: '{value}' is not valid; expected YYYY-MM")
        return False
    return True


def _check_positive(result: ValidationResult, path: str, value: float) -> None:
    if not math.isfinite(value) or value <= 0:
        result.errors.append(f"{path}: must be > 0")


def _check_non_negative(result: ValidationResult, path: str, value: float) -> None:
    if not math.isfinite(value) or value < 0:
        result.errors.append(f"{path}: must be >= 0")


def _validate_withdrawal(result: ValidationResult, item: WithdrawalSettings, base: str) -> None:
    _check_enum(result, f"{base}.mode", item.mode, POLICY_KINDS)
    _check_enum(result, f"{base}.frequency", item.frequency, FREQUENCIES)
    _check_positive(result, f"{base}.rate_pct", item.rate_pct)

    if item.mode == "inflation_adjusted":
        if item.annual_inflation_pct is not None and (
            not math.isfinite(item.annual_inflation_pct)
            or not MIN_INFLATION_PCT <= item.annual_inflation_pct <= MAX_INFLATION_PCT
        ):
            result.errors.append(f"{base}.annual_inflation_pct: must be between -50 and 100")
    elif item.annual_inflation_pct is not None:
        result.warnings.append(f"{base}.annual_inflation_pct: only used by 'inflation_adjusted' mode; ignored")

    if item.mode != "guardrails":
        if item.guardrails is not None:
            result.warnings.append(f"{base}.guardrails: only used by 'guardrails' mode; ignored")
        return

    rails = item.guardrails
    if rails is None:
        result.errors.append(f"{base}.guardrails: required when mode is 'guardrails'")
        return
    _check_non_negative(result, f"{base}.guardrails.min_pct", rails.min_pct)
    _check_positive(result, f"{base}.guardrails.max_pct", rails.max_pct)
    _check_non_negative(result, f"{base}.guardrails.min_dollar", rails.min_dollar)
    if rails.min_pct > rails.max_pct:
        result.errors.append(f"{base}.guardrails.min_pct/{base}.guardrails.max_pct: min_pct must be <= max_pct")
    elif not rails.min_pct <= item.rate_pct <= rails.max_pct:
        result.warnings.append(
            f"{base}.rate_pct: {item.rate_pct} is outside guardrails [{rails.min_pct}, {rails.max_pct}]; starting rate will be clamped"
        )


def _validate_retirement(result: ValidationResult, item: RetirementSettings, mode: str) -> None:
    _check_positive(result, "retirement.initial_balance", item.initial_balance)
    if item.duration_years <= 0:
        result.errors.append("retirement.duration_years: must be > 0")
    if mode == "retirement":
        _check_month(result, "retirement.start_month", item.start_month)
    elif item.start_month is not None:
        result.warnings.append("retirement.start_month: sweep runs start from every January; ignored")
    _validate_withdrawal(result, item.withdrawal, "retirement.withdrawal")


def _validate_dca(result: ValidationResult, item: DcaSettings) -> None:
    _check_non_negative(result, "dca.initial_lump_sum", item.initial_lump_sum)
    _check_positive(result, "dca.monthly_contribution", item.monthly_contribution)
    start_ok = _check_month(result, "dca.start_month", item.start_month)
    end_ok = _check_month(result, "dca.end_month", item.end_month)
    if start_ok and end_ok and month_to_index(item.start_month) > month_to_index(item.end_month):
        result.errors.append("dca.start_month/dca.end_month: start_month must be <= end_month")


def _validate_inflation(result: ValidationResult, item: InflationSettings, mode: str) -> None:
    _check_positive(result, "inflation.amount", item.amount)
    if item.duration_years <= 0:
        result.errors.append("inflation.duration_years: must be > 0")
    if mode == "inflation" and item.start_year is None:
        result.errors.append("inflation.start_year: required for 'inflation' mode")


def validate_scenario(scenario: Scenario, mode: str | None = None) -> ValidationResult:
    result = ValidationResult()
    mode = mode or scenario.mode
    if not _check_enum(result, "run.mode", mode, RUN_MODES):
        return result

    if mode in RETIREMENT_MODES:
        if scenario.retirement is None:
            result.errors.append(f"retirement: section is required for '{mode}' mode")
        else:
            _validate_retirement(result, scenario.retirement, mode)
    elif mode == "dca":
        if scenario.dca is None:
            result.errors.append("dca: section is required for 'dca' mode")
        else:
            _validate_dca(result, scenario.dca)
    elif mode in INFLATION_MODES:
        if scenario.inflation is None:
            result.errors.append(f"inflation: section is required for '{mode}' mode")
        else:
            _validate_inflation(result, scenario.inflation, mode)

    return result

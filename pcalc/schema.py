"""Scenario schema dataclasses and JSON loading."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import os
from pathlib import Path
from typing import Any

from .errors import PolicyError
from .inflation import DEFAULT_ANNUAL_INFLATION_PCT
from .withdrawals import Guardrails, InflationAdjustedFixed, PercentOfInitial, WithdrawalPolicy

PRICES_ENV = "PCALC_PRICES_CSV"
INFLATION_ENV = "PCALC_INFLATION_CSV"


class SchemaError(ValueError):
    """Raised when raw JSON cannot be parsed into schema objects."""


def _expect_dict(value: Any, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise SchemaError(f"{path}: expected object")
    return value


def _require(data: dict[str, Any], key: str, path: str) -> Any:
    if key not in data:
        raise SchemaError(f"{path}.{key}: missing required field")
    return data[key]


def _optional(data: dict[str, Any], key: str, default: Any = None) -> Any:
    return data.get(key, default)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _number(value: Any, path: str) -> float:
    if isinstance(value, bool):
        raise SchemaError(f"{path}: expected number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise SchemaError(f"{path}: expected number") from None


def _optional_number(data: dict[str, Any], key: str, path: str, default: float | None) -> float | None:
    value = _optional(data, key)
    if _blank(value):
        return default
    return _number(value, f"{path}.{key}")


def _integer(value: Any, path: str) -> int:
    number = _number(value, path)
    if not number.is_integer():
        raise SchemaError(f"{path}: expected whole number")
    return int(number)


@dataclass(slots=True)
class DataSettings:
    prices_csv: str | None = None
    inflation_csv: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "data") -> "DataSettings":
        return cls(
            prices_csv=_optional(data, "prices_csv"),
            inflation_csv=_optional(data, "inflation_csv"),
        )


@dataclass(slots=True)
class GuardrailsSettings:
    min_pct: float
    max_pct: float
    min_dollar: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "GuardrailsSettings":
        return cls(
            min_pct=_number(_require(data, "min_pct", path), f"{path}.min_pct"),
            max_pct=_number(_require(data, "max_pct", path), f"{path}.max_pct"),
            min_dollar=_optional_number(data, "min_dollar", path, 0.0),
        )


@dataclass(slots=True)
class WithdrawalSettings:
    mode: str
    rate_pct: float
    frequency: str = "monthly"
    annual_inflation_pct: float | None = None
    guardrails: GuardrailsSettings | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str) -> "WithdrawalSettings":
        guardrails_raw = _optional(data, "guardrails")
        guardrails = None
        if guardrails_raw is not None:
            guardrails = GuardrailsSettings.from_dict(_expect_dict(guardrails_raw, f"{path}.guardrails"), f"{path}.guardrails")
        return cls(
            mode=_optional(data, "mode", "percent_of_initial"),
            rate_pct=_number(_require(data, "rate_pct", path), f"{path}.rate_pct"),
            frequency=_optional(data, "frequency", "monthly"),
            annual_inflation_pct=_optional_number(data, "annual_inflation_pct", path, None),
            guardrails=guardrails,
        )

    def to_policy(self) -> WithdrawalPolicy:
        """Build the policy variant for ``mode``; percentages become decimals here."""
        rate = self.rate_pct / 100.0
        if self.mode == PercentOfInitial.kind:
            return PercentOfInitial(rate=rate)
        if self.mode == InflationAdjustedFixed.kind:
            inflation_pct = DEFAULT_ANNUAL_INFLATION_PCT if self.annual_inflation_pct is None else self.annual_inflation_pct
            return InflationAdjustedFixed(rate=rate, annual_inflation_pct=inflation_pct)
        if self.mode == Guardrails.kind:
            if self.guardrails is None:
                raise PolicyError("guardrails mode requires guardrails settings")
            return Guardrails(
                rate=rate,
                min_rate=self.guardrails.min_pct / 100.0,
                max_rate=self.guardrails.max_pct / 100.0,
                min_dollar_floor=self.guardrails.min_dollar,
            )
        raise PolicyError(f"unknown withdrawal mode: {self.mode}")


@dataclass(slots=True)
class RetirementSettings:
    initial_balance: float
    duration_years: int
    withdrawal: WithdrawalSettings
    start_month: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "retirement") -> "RetirementSettings":
        return cls(
            initial_balance=_number(_require(data, "initial_balance", path), f"{path}.initial_balance"),
            duration_years=_integer(_require(data, "duration_years", path), f"{path}.duration_years"),
            withdrawal=WithdrawalSettings.from_dict(
                _expect_dict(_require(data, "withdrawal", path), f"{path}.withdrawal"),
                f"{path}.withdrawal",
            ),
            start_month=_optional(data, "start_month"),
        )


@dataclass(slots=True)
class DcaSettings:
    monthly_contribution: float
    start_month: str
    end_month: str
    initial_lump_sum: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "dca") -> "DcaSettings":
        return cls(
            monthly_contribution=_number(_require(data, "monthly_contribution", path), f"{path}.monthly_contribution"),
            start_month=_require(data, "start_month", path),
            end_month=_require(data, "end_month", path),
            initial_lump_sum=_optional_number(data, "initial_lump_sum", path, 0.0),
        )


@dataclass(slots=True)
class InflationSettings:
    amount: float
    duration_years: int
    start_year: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: str = "inflation") -> "InflationSettings":
        start_year = _optional(data, "start_year")
        return cls(
            amount=_number(_require(data, "amount", path), f"{path}.amount"),
            duration_years=_integer(_require(data, "duration_years", path), f"{path}.duration_years"),
            start_year=None if _blank(start_year) else _integer(start_year, f"{path}.start_year"),
        )


@dataclass(slots=True)
class Scenario:
    mode: str
    data: DataSettings
    retirement: RetirementSettings | None = None
    dca: DcaSettings | None = None
    inflation: InflationSettings | None = None
    base_dir: Path = field(default_factory=Path)

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path | None = None) -> "Scenario":
        run = _expect_dict(_optional(data, "run", {}), "run")
        retirement_raw = _optional(data, "retirement")
        dca_raw = _optional(data, "dca")
        inflation_raw = _optional(data, "inflation")
        return cls(
            mode=_optional(run, "mode", "retirement"),
            data=DataSettings.from_dict(_expect_dict(_optional(data, "data", {}), "data")),
            retirement=None if retirement_raw is None else RetirementSettings.from_dict(_expect_dict(retirement_raw, "retirement")),
            dca=None if dca_raw is None else DcaSettings.from_dict(_expect_dict(dca_raw, "dca")),
            inflation=None if inflation_raw is None else InflationSettings.from_dict(_expect_dict(inflation_raw, "inflation")),
            base_dir=base_dir or Path("."),
        )

    def _resolve(self, override: str | None, env_name: str, configured: str | None) -> Path | None:
        if override:
            return Path(override)
        env_value = os.environ.get(env_name)
        if env_value:
            return Path(env_value)
        if not configured:
            return None
        path = Path(configured)
        return path if path.is_absolute() else self.base_dir / path

    def prices_path(self, override: str | None = None) -> Path | None:
        """CLI override, then ``PCALC_PRICES_CSV``, then ``data.prices_csv`` relative to the scenario."""
        return self._resolve(override, PRICES_ENV, self.data.prices_csv)

    def inflation_path(self, override: str | None = None) -> Path | None:
        return self._resolve(override, INFLATION_ENV, self.data.inflation_csv)


def load_scenario(path: str | Path) -> Scenario:
    """Load scenario JSON into strongly-typed dataclasses."""
    source = Path(path)
    raw = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise SchemaError("scenario: root must be a JSON object")
    return Scenario.from_dict(raw, base_dir=source.parent)

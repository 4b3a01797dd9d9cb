import copy
import json
from pathlib import Path

from pcalc.market_data import MonthlyPricePoint


def write_scenario(tmp_path: Path, data: dict, filename: str = "scenario.json") -> Path:
    path = tmp_path / filename
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def clone_scenario(data: dict) -> dict:
    return copy.deepcopy(data)


def month_keys(start_year: int, count: int, start_month: int = 1) -> list[str]:
    keys = []
    ordinal = start_year * 12 + (start_month - 1)
    for offset in range(count):
        year, month = divmod(ordinal + offset, 12)
        keys.append(f"{year:04d}-{month + 1:02d}")
    return keys


def series_from_returns(monthly_returns: list[float], start_year: int = 2000, start_close: float = 100.0) -> list[MonthlyPricePoint]:
    """Price series whose month-over-month returns are ``monthly_returns[1:]``."""
    closes = [start_close]
    for value in monthly_returns[1:]:
        closes.append(closes[-1] * (1.0 + value))
    return [
        MonthlyPricePoint(month=month, close=close)
        for month, close in zip(month_keys(start_year, len(closes)), closes)
    ]


def constant_series(months: int, monthly_return: float, start_year: int = 2000) -> list[MonthlyPricePoint]:
    return series_from_returns([0.0] + [monthly_return] * (months - 1), start_year=start_year)


def write_price_csv(tmp_path: Path, monthly: list[MonthlyPricePoint], filename: str = "prices.csv") -> Path:
    """Write one daily row per month (the 15th) so monthly closes round-trip."""
    lines = ["Date,Open,High,Low,Close"]
    for point in monthly:
        lines.append(f"{point.month}-15,{point.close},{point.close},{point.close},{point.close}")
    path = tmp_path / filename
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def write_inflation_csv(tmp_path: Path, rates: dict[int, float], filename: str = "inflation.csv") -> Path:
    lines = ["Year,Ave"]
    for year, rate in sorted(rates.items()):
        lines.append(f"{year},{rate}")
    path = tmp_path / filename
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path

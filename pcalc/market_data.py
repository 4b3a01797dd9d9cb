"""Daily price CSV loading and monthly close series."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
from datetime import datetime
import logging
import math
from pathlib import Path
from typing import Iterable

from .errors import DataFormatError

logger = logging.getLogger(__name__)

DATE_COLUMNS = ("date", "day", "time")
OPEN_COLUMNS = ("open", "open_price", "opening", "o")
CLOSE_COLUMNS = ("close", "close_price", "closing", "c")

DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%d-%b-%Y",
    "%b %d, %Y",
    "%Y-%m",
)


@dataclass(frozen=True, slots=True)
class MonthlyPricePoint:
    month: str
    close: float
    open: float | None = None
    last_daily_date: str | None = None


@dataclass(frozen=True, slots=True)
class DailyPrice:
    date: str
    close: float
    open: float | None = None


@dataclass(slots=True)
class PriceMeta:
    daily_count: int
    monthly_count: int
    first_daily_date: str | None
    last_daily_date: str | None
    first_month: str | None
    last_month: str | None


@dataclass(slots=True)
class PriceDataset:
    daily: list[DailyPrice]
    monthly: list[MonthlyPricePoint]
    meta: PriceMeta = field(init=False)

    def __post_init__(self) -> None:
        self.meta = PriceMeta(
            daily_count=len(self.daily),
            monthly_count=len(self.monthly),
            first_daily_date=self.daily[0].date if self.daily else None,
            last_daily_date=self.daily[-1].date if self.daily else None,
            first_month=self.monthly[0].month if self.monthly else None,
            last_month=self.monthly[-1].month if self.monthly else None,
        )


def _to_number(value: str | None) -> float | None:
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_date(value: str | None) -> str | None:
    """Normalize a date cell to ``YYYY-MM-DD`` or return None."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text).strftime("%Y-%m-%d")
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime("%Y-%m-%d")
        except ValueError:
            continue
    return None


def _find_column(headers: list[str], candidates: Iterable[str]) -> str | None:
    normalized = {header.strip().lower(): header for header in headers}
    for candidate in candidates:
        if candidate in normalized:
            return normalized[candidate]
    return None


def monthly_from_daily(daily: Iterable[DailyPrice]) -> list[MonthlyPricePoint]:
    """Collapse daily rows into one point per month using the last close."""
    buckets: dict[str, list[DailyPrice]] = {}
    for row in sorted(daily, key=lambda item: item.date):
        buckets.setdefault(row.date[:7], []).append(row)

    monthly: list[MonthlyPricePoint] = []
    for month in sorted(buckets):
        rows = buckets[month]
        last = rows[-1]
        monthly.append(
            MonthlyPricePoint(
                month=month,
                close=last.close,
                open=rows[0].open,
                last_daily_date=last.date,
            )
        )
    return monthly


def monthly_from_closes(pairs: Iterable[tuple[str, float]]) -> list[MonthlyPricePoint]:
    """Build a monthly series from ``(month, close)`` pairs; later duplicates win."""
    by_month: dict[str, float] = {}
    for month, close in pairs:
        by_month[month] = float(close)
    return [MonthlyPricePoint(month=month, close=by_month[month]) for month in sorted(by_month)]


def load_price_csv(path: str | Path) -> PriceDataset:
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"price CSV not found at: {source}")

    with source.open(newline="", encoding="utf-8-sig") as handle:
        reader = csv.DictReader(handle)
        headers = [name for name in (reader.fieldnames or []) if name is not None]
        date_col = _find_column(headers, DATE_COLUMNS)
        open_col = _find_column(headers, OPEN_COLUMNS)
        close_col = _find_column(headers, CLOSE_COLUMNS)
        if date_col is None or close_col is None:
            raise DataFormatError(
                "price CSV must include a date column (date/day) and a close column (close). "
                f"Found headers: {', '.join(headers)}"
            )

        daily: list[DailyPrice] = []
        skipped = 0
        for record in reader:
            date = parse_date(record.get(date_col))
            close = _to_number(record.get(close_col))
            if date is None or close is None:
                skipped += 1
                continue
            open_value = _to_number(record.get(open_col)) if open_col else None
            daily.append(DailyPrice(date=date, close=close, open=open_value))

    daily.sort(key=lambda item: item.date)
    dataset = PriceDataset(daily=daily, monthly=monthly_from_daily(daily))
    logger.info(
        "loaded %d daily rows (%d skipped) into %d months from %s",
        dataset.meta.daily_count,
        skipped,
        dataset.meta.monthly_count,
        source,
    )
    return dataset

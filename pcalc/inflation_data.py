"""Annual inflation CSV loading."""

from __future__ import annotations

import csv
from dataclasses import dataclass, field
import io
import logging
import math
from pathlib import Path
import re

from .errors import DataFormatError

logger = logging.getLogger(__name__)

MONTH_COLUMNS = ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec")
MIN_YEAR = 1800
MAX_YEAR = 3000
YEAR_RE = re.compile(r"(\d{4})")


@dataclass(frozen=True, slots=True)
class AnnualInflation:
    year: int
    avg_rate_pct: float


@dataclass(slots=True)
class InflationMeta:
    year_count: int
    first_year: int
    last_year: int
    overall_avg_rate_pct: float


@dataclass(slots=True)
class InflationDataset:
    annual: list[AnnualInflation]
    by_year: dict[int, AnnualInflation] = field(init=False)
    meta: InflationMeta = field(init=False)

    def __post_init__(self) -> None:
        if not self.annual:
            raise DataFormatError("inflation dataset is empty")
        self.annual.sort(key=lambda row: row.year)
        self.by_year = {row.year: row for row in self.annual}
        self.meta = InflationMeta(
            year_count=len(self.annual),
            first_year=self.annual[0].year,
            last_year=self.annual[-1].year,
            overall_avg_rate_pct=sum(row.avg_rate_pct for row in self.annual) / len(self.annual),
        )

    def check_meta(self) -> None:
        first = self.meta.first_year
        last = self.meta.last_year
        if first < MIN_YEAR or last < MIN_YEAR or last < first:
            raise DataFormatError(
                f"inflation dataset meta looks wrong (first_year={first}, last_year={last})"
            )


def detect_delimiter(text: str) -> str:
    first_line = text.splitlines()[0] if text else ""
    return "\t" if first_line.count("\t") >= first_line.count(",") else ","


def _to_number(value: str | None) -> float | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_year(value: str | None) -> int | None:
    if value is None:
        return None
    number = _to_number(value)
    if number is not None:
        year = math.floor(number)
        if MIN_YEAR <= year <= MAX_YEAR:
            return year
    match = YEAR_RE.search(str(value))
    if not match:
        return None
    year = int(match.group(1))
    return year if MIN_YEAR <= year <= MAX_YEAR else None


def _pick_year_key(keys: list[str]) -> str:
    for key in keys:
        if key.lower() == "year":
            return key
    for key in keys:
        if "year" in key.lower():
            return key
    return keys[0]


def _pick_average_key(keys: list[str]) -> str | None:
    for wanted in ("ave", "avg"):
        for key in keys:
            if key.lower() == wanted:
                return key
    for key in keys:
        if "ave" in key.lower():
            return key
    return None


def parse_inflation_text(text: str) -> InflationDataset:
    delimiter = detect_delimiter(text)
    reader = csv.reader(io.StringIO(text), delimiter=delimiter)
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if not rows:
        raise DataFormatError("inflation CSV has no rows")

    keys = [cell.lstrip("\ufeff").strip() for cell in rows[0]]
    year_key = _pick_year_key(keys)
    average_key = _pick_average_key(keys)
    month_keys = [key for key in keys if key.lower() in MONTH_COLUMNS]

    annual: list[AnnualInflation] = []
    for row in rows[1:]:
        record = {key: (row[idx].strip() if idx < len(row) else "") for idx, key in enumerate(keys)}
        year = parse_year(record.get(year_key))
        if year is None:
            continue

        avg_rate = _to_number(record.get(average_key)) if average_key else None
        if avg_rate is None:
            values = [v for v in (_to_number(record.get(key)) for key in month_keys) if v is not None]
            if values:
                avg_rate = sum(values) / len(values)
        if avg_rate is None:
            continue
        annual.append(AnnualInflation(year=year, avg_rate_pct=avg_rate))

    if not annual:
        raise DataFormatError(
            "inflation CSV parsed, but produced 0 usable rows. "
            f"Check delimiter/headers. Detected delimiter: {delimiter!r}"
        )
    return InflationDataset(annual=annual)


def load_inflation_csv(path: str | Path) -> InflationDataset:
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"inflation CSV not found at: {source}")
    dataset = parse_inflation_text(source.read_text(encoding="utf-8-sig"))
    dataset.check_meta()
    logger.info(
        "loaded inflation years %d-%d (%d) overall avg=%.2f%% from %s",
        dataset.meta.first_year,
        dataset.meta.last_year,
        dataset.meta.year_count,
        dataset.meta.overall_avg_rate_pct,
        source,
    )
    return dataset

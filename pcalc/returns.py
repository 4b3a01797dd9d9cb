"""Monthly return series and month key helpers."""

from __future__ import annotations

import math
from typing import Sequence

from .errors import MonthNotFoundError
from .market_data import MonthlyPricePoint


def month_parts(month: str) -> tuple[int, int]:
    return int(month[0:4]), int(month[5:7])


def month_to_index(month: str) -> int | None:
    """Map a ``YYYY-MM`` key to a monotonically increasing month ordinal."""
    year_text, _, month_text = str(month).partition("-")
    try:
        year = int(year_text)
        mon = int(month_text)
    except ValueError:
        return None
    if mon < 1 or mon > 12:
        return None
    return year * 12 + (mon - 1)


def find_month_index(monthly: Sequence[MonthlyPricePoint], month: str, label: str = "start_month") -> int:
    for idx, point in enumerate(monthly):
        if point.month == month:
            return idx

    wanted = month_to_index(month)
    if wanted is not None:
        for idx, point in enumerate(monthly):
            if month_to_index(point.month) == wanted:
                return idx
    raise MonthNotFoundError(month, label)


def build_returns(monthly: Sequence[MonthlyPricePoint]) -> list[float]:
    """Month-over-month fractional returns aligned with ``monthly``.

    The first entry is always 0. A month whose prior close is not a positive
    finite number, or whose own close is negative or not finite, also gets 0
    so a return never falls below -100% and the balance path never sees NaN
    or infinity.
    """
    returns = [0.0] * len(monthly)
    for idx in range(1, len(monthly)):
        prev = monthly[idx - 1].close
        cur = monthly[idx].close
        if math.isfinite(prev) and prev > 0 and math.isfinite(cur) and cur >= 0:
            returns[idx] = cur / prev - 1.0
    return returns

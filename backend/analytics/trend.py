"""
Module: trend.py
Description: Linear trend and calendar seasonality estimation.

    trend()        OLS slope of a recency-ordered series (index 0 = newest)
    seasonality()  month-of-year multiplicative factors (1.0 = average month)

Short or degenerate series never raise; they resolve to "no signal":
a slope of 0.0, or an omitted seasonal factor that callers default to 1.0.

Author: Finance Analytics Team
"""

from collections import defaultdict
from enum import Enum
from typing import Dict, Iterable, Mapping, Sequence

import numpy as np

from .aggregator import MonthlyTotal


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


def trend(recent_periods: Sequence[float]) -> float:
    """
    Ordinary least squares slope of totals against x = 0..n-1.

    Args:
        recent_periods: Totals ordered most recent first.

    Returns:
        Slope coefficient; exactly 0.0 with fewer than two points or a
        constant series.
    """
    if len(recent_periods) < 2:
        return 0.0

    y = np.asarray(recent_periods, dtype=float)
    if np.all(y == y[0]):
        return 0.0

    x = np.arange(len(y), dtype=float)
    x_dev = x - x.mean()
    return float(np.sum(x_dev * (y - y.mean())) / np.sum(x_dev ** 2))


def trend_direction(slope: float) -> TrendDirection:
    """Classify a slope by its sign; exactly 0.0 is stable."""
    if slope > 0:
        return TrendDirection.INCREASING
    if slope < 0:
        return TrendDirection.DECREASING
    return TrendDirection.STABLE


def seasonality(series: Iterable[MonthlyTotal]) -> Dict[int, float]:
    """
    Month-of-year seasonal factors.

    For each calendar month (0-11) the historical totals falling in that
    month are averaged across years and divided by the grand average of all
    period totals. Months without history are omitted.
    """
    by_month: Dict[int, list] = defaultdict(list)
    for period in series:
        by_month[period.month_index].append(period.total)

    all_totals = [total for totals in by_month.values() for total in totals]
    if not all_totals:
        return {}

    grand_average = float(np.mean(all_totals))
    if grand_average == 0:
        return {}

    return {
        month: float(np.mean(totals)) / grand_average
        for month, totals in sorted(by_month.items())
    }


def seasonal_factor(factors: Mapping[int, float], month_index: int) -> float:
    """Factor for a 0-based calendar month, defaulting to 1.0."""
    return factors.get(month_index, 1.0)

"""
Module: forecast.py
Description: Next-month expense prediction per category.

Algorithm (per category, expenses only):
    1. Monthly totals, most recent 6 periods, newest first
    2. Weighted moving average with fixed recency weights
       [0.30, 0.25, 0.20, 0.15, 0.07, 0.03]; short histories use only the
       leading weights and are NOT renormalised, so sparse categories
       predict below their plain average
    3. Trend ratio = OLS slope / weighted average
    4. Seasonal factor of the upcoming calendar month
    5. prediction = average * (1 + trend ratio) * seasonal factor

Confidence is a heuristic: 100 * (1 - MAPE) where each period is compared
with the one before it, clamped to [0, 100].

Author: Finance Analytics Team
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from config import get_settings
from .aggregator import aggregate, recent_totals
from .observability import log_forecast_complete, logger, timed
from .records import Transaction, clamp_percentage, round_money
from .trend import TrendDirection, seasonal_factor, seasonality, trend, trend_direction


@dataclass(frozen=True)
class Prediction:
    category: str
    amount: float
    trend_direction: TrendDirection
    confidence: int
    seasonal_factor: float

    def to_dict(self) -> dict:
        data = asdict(self)
        data["trend_direction"] = self.trend_direction.value
        return data


@dataclass(frozen=True)
class AccuracyMetrics:
    mape: float
    rmse: float
    confidence: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ForecastResult:
    """Predictions keyed by category plus the matching accuracy side-table."""
    predictions: Dict[str, Prediction] = field(default_factory=dict)
    accuracy: Dict[str, AccuracyMetrics] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "predictions": {k: v.to_dict() for k, v in self.predictions.items()},
            "accuracy": {k: v.to_dict() for k, v in self.accuracy.items()},
        }


# =============================================================================
# Building Blocks
# =============================================================================

def weighted_average(values: Sequence[float], weights: Sequence[float]) -> float:
    """
    Recency-weighted sum of ``values`` (newest first).

    Only the leading ``len(values)`` weights are used and the result is not
    rescaled; extra values beyond the weight vector get weight 0.
    """
    return float(sum(value * weight for value, weight in zip(values, weights)))


def upcoming_month_index(as_of: date) -> int:
    """0-based index of the calendar month following ``as_of``."""
    return as_of.month % 12


def accuracy_metrics(recent: Sequence[float], prediction: float) -> AccuracyMetrics:
    """
    Score how stable a recency-ordered series is.

    Each period is compared with the period immediately before it; the
    oldest period is compared with the prediction itself. Periods with a
    zero total contribute no relative error but still count in the mean.
    """
    if not recent:
        return AccuracyMetrics(mape=0.0, rmse=0.0, confidence=0)

    relative_errors: List[float] = []
    squared_errors: List[float] = []
    for i, actual in enumerate(recent):
        previous = recent[i + 1] if i + 1 < len(recent) else prediction
        squared_errors.append((actual - previous) ** 2)
        relative_errors.append(0.0 if actual == 0 else abs((actual - previous) / actual))

    mape = float(np.mean(relative_errors))
    rmse = math.sqrt(float(np.mean(squared_errors)))
    confidence = round(clamp_percentage(100 * (1 - mape)))

    return AccuracyMetrics(mape=round(mape, 2), rmse=round(rmse, 2), confidence=int(confidence))


# =============================================================================
# Forecast
# =============================================================================

def _forecast_category(
    category: str,
    transactions: Iterable[Transaction],
    as_of: date,
    weights: Sequence[float],
) -> Optional[tuple]:
    expenses = [t for t in transactions if t.is_expense and t.category == category]
    if not expenses:
        return None

    periods = aggregate(expenses).get(category, [])
    recent = recent_totals(periods, len(weights))

    average = weighted_average(recent, weights)
    slope = trend(recent)
    trend_ratio = slope / average if average != 0 else 0.0

    factor = seasonal_factor(seasonality(periods), upcoming_month_index(as_of))
    raw_prediction = max(0.0, average * (1 + trend_ratio) * factor)
    amount = round_money(raw_prediction)

    scores = accuracy_metrics(recent, raw_prediction)
    prediction = Prediction(
        category=category,
        amount=amount,
        trend_direction=trend_direction(slope),
        confidence=scores.confidence,
        seasonal_factor=factor,
    )
    logger.debug(
        "Category forecast",
        category=category,
        periods=len(recent),
        weighted_avg=f"{average:.2f}",
        slope=f"{slope:.4f}",
        amount=amount,
    )
    return prediction, scores


def predict(
    category: str,
    transactions: Iterable[Transaction],
    as_of: Optional[date] = None,
) -> Optional[Prediction]:
    """
    Predict next month's spending for one category.

    Args:
        category: Category to forecast.
        transactions: Transactions for the category; income and other
            categories are ignored.
        as_of: Reference date; the seasonal factor is taken for the month
            after it. Defaults to today.

    Returns:
        Prediction, or None when the category has no expense transactions.
    """
    weights = get_settings().forecast_weights
    result = _forecast_category(category, list(transactions), as_of or date.today(), weights)
    return result[0] if result else None


@timed("forecast.predict_expenses")
def predict_expenses(
    transactions: Iterable[Transaction],
    as_of: Optional[date] = None,
) -> ForecastResult:
    """
    Forecast every category that has at least one expense.

    Categories appear in first-seen order. Categories with only income are
    omitted rather than reported as zero.
    """
    snapshot = list(transactions)
    as_of = as_of or date.today()
    weights = get_settings().forecast_weights

    categories: List[str] = []
    for txn in snapshot:
        if txn.is_expense and txn.category not in categories:
            categories.append(txn.category)

    result = ForecastResult()
    for category in categories:
        outcome = _forecast_category(category, snapshot, as_of, weights)
        if outcome is None:
            continue
        result.predictions[category], result.accuracy[category] = outcome

    log_forecast_complete(len(result.predictions), len(snapshot))
    return result

"""
Module: aggregator.py
Description: Buckets transactions into category- and month-keyed totals.

Period keys are "YYYY-MM" strings, so a plain lexicographic sort is also a
chronological one. Series are rebuilt on every call; nothing is cached.

Author: Finance Analytics Team
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from .records import Transaction


@dataclass(frozen=True)
class MonthlyTotal:
    """Sum and count of one category's transactions within one month."""
    period_key: str
    total: float
    count: int

    @property
    def month_index(self) -> int:
        """Calendar month as 0 (January) through 11 (December)."""
        return int(self.period_key[5:7]) - 1


MonthlySeries = Dict[str, List[MonthlyTotal]]


def period_key(value: date) -> str:
    """Truncate a date to its "YYYY-MM" period key."""
    return f"{value.year:04d}-{value.month:02d}"


def monthly_totals(transactions: Iterable[Transaction]) -> Dict[str, float]:
    """Flat {period_key: total} over all given transactions, oldest first."""
    totals: Dict[str, float] = defaultdict(float)
    for txn in transactions:
        totals[period_key(txn.occurred_at)] += txn.amount
    return dict(sorted(totals.items()))


def aggregate(transactions: Iterable[Transaction]) -> MonthlySeries:
    """
    Group transactions by category, then by month.

    Args:
        transactions: Validated transactions, in any order.

    Returns:
        {category: [MonthlyTotal, ...]} with each list ordered most recent
        period first. Empty input yields an empty mapping.
    """
    buckets: Dict[str, Dict[str, List[float]]] = defaultdict(lambda: defaultdict(list))
    for txn in transactions:
        buckets[txn.category][period_key(txn.occurred_at)].append(txn.amount)

    series: MonthlySeries = {}
    for category, periods in buckets.items():
        series[category] = [
            MonthlyTotal(period_key=key, total=sum(amounts), count=len(amounts))
            for key, amounts in sorted(periods.items(), reverse=True)
        ]
    return series


def recent_totals(periods: List[MonthlyTotal], count: int) -> List[float]:
    """Totals of the ``count`` most recent periods, most recent first."""
    ordered = sorted(periods, key=lambda p: p.period_key, reverse=True)
    return [p.total for p in ordered[:count]]

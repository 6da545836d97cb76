"""
Module: cash_flow.py
Description: Month-level cash flow, month-over-month changes,
spending-change recommendations and the quick-look spending analysis.

Author: Finance Analytics Team
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from config import Settings, get_settings
from .aggregator import aggregate, period_key
from .anomaly_detector import ANOMALY_SIMPLE_RATIO, SIMPLE_RECENT_COUNT
from .records import Transaction, TransactionKind, round_money


def analyze_cash_flow(transactions: Iterable[Transaction]) -> List[dict]:
    """
    Income, expenses, net flow and savings rate per month, oldest first.

    The savings rate is a percentage of income and 0 for months without income.
    """
    flow: Dict[str, Dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expenses": 0.0})
    for txn in transactions:
        bucket = "income" if txn.kind == TransactionKind.INCOME else "expenses"
        flow[period_key(txn.occurred_at)][bucket] += txn.amount

    months = []
    for month, totals in sorted(flow.items()):
        net = totals["income"] - totals["expenses"]
        months.append({
            "month": month,
            "income": round_money(totals["income"]),
            "expenses": round_money(totals["expenses"]),
            "net_flow": round_money(net),
            "savings_rate": round(net / totals["income"] * 100, 1) if totals["income"] else 0.0,
        })
    return months


def monthly_changes(transactions: Iterable[Transaction]) -> Dict[str, dict]:
    """
    Percentage change of each month against the month before it.

    Returns:
        {month: {"total": pct, "by_category": {category: pct}}} for every
        month after the first. A category absent last month reports 100;
        a zero previous total reports 0.
    """
    totals: Dict[str, float] = defaultdict(float)
    by_category: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for txn in transactions:
        key = period_key(txn.occurred_at)
        totals[key] += txn.amount
        by_category[key][txn.category] += txn.amount

    months = sorted(totals)
    changes: Dict[str, dict] = {}
    for previous_month, current_month in zip(months, months[1:]):
        previous_total = totals[previous_month]
        change = {
            "total": round((totals[current_month] - previous_total) / previous_total * 100, 2)
            if previous_total else 0.0,
            "by_category": {},
        }
        for category, current in by_category[current_month].items():
            previous = by_category[previous_month].get(category, 0.0)
            change["by_category"][category] = (
                100.0 if previous == 0 else round((current - previous) / previous * 100, 2)
            )
        changes[current_month] = change
    return changes


def spending_change_recommendations(
    transactions: Iterable[Transaction],
    settings: Optional[Settings] = None,
) -> List[dict]:
    """
    Compare the last three months of spending with the three before.

    A category with recent spending but no earlier history gets an ``info``
    suggestion; one whose spending grew by more than the configured
    threshold gets a ``warning``. The suggested budget is the simple average
    of the recent months.
    """
    settings = settings or get_settings()
    expenses = [t for t in transactions if t.is_expense]

    recommendations = []
    for category, periods in aggregate(expenses).items():
        recent = [p.total for p in periods[:3]]
        older = [p.total for p in periods[3:6]]
        recent_total = sum(recent)
        previous_total = sum(older)
        if recent_total <= 0:
            continue

        suggested = round_money(recent_total / len(recent))
        if previous_total == 0:
            recommendations.append({
                "category": category,
                "message": (
                    f"New spending detected in {category}. "
                    f"Consider setting a budget of ${suggested:.2f}."
                ),
                "severity": "info",
                "suggested_budget": suggested,
            })
            continue

        change_pct = (recent_total - previous_total) / previous_total * 100
        if change_pct > settings.spending_increase_warning_pct:
            recommendations.append({
                "category": category,
                "message": (
                    f"Spending in {category} has increased by {change_pct:.1f}%. "
                    f"Consider setting a budget of ${suggested:.2f}."
                ),
                "severity": "warning",
                "suggested_budget": suggested,
                "change_percent": round(change_pct, 1),
            })
    return recommendations


SIMPLE_PREDICTION_CONFIDENCE = 70


def simple_spending_analysis(transactions: Iterable[Transaction]) -> dict:
    """
    Quick-look analysis that needs no monthly history.

    Each category's prediction is the plain average of its three most recent
    transactions, and any transaction above ``ANOMALY_SIMPLE_RATIO`` times
    that average is flagged. Confidence is a flat 70 for every category.

    Returns:
        {
            "trends": {"monthly": {month: {"total", "by_category"}},
                       "categories": {category: {"count", "total"}}},
            "predictions": {"next_month": {category: amount},
                            "confidence": {category: 70}},
            "anomalies": [{"transaction_id", "category", "amount",
                           "occurred_at", "average"}],
        }
    """
    newest_first = sorted(transactions, key=lambda t: t.occurred_at, reverse=True)

    monthly_totals: Dict[str, float] = defaultdict(float)
    monthly_by_category: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    by_category: Dict[str, List[Transaction]] = defaultdict(list)
    for txn in newest_first:
        key = period_key(txn.occurred_at)
        monthly_totals[key] += txn.amount
        monthly_by_category[key][txn.category] += txn.amount
        by_category[txn.category].append(txn)

    predictions: Dict[str, float] = {}
    anomalies: List[dict] = []
    for category, group in by_category.items():
        recent = group[:SIMPLE_RECENT_COUNT]
        average = sum(t.amount for t in recent) / len(recent)
        predictions[category] = round_money(average)

        for txn in group:
            if txn.amount > average * ANOMALY_SIMPLE_RATIO:
                anomalies.append({
                    "transaction_id": txn.id,
                    "category": category,
                    "amount": round_money(txn.amount),
                    "occurred_at": txn.occurred_at.isoformat(),
                    "average": round_money(average),
                })

    return {
        "trends": {
            "monthly": {
                month: {
                    "total": round_money(total),
                    "by_category": {c: round_money(v) for c, v in monthly_by_category[month].items()},
                }
                for month, total in monthly_totals.items()
            },
            "categories": {
                category: {"count": len(group), "total": round_money(sum(t.amount for t in group))}
                for category, group in by_category.items()
            },
        },
        "predictions": {
            "next_month": predictions,
            "confidence": {category: SIMPLE_PREDICTION_CONFIDENCE for category in predictions},
        },
        "anomalies": anomalies,
    }

"""
Module: data_utils.py
Description: Data cleaning, descriptive statistics and accuracy evaluation.

Cleaning is the strict entry point for untrusted rows: amounts are coerced
and rounded to cents, category synonyms are folded onto standard names and
descriptions are trimmed. Anything that cannot be coerced raises
InvalidRecordError naming the offending record.

Author: Finance Analytics Team
"""

import math
from typing import Any, Dict, Iterable, List, Sequence

import pandas as pd

from .records import InvalidRecordError, Transaction, round_money, validate_transaction


STANDARD_CATEGORIES = {
    'food': 'Food',
    'foods': 'Food',
    'grocery': 'Food',
    'groceries': 'Food',
    'dining': 'Food',
    'restaurant': 'Food',
    'transport': 'Transportation',
    'transportation': 'Transportation',
    'travel': 'Transportation',
    'gas': 'Transportation',
    'uber': 'Transportation',
    'house': 'Housing',
    'housing': 'Housing',
    'rent': 'Housing',
    'mortgage': 'Housing',
    'entertainment': 'Entertainment',
    'fun': 'Entertainment',
    'utility': 'Utilities',
    'utilities': 'Utilities',
    'bills': 'Utilities',
}


def normalize_category(category: str) -> str:
    """Fold known synonyms onto a standard category name."""
    if not category:
        return category
    return STANDARD_CATEGORIES.get(category.strip().lower(), category.strip())


def _record_id(raw: Dict[str, Any]) -> Any:
    return raw.get("id", raw.get("_id"))


def clean_amount(amount: Any, record_id: Any = None) -> float:
    """
    Coerce an amount to a finite float rounded to cents.

    Raises:
        InvalidRecordError: If the value is not numeric, not finite or negative.
    """
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidRecordError("transaction", record_id, [f"amount: not a number ({amount!r})"])
    if not math.isfinite(value) or value < 0:
        raise InvalidRecordError("transaction", record_id, [f"amount: must be a non-negative number ({amount!r})"])
    return round_money(value)


def clean_transaction(raw: Dict[str, Any]) -> Transaction:
    """
    Clean and validate one raw transaction dict.

    Accepts the storage layer's field names (``type``/``date``) as well as
    the engine's (``kind``/``occurred_at``).

    Raises:
        InvalidRecordError: On a bad amount, date, kind or category.
    """
    record_id = _record_id(raw)
    description = raw.get("description")
    cleaned = {
        "id": record_id,
        "kind": raw.get("kind", raw.get("type")),
        "amount": clean_amount(raw.get("amount"), record_id),
        "category": normalize_category(raw.get("category") or ""),
        "occurred_at": raw.get("occurred_at", raw.get("date")),
        "description": description.strip() if isinstance(description, str) else description,
    }
    return validate_transaction(cleaned)


def clean_transactions(raws: Iterable[Dict[str, Any]]) -> List[Transaction]:
    return [clean_transaction(raw) for raw in raws]


# =============================================================================
# Descriptive Statistics
# =============================================================================

def calculate_statistics(transactions: Iterable[Transaction]) -> Dict[str, Any]:
    """
    Summary statistics over a snapshot.

    Returns:
        count, total/average/max/min amount, counts per category, totals per
        month ("March 2024") and per weekday ("Monday").
    """
    rows = [
        {"amount": t.amount, "category": t.category, "date": pd.Timestamp(t.occurred_at)}
        for t in transactions
    ]
    if not rows:
        return {
            "count": 0,
            "total_amount": 0.0,
            "average_amount": 0.0,
            "max_amount": 0.0,
            "min_amount": 0.0,
            "category_counts": {},
            "monthly_totals": {},
            "day_of_week_totals": {},
        }

    df = pd.DataFrame(rows)
    df["month"] = df["date"].dt.strftime("%B %Y")
    df["weekday"] = df["date"].dt.day_name()

    # Chronological month order rather than alphabetical
    df = df.sort_values("date")
    monthly = df.groupby("month", sort=False)["amount"].sum()
    weekday = df.groupby("weekday", sort=False)["amount"].sum()

    return {
        "count": int(len(df)),
        "total_amount": round_money(df["amount"].sum()),
        "average_amount": round_money(df["amount"].mean()),
        "max_amount": round_money(df["amount"].max()),
        "min_amount": round_money(df["amount"].min()),
        "category_counts": {k: int(v) for k, v in df["category"].value_counts(sort=False).items()},
        "monthly_totals": {k: round_money(v) for k, v in monthly.items()},
        "day_of_week_totals": {k: round_money(v) for k, v in weekday.items()},
    }


# =============================================================================
# Accuracy Evaluation
# =============================================================================

def evaluate_accuracy(predictions: Sequence[float], actuals: Sequence[float]) -> Dict[str, float]:
    """
    Compare predicted against actual values.

    Raises:
        ValueError: If the sequences are empty or differ in length.
    """
    if not predictions or len(predictions) != len(actuals):
        raise ValueError("predictions and actuals must be non-empty and of equal length")

    errors = [abs(p - a) for p, a in zip(predictions, actuals)]
    total_error = sum(errors)
    total_actual = sum(actuals)
    mape = (total_error / total_actual) * 100 if total_actual else 0.0

    return {
        "mean_absolute_error": round(total_error / len(errors), 4),
        "mean_absolute_percentage_error": round(mape, 4),
        "max_error": round(max(errors), 4),
        "min_error": round(min(errors), 4),
        "accuracy": round(100 - mape, 4),
    }

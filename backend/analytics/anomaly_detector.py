"""
Module: anomaly_detector.py
Description: Per-category z-score outlier detection.

Each call recomputes the category baselines from the snapshot it is given;
there is no stored model. A transaction is flagged when its amount lies more
than two population standard deviations from its category mean.

Author: Finance Analytics Team
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List

import numpy as np

from .observability import log_anomaly_detected, logger, timed
from .records import Transaction, round_money


# =============================================================================
# Detection Constants
# =============================================================================

ANOMALY_ZSCORE_THRESHOLD = 2.0
# Quick-look rule: amount above 1.5x the average of the 3 most recent in its category
ANOMALY_SIMPLE_RATIO = 1.5
SIMPLE_RECENT_COUNT = 3
MIN_STD_DEV = 1e-9


@dataclass(frozen=True)
class Anomaly:
    transaction: Transaction
    category: str
    z_score: float
    expected_amount: float
    deviation: float
    severity: str
    explanation: str

    def to_dict(self) -> dict:
        return {
            "transaction": self.transaction.model_dump(mode="json"),
            "category": self.category,
            "z_score": self.z_score,
            "expected_amount": self.expected_amount,
            "deviation": self.deviation,
            "severity": self.severity,
            "explanation": self.explanation,
        }


def get_severity(z_score_abs: float) -> str:
    """Map |z| to a severity label."""
    if z_score_abs > 3:
        return "high"
    elif z_score_abs > 2.5:
        return "medium"
    return "low"


def generate_explanation(category: str, actual: float, expected: float, z_score: float) -> str:
    """Human-readable reason a transaction was flagged."""
    direction = "above" if z_score > 0 else "below"
    return (
        f"${actual:,.2f} in {category} is {abs(z_score):.1f} standard deviations "
        f"{direction} your typical ${expected:,.2f}."
    )


def _group_by_category(transactions: Iterable[Transaction]) -> Dict[str, List[Transaction]]:
    groups: Dict[str, List[Transaction]] = defaultdict(list)
    for txn in transactions:
        groups[txn.category].append(txn)
    return groups


@timed("anomaly.detect")
def detect_anomalies(transactions: Iterable[Transaction]) -> List[Anomaly]:
    """
    Flag transactions whose amount is abnormal for their category.

    Args:
        transactions: Validated transactions. Categories are processed in
            first-seen order and transactions in input order, so identical
            input always yields identical output.

    Returns:
        Flagged transactions with rounded z-score, expected amount (the
        category mean) and signed deviation from it.
    """
    anomalies: List[Anomaly] = []

    for category, group in _group_by_category(transactions).items():
        amounts = np.array([t.amount for t in group], dtype=float)
        mean = float(amounts.mean())
        std = float(amounts.std())

        # Identical amounts carry no outlier signal
        if std < MIN_STD_DEV:
            continue

        for txn in group:
            z_score = (txn.amount - mean) / std
            if abs(z_score) <= ANOMALY_ZSCORE_THRESHOLD:
                continue

            anomalies.append(Anomaly(
                transaction=txn,
                category=category,
                z_score=round(z_score, 2),
                expected_amount=round_money(mean),
                deviation=round_money(txn.amount - mean),
                severity=get_severity(abs(z_score)),
                explanation=generate_explanation(category, txn.amount, mean, z_score),
            ))
            log_anomaly_detected(category, z_score, txn.amount)

    logger.info("Anomaly detection completed", flagged=len(anomalies))
    return anomalies

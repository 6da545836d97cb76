"""
Pytest configuration and shared fixtures for the finance analytics tests.

This file is automatically loaded by pytest and provides:
    - An in-memory database for API tests
    - Transaction / budget record factories
    - Common assertion helpers

Author: Finance Analytics Team
"""

import os
import sys
from datetime import date
from pathlib import Path

import pytest

# Must be set before config/database are imported
os.environ["DATABASE_URL"] = "sqlite://"

sys.path.insert(0, str(Path(__file__).parent.parent))

from analytics.records import BudgetRecord, Transaction  # noqa: E402


# =============================================================================
# Record Factories
# =============================================================================

def make_txn(amount, category="Food", when=date(2024, 3, 15), kind="expense", id=None, description=None):
    """Build a validated transaction with sensible defaults."""
    return Transaction(
        id=id,
        kind=kind,
        amount=amount,
        category=category,
        occurred_at=when,
        description=description,
    )


def make_budget(category, limit_amount=0.0, minimum_payment=0.0, debt_priority="medium", savings_goal=0.0):
    return BudgetRecord(
        category=category,
        limit_amount=limit_amount,
        minimum_payment=minimum_payment,
        debt_priority=debt_priority,
        savings_goal=savings_goal,
    )


@pytest.fixture
def food_history():
    """Three months of Food spending; March is the most recent."""
    return [
        make_txn(100.0, when=date(2024, 1, 10), id=1),
        make_txn(50.0, when=date(2024, 2, 10), id=2),
        make_txn(200.0, when=date(2024, 3, 10), id=3),
    ]


@pytest.fixture
def mixed_transactions():
    """Income plus expenses across several categories and months."""
    return [
        make_txn(3000.0, category="Salary", when=date(2024, 1, 1), kind="income", id=1),
        make_txn(3000.0, category="Salary", when=date(2024, 2, 1), kind="income", id=2),
        make_txn(120.0, category="Food", when=date(2024, 1, 5), id=3),
        make_txn(80.0, category="Food", when=date(2024, 1, 20), id=4),
        make_txn(150.0, category="Food", when=date(2024, 2, 7), id=5),
        make_txn(1200.0, category="Housing", when=date(2024, 1, 1), id=6),
        make_txn(1200.0, category="Housing", when=date(2024, 2, 1), id=7),
        make_txn(45.5, category="Transportation", when=date(2024, 2, 14), id=8),
    ]


# =============================================================================
# Test Utilities
# =============================================================================

def assert_valid_confidence(confidence) -> None:
    """Assert that confidence is in the reported range."""
    assert 0 <= confidence <= 100, f"Invalid confidence: {confidence}"

"""
Test Module: test_reports.py
Description: Unit tests for cash flow, debt and emergency fund reports, and
descriptive statistics.

Author: Finance Analytics Team
"""

import pytest
from datetime import date

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from analytics.anomaly_detector import ANOMALY_SIMPLE_RATIO
from analytics.cash_flow import (
    analyze_cash_flow,
    monthly_changes,
    simple_spending_analysis,
    spending_change_recommendations,
)
from analytics.data_utils import calculate_statistics, evaluate_accuracy
from analytics.debt_analysis import analyze_debts, emergency_fund_status
from analytics.records import DebtRecord, EmergencyFund
from config import Settings
from conftest import make_txn


# =============================================================================
# Cash Flow
# =============================================================================

class TestCashFlow:
    """Tests for month-level cash flow reports."""

    def test_monthly_flow(self, mixed_transactions):
        flow = analyze_cash_flow(mixed_transactions)

        assert [m["month"] for m in flow] == ["2024-01", "2024-02"]
        assert flow[0] == {
            "month": "2024-01",
            "income": 3000.0,
            "expenses": 1400.0,
            "net_flow": 1600.0,
            "savings_rate": 53.3,
        }
        assert flow[1]["expenses"] == 1395.5

    def test_month_without_income_has_zero_rate(self, food_history):
        assert all(m["savings_rate"] == 0.0 for m in analyze_cash_flow(food_history))

    def test_month_over_month_changes(self, food_history):
        changes = monthly_changes(food_history)

        assert list(changes) == ["2024-02", "2024-03"]
        assert changes["2024-02"]["total"] == -50.0
        assert changes["2024-03"]["by_category"] == {"Food": 300.0}

    def test_new_category_reports_full_increase(self, food_history):
        txns = food_history + [make_txn(20.0, category="Gym", when=date(2024, 3, 2))]
        assert monthly_changes(txns)["2024-03"]["by_category"]["Gym"] == 100.0


class TestSpendingChanges:
    """Tests for recent-vs-previous quarter recommendations."""

    @pytest.fixture
    def six_months(self):
        months = [date(2023, 10, 5), date(2023, 11, 5), date(2023, 12, 5),
                  date(2024, 1, 5), date(2024, 2, 5), date(2024, 3, 5)]
        txns = [make_txn(100.0 if d.year == 2023 else 150.0, when=d) for d in months]
        txns += [make_txn(80.0, category="Utilities", when=d) for d in months]
        txns.append(make_txn(60.0, category="Gym", when=date(2024, 3, 1)))
        return txns

    def test_growth_and_new_categories(self, six_months):
        recs = {r["category"]: r for r in spending_change_recommendations(six_months, Settings())}

        assert set(recs) == {"Food", "Gym"}
        assert recs["Food"]["severity"] == "warning"
        assert recs["Food"]["change_percent"] == 50.0
        assert recs["Food"]["suggested_budget"] == 150.0
        assert recs["Gym"]["severity"] == "info"
        assert recs["Gym"]["suggested_budget"] == 60.0

    def test_threshold_is_configurable(self, six_months):
        recs = spending_change_recommendations(six_months, Settings(spending_increase_warning_pct=75.0))
        assert [r["category"] for r in recs] == ["Gym"]

    def test_income_ignored(self):
        txns = [make_txn(5000.0, category="Salary", kind="income")]
        assert spending_change_recommendations(txns, Settings()) == []


class TestSimpleSpendingAnalysis:
    """Tests for the recent-average analysis and its 1.5x flags."""

    @staticmethod
    def history(older_amount):
        return [
            make_txn(older_amount, when=date(2024, 2, 1), id=4),
            make_txn(100.0, when=date(2024, 3, 1), id=3),
            make_txn(100.0, when=date(2024, 3, 2), id=2),
            make_txn(100.0, when=date(2024, 3, 3), id=1),
        ]

    def test_ratio_constant(self):
        assert ANOMALY_SIMPLE_RATIO == 1.5

    def test_exactly_one_and_a_half_times_is_not_flagged(self):
        assert simple_spending_analysis(self.history(150.0))["anomalies"] == []

    def test_just_above_ratio_is_flagged(self):
        anomalies = simple_spending_analysis(self.history(150.01))["anomalies"]

        assert anomalies == [{
            "transaction_id": 4,
            "category": "Food",
            "amount": 150.01,
            "occurred_at": "2024-02-01",
            "average": 100.0,
        }]

    def test_prediction_uses_three_most_recent(self):
        result = simple_spending_analysis(self.history(400.0))

        assert result["predictions"]["next_month"] == {"Food": 100.0}
        assert result["predictions"]["confidence"] == {"Food": 70}

    def test_trend_tables(self, mixed_transactions):
        trends = simple_spending_analysis(mixed_transactions)["trends"]

        assert list(trends["monthly"]) == ["2024-02", "2024-01"]
        assert trends["monthly"]["2024-01"]["by_category"]["Food"] == 200.0
        assert trends["categories"]["Housing"] == {"count": 2, "total": 2400.0}

    def test_empty(self):
        result = simple_spending_analysis([])
        assert result["anomalies"] == []
        assert result["predictions"]["next_month"] == {}


# =============================================================================
# Debts and Emergency Fund
# =============================================================================

class TestDebtAnalysis:
    """Tests for interest-ranked debt recommendations."""

    def test_summary_and_recommendations(self):
        debts = [
            DebtRecord(name="Car Loan", amount=12000, interest_rate=6.5, minimum_payment=300),
            DebtRecord(name="Credit Card", amount=5000, interest_rate=24.99, minimum_payment=150),
        ]
        report = analyze_debts(debts)

        assert report["total_debt"] == 17000.0
        assert report["total_min_payment"] == 450.0
        assert report["highest_interest"] == 24.99
        assert report["debt_count"] == 2
        assert [r["type"] for r in report["recommendations"]] == ["priority", "minimum", "warning"]
        assert "Credit Card" in report["recommendations"][0]["message"]
        assert "$450.00" in report["recommendations"][1]["message"]

    def test_no_debts(self):
        report = analyze_debts([])
        assert report["total_debt"] == 0.0
        assert report["highest_interest"] == 0.0
        assert report["recommendations"] == []


class TestEmergencyFund:
    """Tests for emergency fund progress."""

    def test_months_to_goal_rounds_up(self):
        status = emergency_fund_status(EmergencyFund(goal=1000, current=250, monthly_contribution=100))

        assert status["remaining"] == 750.0
        assert status["percent_complete"] == 25.0
        assert status["months_to_goal"] == 8

    def test_goal_met(self):
        status = emergency_fund_status(EmergencyFund(goal=500, current=600, monthly_contribution=50))
        assert status["percent_complete"] == 100.0
        assert status["months_to_goal"] == 0

    def test_no_contribution(self):
        status = emergency_fund_status(EmergencyFund(goal=500, current=100))
        assert status["months_to_goal"] is None

    def test_missing_fund(self):
        status = emergency_fund_status(None)
        assert status["goal"] == 0.0
        assert status["percent_complete"] == 0.0


# =============================================================================
# Statistics and Accuracy
# =============================================================================

class TestStatistics:
    """Tests for descriptive statistics."""

    def test_summary(self, food_history):
        stats = calculate_statistics(food_history)

        assert stats["count"] == 3
        assert stats["total_amount"] == 350.0
        assert stats["average_amount"] == 116.67
        assert (stats["max_amount"], stats["min_amount"]) == (200.0, 50.0)
        assert stats["category_counts"] == {"Food": 3}
        assert list(stats["monthly_totals"].items()) == [
            ("January 2024", 100.0), ("February 2024", 50.0), ("March 2024", 200.0),
        ]
        assert stats["day_of_week_totals"] == {"Wednesday": 100.0, "Saturday": 50.0, "Sunday": 200.0}

    def test_empty(self):
        stats = calculate_statistics([])
        assert stats["count"] == 0
        assert stats["monthly_totals"] == {}


class TestEvaluateAccuracy:
    """Tests for prediction-vs-actual evaluation."""

    def test_metrics(self):
        result = evaluate_accuracy([110.0, 90.0], [100.0, 100.0])

        assert result["mean_absolute_error"] == 10.0
        assert result["mean_absolute_percentage_error"] == 10.0
        assert result["accuracy"] == 90.0
        assert (result["max_error"], result["min_error"]) == (10.0, 10.0)

    @pytest.mark.parametrize("predictions,actuals", [([], []), ([1.0], [1.0, 2.0])])
    def test_invalid_input(self, predictions, actuals):
        with pytest.raises(ValueError):
            evaluate_accuracy(predictions, actuals)

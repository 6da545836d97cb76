"""Financial analytics and forecasting engine."""

from .records import (
    Transaction,
    TransactionKind,
    BudgetRecord,
    BudgetPeriod,
    DebtPriority,
    DebtRecord,
    EmergencyFund,
    InvalidRecordError,
    validate_transaction,
    validate_transactions,
    validate_budget,
    validate_debt,
    validate_emergency_fund,
)
from .aggregator import MonthlyTotal, aggregate, monthly_totals, period_key
from .trend import TrendDirection, trend, seasonality, seasonal_factor
from .forecast import Prediction, AccuracyMetrics, ForecastResult, predict, predict_expenses
from .anomaly_detector import Anomaly, detect_anomalies
from .allocation import (
    AllocationEntry,
    AllocationResult,
    BudgetStatus,
    analyze_spending_and_savings,
    build_debt_plan,
    plan_allocation,
    recommend_savings,
)
from .cash_flow import (
    analyze_cash_flow,
    monthly_changes,
    simple_spending_analysis,
    spending_change_recommendations,
)
from .debt_analysis import analyze_debts, emergency_fund_status
from .data_utils import calculate_statistics, clean_transaction, clean_transactions, evaluate_accuracy

__all__ = [
    "Transaction",
    "TransactionKind",
    "BudgetRecord",
    "BudgetPeriod",
    "DebtPriority",
    "DebtRecord",
    "EmergencyFund",
    "InvalidRecordError",
    "validate_transaction",
    "validate_transactions",
    "validate_budget",
    "validate_debt",
    "validate_emergency_fund",
    "MonthlyTotal",
    "aggregate",
    "monthly_totals",
    "period_key",
    "TrendDirection",
    "trend",
    "seasonality",
    "seasonal_factor",
    "Prediction",
    "AccuracyMetrics",
    "ForecastResult",
    "predict",
    "predict_expenses",
    "Anomaly",
    "detect_anomalies",
    "AllocationEntry",
    "AllocationResult",
    "BudgetStatus",
    "analyze_spending_and_savings",
    "build_debt_plan",
    "plan_allocation",
    "recommend_savings",
    "analyze_cash_flow",
    "monthly_changes",
    "simple_spending_analysis",
    "spending_change_recommendations",
    "analyze_debts",
    "emergency_fund_status",
    "calculate_statistics",
    "clean_transaction",
    "clean_transactions",
    "evaluate_accuracy",
]

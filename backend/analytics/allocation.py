"""
Module: allocation.py
Description: Savings recommendation, debt waterfall and budget status.

Savings follow the 20 % / 10 % rule of thumb: recommend the ideal share of
income when disposable income covers it, the minimum share when only that is
covered, otherwise half of whatever is left over.

Debt repayment is a waterfall ordered by *declared* priority (not interest
rate): every minimum payment is allocated first, even when that drives the
remaining income negative, then any surplus goes to High-priority entries,
each capped at its own minimum payment.

Author: Finance Analytics Team
"""

from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from config import Settings, get_settings
from .observability import log_allocation_shortfall, logger, timed
from .records import (
    BudgetRecord,
    DebtPriority,
    Transaction,
    TransactionKind,
    clamp_percentage,
    round_money,
)


@dataclass
class AllocationEntry:
    category: str
    minimum_payment: float
    additional_payment: float
    priority: DebtPriority

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "minimum_payment": round_money(self.minimum_payment),
            "additional_payment": round_money(self.additional_payment),
            "priority": self.priority.value,
        }


@dataclass(frozen=True)
class BudgetStatus:
    budgeted: float
    spent: float
    remaining: float
    percentage_used: float  # Unclamped; use display_percentage for UI

    @property
    def display_percentage(self) -> float:
        return clamp_percentage(self.percentage_used)

    def to_dict(self) -> dict:
        return {k: round_money(v) for k, v in asdict(self).items()}


@dataclass
class AllocationResult:
    recommendations: List[dict] = field(default_factory=list)
    savings_recommendation: float = 0.0
    savings_goal_progress: float = 0.0
    debt_repayment_plan: List[AllocationEntry] = field(default_factory=list)
    remaining_income: float = 0.0
    budget_status: Dict[str, BudgetStatus] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "recommendations": list(self.recommendations),
            "savings_recommendation": round_money(self.savings_recommendation),
            "savings_goal_progress": round_money(self.savings_goal_progress),
            "debt_repayment_plan": [entry.to_dict() for entry in self.debt_repayment_plan],
            "remaining_income": round_money(self.remaining_income),
            "budget_status": {k: v.to_dict() for k, v in self.budget_status.items()},
        }


# =============================================================================
# Savings
# =============================================================================

def recommend_savings(
    disposable_income: float,
    total_income: float,
    settings: Optional[Settings] = None,
) -> float:
    """
    Recommended amount to save this period.

    Example:
        total_income=1000, disposable_income=150 -> ideal 200 is out of
        reach, minimum 100 is covered -> 100.
    """
    settings = settings or get_settings()
    ideal_savings = total_income * settings.ideal_savings_rate
    minimum_savings = total_income * settings.minimum_savings_rate

    if disposable_income >= ideal_savings:
        return ideal_savings
    elif disposable_income >= minimum_savings:
        return minimum_savings
    return max(0.0, disposable_income * settings.fallback_savings_share)


def savings_goal_progress(budgets: Sequence[BudgetRecord], disposable_income: float) -> float:
    """Share (0-100) of the combined savings goals covered by disposable income."""
    total_goal = sum(b.savings_goal for b in budgets)
    if total_goal <= 0:
        return 0.0
    return clamp_percentage(max(0.0, disposable_income) / total_goal * 100)


# =============================================================================
# Debt Waterfall
# =============================================================================

def build_debt_plan(
    budgets: Iterable[BudgetRecord],
    disposable_income: float,
) -> Tuple[List[AllocationEntry], float]:
    """
    Allocate disposable income across debt minimums, then extra to High priority.

    Returns:
        (plan, remaining_income). The plan is priority-descending and stable
        on input order for ties. Remaining income is negative when the
        minimums alone exceed disposable income; in that case no additional
        payments are made.
    """
    debts = [b for b in budgets if b.minimum_payment > 0]
    # sorted() is stable, so equal ranks keep input order
    debts = sorted(debts, key=lambda b: b.debt_priority.rank, reverse=True)

    remaining_income = disposable_income
    plan: List[AllocationEntry] = []
    for debt in debts:
        remaining_income -= debt.minimum_payment
        plan.append(AllocationEntry(
            category=debt.category,
            minimum_payment=debt.minimum_payment,
            additional_payment=0.0,
            priority=debt.debt_priority,
        ))

    if remaining_income > 0:
        for entry in plan:
            if remaining_income <= 0:
                break
            if entry.priority == DebtPriority.HIGH:
                additional = min(remaining_income, entry.minimum_payment)
                entry.additional_payment = additional
                remaining_income -= additional

    return plan, remaining_income


# =============================================================================
# Budget Status
# =============================================================================

def budget_status(
    transactions: Iterable[Transaction],
    budgets: Iterable[BudgetRecord],
) -> Tuple[Dict[str, BudgetStatus], List[dict]]:
    """
    Spending against each budget plus over-budget warnings.

    ``percentage_used`` is left unclamped so callers can see how far over a
    category is; it is 0 when the budgeted amount is 0.
    """
    spent_by_category: Dict[str, float] = defaultdict(float)
    for txn in transactions:
        if txn.is_expense:
            spent_by_category[txn.category] += txn.amount

    statuses: Dict[str, BudgetStatus] = {}
    warnings: List[dict] = []
    for budget in budgets:
        spent = spent_by_category.get(budget.category, 0.0)
        budgeted = budget.limit_amount
        statuses[budget.category] = BudgetStatus(
            budgeted=budgeted,
            spent=spent,
            remaining=budgeted - spent,
            percentage_used=(spent / budgeted * 100) if budgeted > 0 else 0.0,
        )

        if spent > budgeted:
            overage = spent - budgeted
            warnings.append({
                "type": "warning",
                "category": budget.category,
                "message": f"Over budget in {budget.category} by ${overage:.2f}",
                "action": "Reduce spending in this category",
                "severity": "warning",
            })
            logger.warning("Category over budget", category=budget.category, overage=f"${overage:.2f}")

    return statuses, warnings


# =============================================================================
# Entry Points
# =============================================================================

@timed("allocation.plan")
def plan_allocation(
    budgets: Iterable[BudgetRecord],
    disposable_income: float,
    total_income: float,
    transactions: Iterable[Transaction] = (),
    settings: Optional[Settings] = None,
) -> AllocationResult:
    """
    Build the full savings and debt plan for one snapshot.

    Args:
        budgets: Budget records (limits, savings goals, debt settings).
        disposable_income: Income minus expenses for the period.
        total_income: Gross income, the base for the savings rates.
        transactions: Optional snapshot used for budget status.
        settings: Override for the savings constants.
    """
    budgets = list(budgets)
    result = AllocationResult()

    result.budget_status, warnings = budget_status(transactions, budgets)
    result.recommendations.extend(warnings)

    result.savings_recommendation = recommend_savings(disposable_income, total_income, settings)
    if disposable_income > 0:
        result.recommendations.append({
            "type": "savings",
            "message": f"Consider saving ${result.savings_recommendation:.2f} this month",
            "detail": "Based on your disposable income",
            "priority": "high",
        })
    result.savings_goal_progress = savings_goal_progress(budgets, disposable_income)

    result.debt_repayment_plan, result.remaining_income = build_debt_plan(budgets, disposable_income)
    if result.remaining_income < 0 and result.debt_repayment_plan:
        shortfall = -result.remaining_income
        result.recommendations.append({
            "type": "shortfall",
            "message": f"Minimum debt payments exceed disposable income by ${shortfall:.2f}",
            "action": "Reduce expenses or renegotiate minimum payments",
            "severity": "critical",
        })
        log_allocation_shortfall(shortfall)

    logger.info(
        "Allocation planned",
        debts=len(result.debt_repayment_plan),
        remaining=f"{result.remaining_income:.2f}",
    )
    return result


def income_and_expenses(transactions: Iterable[Transaction]) -> Tuple[float, float]:
    """(total income, total expenses) of a snapshot."""
    income = expenses = 0.0
    for txn in transactions:
        if txn.kind == TransactionKind.INCOME:
            income += txn.amount
        else:
            expenses += txn.amount
    return income, expenses


def analyze_spending_and_savings(
    transactions: Iterable[Transaction],
    budgets: Iterable[BudgetRecord],
    settings: Optional[Settings] = None,
) -> AllocationResult:
    """Derive income figures from transactions, then plan the allocation."""
    snapshot = list(transactions)
    total_income, total_expenses = income_and_expenses(snapshot)
    return plan_allocation(
        budgets,
        disposable_income=total_income - total_expenses,
        total_income=total_income,
        transactions=snapshot,
        settings=settings,
    )

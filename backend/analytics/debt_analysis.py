"""
Module: debt_analysis.py
Description: Debt overview with avalanche recommendations, and emergency
fund progress.

Unlike the budget waterfall in allocation.py, which follows declared
priority, these recommendations rank debts by interest rate.

Author: Finance Analytics Team
"""

import math
from typing import Iterable, List, Optional

from .records import DebtRecord, EmergencyFund, clamp_percentage, round_money


HIGH_INTEREST_RATE = 20.0


def debt_recommendations(debts: List[DebtRecord]) -> List[dict]:
    """Avalanche-style advice: highest interest first."""
    recommendations = []
    by_interest = sorted(debts, key=lambda d: d.interest_rate, reverse=True)

    if by_interest:
        top = by_interest[0]
        recommendations.append({
            "type": "priority",
            "message": f"Focus on paying off {top.name} first with {top.interest_rate:g}% interest rate",
            "priority": "high",
        })

    total_minimum = sum(d.minimum_payment for d in by_interest)
    if total_minimum > 0:
        recommendations.append({
            "type": "minimum",
            "message": f"Ensure you can make the total minimum payment of ${total_minimum:.2f} per month",
            "priority": "high",
        })

    if any(d.interest_rate > HIGH_INTEREST_RATE for d in by_interest):
        recommendations.append({
            "type": "warning",
            "message": "Consider consolidating your high-interest debts",
            "priority": "medium",
        })

    return recommendations


def analyze_debts(debts: Iterable[DebtRecord]) -> dict:
    """Totals and recommendations for a set of debts."""
    debts = list(debts)
    return {
        "total_debt": round_money(sum(d.amount for d in debts)),
        "total_min_payment": round_money(sum(d.minimum_payment for d in debts)),
        "highest_interest": max((d.interest_rate for d in debts), default=0.0),
        "debt_count": len(debts),
        "recommendations": debt_recommendations(debts),
    }


def emergency_fund_status(fund: Optional[EmergencyFund]) -> dict:
    """
    Progress toward the emergency fund goal.

    ``months_to_goal`` is None when nothing is being contributed and the goal
    is not yet met.
    """
    fund = fund or EmergencyFund()
    remaining = max(0.0, fund.goal - fund.current)
    percent = clamp_percentage(fund.current / fund.goal * 100) if fund.goal > 0 else 0.0

    if remaining == 0:
        months_to_goal: Optional[int] = 0
    elif fund.monthly_contribution > 0:
        months_to_goal = math.ceil(remaining / fund.monthly_contribution)
    else:
        months_to_goal = None

    return {
        "goal": round_money(fund.goal),
        "current": round_money(fund.current),
        "monthly_contribution": round_money(fund.monthly_contribution),
        "remaining": round_money(remaining),
        "percent_complete": round(percent, 1),
        "months_to_goal": months_to_goal,
    }

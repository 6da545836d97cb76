"""
SQLAlchemy ORM models for the finance tracker.

Includes:
    - Transaction (income / expense entries)
    - Budget (category limits with savings goal and debt repayment settings)
    - Debt, EmergencyFund

Column names match the analytics record fields so rows can be validated
straight into engine records.

Author: Finance Analytics Team
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Index

from database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Transaction(Base):
    """A recorded income or expense."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String, nullable=False)  # income|expense
    amount = Column(Float, nullable=False)
    category = Column(String, nullable=False)
    occurred_at = Column(Date, nullable=False)
    description = Column(String, default="")
    created_at = Column(DateTime, default=_utcnow)

    __table_args__ = (
        Index('ix_transactions_category_date', 'category', 'occurred_at'),
    )


class Budget(Base):
    """Spending limit per category, with optional debt repayment terms."""
    __tablename__ = "budgets"

    id = Column(Integer, primary_key=True, index=True)
    category = Column(String, nullable=False, unique=True)
    limit_amount = Column(Float, nullable=False)
    period = Column(String, default="monthly")  # monthly|weekly
    savings_goal = Column(Float, default=0.0)
    debt_priority = Column(String, default="medium")  # high|medium|low
    minimum_payment = Column(Float, default=0.0)
    created_at = Column(DateTime, default=_utcnow)


class Debt(Base):
    __tablename__ = "debts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    interest_rate = Column(Float, nullable=False)
    minimum_payment = Column(Float, nullable=False)
    priority = Column(String, default="medium")
    created_at = Column(DateTime, default=_utcnow)


class EmergencyFund(Base):
    """Single-row emergency fund tracker."""
    __tablename__ = "emergency_funds"

    id = Column(Integer, primary_key=True)
    goal = Column(Float, nullable=False, default=0.0)
    current = Column(Float, nullable=False, default=0.0)
    monthly_contribution = Column(Float, nullable=False, default=0.0)
    last_updated = Column(DateTime, default=_utcnow, onupdate=_utcnow)

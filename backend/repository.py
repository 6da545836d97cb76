"""
Snapshot loading: ORM rows in, validated analytics records out.

This is the trust boundary. Rows that fail validation raise
InvalidRecordError with the row id rather than being skipped.
"""

from typing import List, Optional

from sqlalchemy.orm import Session as DBSession

import models
from analytics.observability import timed_block
from analytics.records import (
    BudgetRecord,
    DebtRecord,
    EmergencyFund,
    Transaction,
    validate_budget,
    validate_debt,
    validate_emergency_fund,
    validate_transactions,
)


def load_transactions(db: DBSession, kind: Optional[str] = None) -> List[Transaction]:
    """All transactions, newest first, optionally filtered by kind."""
    with timed_block("repository.load_transactions"):
        query = db.query(models.Transaction)
        if kind:
            query = query.filter(models.Transaction.kind == kind)
        rows = query.order_by(models.Transaction.occurred_at.desc(), models.Transaction.id).all()
    return validate_transactions(rows)


def load_budgets(db: DBSession) -> List[BudgetRecord]:
    rows = db.query(models.Budget).order_by(models.Budget.id).all()
    return [validate_budget(row) for row in rows]


def load_debts(db: DBSession) -> List[DebtRecord]:
    rows = db.query(models.Debt).order_by(models.Debt.interest_rate.desc()).all()
    return [validate_debt(row) for row in rows]


def load_emergency_fund(db: DBSession) -> Optional[EmergencyFund]:
    row = db.query(models.EmergencyFund).first()
    return validate_emergency_fund(row) if row else None

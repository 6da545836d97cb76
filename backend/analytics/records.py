"""
Module: records.py
Description: Validated, immutable record types consumed by the analytics engine.

Raw rows (ORM objects, request bodies, CSV dicts) are converted into these
types exactly once at the trust boundary. Everything downstream relies on the
guarantees below and never re-checks them:

    - amounts are finite, non-negative floats
    - categories are non-empty, stripped strings
    - dates are ``datetime.date`` values
    - enum fields are normalised to lower case

Author: Finance Analytics Team
"""

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Iterable, List, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, ValidationError, field_validator


# =============================================================================
# Errors
# =============================================================================

class InvalidRecordError(ValueError):
    """
    A raw record failed validation.

    Carries the record type and identity so callers can report exactly which
    row was rejected.
    """

    def __init__(self, record_type: str, record_id: Any, errors: List[str]):
        self.record_type = record_type
        self.record_id = record_id
        self.errors = errors
        detail = "; ".join(errors) if errors else "invalid record"
        super().__init__(f"Invalid {record_type} {record_id!r}: {detail}")


# =============================================================================
# Enumerations
# =============================================================================

class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class DebtPriority(str, Enum):
    """Declared repayment priority. Higher rank is paid first."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    DebtPriority.HIGH: 3,
    DebtPriority.MEDIUM: 2,
    DebtPriority.LOW: 1,
}


def _lower_enum_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


Kind = Annotated[TransactionKind, BeforeValidator(_lower_enum_value)]
Period = Annotated[BudgetPeriod, BeforeValidator(_lower_enum_value)]
Priority = Annotated[DebtPriority, BeforeValidator(_lower_enum_value)]


# =============================================================================
# Records
# =============================================================================

class Transaction(BaseModel):
    """A single income or expense entry."""
    id: Optional[Union[int, str]] = None
    kind: Kind
    amount: float = Field(ge=0, allow_inf_nan=False)
    category: str = Field(min_length=1)
    occurred_at: date
    description: Optional[str] = None

    class Config:
        frozen = True
        from_attributes = True
        str_strip_whitespace = True

    @field_validator("occurred_at", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
            except ValueError:
                raise ValueError(f"unparseable date {value!r}")
        return value

    @property
    def is_expense(self) -> bool:
        return self.kind == TransactionKind.EXPENSE


class BudgetRecord(BaseModel):
    """Spending limit for a category plus its debt-repayment settings."""
    category: str = Field(min_length=1)
    limit_amount: float = Field(ge=0, allow_inf_nan=False)
    period: Period = BudgetPeriod.MONTHLY
    savings_goal: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    debt_priority: Priority = DebtPriority.MEDIUM
    minimum_payment: float = Field(default=0.0, ge=0, allow_inf_nan=False)

    class Config:
        frozen = True
        from_attributes = True
        str_strip_whitespace = True


class DebtRecord(BaseModel):
    """An outstanding debt tracked for avalanche-style recommendations."""
    id: Optional[Union[int, str]] = None
    name: str = Field(min_length=1)
    amount: float = Field(ge=0, allow_inf_nan=False)
    interest_rate: float = Field(ge=0, allow_inf_nan=False)
    minimum_payment: float = Field(ge=0, allow_inf_nan=False)
    priority: Priority = DebtPriority.MEDIUM

    class Config:
        frozen = True
        from_attributes = True
        str_strip_whitespace = True


class EmergencyFund(BaseModel):
    goal: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    current: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    monthly_contribution: float = Field(default=0.0, ge=0, allow_inf_nan=False)

    class Config:
        frozen = True
        from_attributes = True


# =============================================================================
# Validation Entry Points
# =============================================================================

def _record_identity(raw: Any) -> Any:
    if isinstance(raw, dict):
        return raw.get("id", raw.get("_id", raw.get("category", raw.get("name"))))
    return getattr(raw, "id", None)


def _validate(model: type, record_type: str, raw: Any):
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in err['loc']) or record_type}: {err['msg']}"
            for err in exc.errors()
        ]
        raise InvalidRecordError(record_type, _record_identity(raw), errors) from exc


def validate_transaction(raw: Any) -> Transaction:
    """
    Validate one raw transaction.

    Raises:
        InvalidRecordError: On a non-numeric or negative amount, an
            unparseable date, an unknown kind or an empty category.
    """
    if isinstance(raw, Transaction):
        return raw
    return _validate(Transaction, "transaction", raw)


def validate_transactions(raws: Iterable[Any]) -> List[Transaction]:
    """Validate a batch; the first bad record aborts the whole batch."""
    return [validate_transaction(raw) for raw in raws]


def validate_budget(raw: Any) -> BudgetRecord:
    if isinstance(raw, BudgetRecord):
        return raw
    return _validate(BudgetRecord, "budget", raw)


def validate_debt(raw: Any) -> DebtRecord:
    if isinstance(raw, DebtRecord):
        return raw
    return _validate(DebtRecord, "debt", raw)


def validate_emergency_fund(raw: Any) -> EmergencyFund:
    if isinstance(raw, EmergencyFund):
        return raw
    return _validate(EmergencyFund, "emergency fund", raw)


# =============================================================================
# Boundary Helpers
# =============================================================================

def round_money(value: float) -> float:
    """Round a monetary value to cents for external output."""
    return round(float(value), 2)


def clamp_percentage(value: float) -> float:
    """Clamp a percentage into [0, 100] for display."""
    return max(0.0, min(100.0, float(value)))

"""Pydantic request/response schemas for type safety."""

from pydantic import BaseModel, Field
from datetime import date
from typing import Optional, Literal, Union


# =============================================================================
# Request Schemas
# =============================================================================

class TransactionCreate(BaseModel):
    kind: Literal["income", "expense"]
    amount: float = Field(ge=0, description="Non-negative amount")
    category: str = Field(min_length=1)
    occurred_at: date
    description: Optional[str] = ""


class BudgetCreate(BaseModel):
    category: str = Field(min_length=1)
    limit_amount: float = Field(ge=0)
    period: Literal["monthly", "weekly"] = "monthly"
    savings_goal: float = Field(default=0.0, ge=0)
    debt_priority: Literal["high", "medium", "low"] = "medium"
    minimum_payment: float = Field(default=0.0, ge=0)


class DebtCreate(BaseModel):
    name: str = Field(min_length=1)
    amount: float = Field(ge=0)
    interest_rate: float = Field(ge=0)
    minimum_payment: float = Field(ge=0)
    priority: Literal["high", "medium", "low"] = "medium"


class EmergencyFundUpdate(BaseModel):
    goal: float = Field(ge=0)
    current: float = Field(ge=0)
    monthly_contribution: float = Field(ge=0)


class RawTransaction(BaseModel):
    """Loosely-typed transaction submitted for cleaning."""
    id: Optional[Union[int, str]] = None
    type: Optional[str] = None
    amount: Optional[Union[float, str]] = None
    category: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None


class AccuracyRequest(BaseModel):
    predictions: list[float]
    actuals: list[float]


# =============================================================================
# Response Schemas
# =============================================================================

class TransactionOut(BaseModel):
    id: int
    kind: str
    amount: float
    category: str
    occurred_at: date
    description: Optional[str] = None

    class Config:
        from_attributes = True


class BudgetOut(BaseModel):
    id: int
    category: str
    limit_amount: float
    period: str
    savings_goal: float
    debt_priority: str
    minimum_payment: float

    class Config:
        from_attributes = True


class DebtOut(BaseModel):
    id: int
    name: str
    amount: float
    interest_rate: float
    minimum_payment: float
    priority: str

    class Config:
        from_attributes = True


class EmergencyFundOut(BaseModel):
    goal: float
    current: float
    monthly_contribution: float

    class Config:
        from_attributes = True


class PredictionOut(BaseModel):
    category: str
    amount: float
    trend_direction: Literal["increasing", "decreasing", "stable"]
    confidence: int = Field(ge=0, le=100)
    seasonal_factor: float


class AccuracyOut(BaseModel):
    mape: float
    rmse: float
    confidence: int = Field(ge=0, le=100)


class ForecastResponse(BaseModel):
    predictions: dict[str, PredictionOut]
    accuracy: dict[str, AccuracyOut]


class AnomalyOut(BaseModel):
    transaction: TransactionOut
    category: str
    z_score: float
    expected_amount: float
    deviation: float
    severity: Literal["low", "medium", "high"]
    explanation: str


class AllocationEntryOut(BaseModel):
    category: str
    minimum_payment: float
    additional_payment: float
    priority: Literal["high", "medium", "low"]


class BudgetStatusOut(BaseModel):
    budgeted: float
    spent: float
    remaining: float
    percentage_used: float


class BudgetAnalysisResponse(BaseModel):
    recommendations: list[dict]
    savings_recommendation: float
    savings_goal_progress: float
    debt_repayment_plan: list[AllocationEntryOut]
    remaining_income: float
    budget_status: dict[str, BudgetStatusOut]


class DebtAnalysisResponse(BaseModel):
    total_debt: float
    total_min_payment: float
    highest_interest: float
    debt_count: int
    recommendations: list[dict]


class EmergencyFundStatus(BaseModel):
    goal: float
    current: float
    monthly_contribution: float
    remaining: float
    percent_complete: float
    months_to_goal: Optional[int] = None


class CashFlowMonth(BaseModel):
    month: str
    income: float
    expenses: float
    net_flow: float
    savings_rate: float


class HealthResponse(BaseModel):
    status: str
    database: str

"""
Module: main.py
Description: FastAPI application exposing the finance analytics engine.

This module provides REST API endpoints for:
    - Recording transactions, budgets, debts and the emergency fund
    - Expense forecasting per category
    - Per-category anomaly detection
    - Savings recommendation and debt repayment planning
    - Cash flow, spending-change and descriptive statistics reports

Storage is a thin SQLAlchemy layer; every analytics endpoint loads a
snapshot through repository.py and hands it to the pure engine functions.

Author: Finance Analytics Team

Usage:
    uvicorn main:app --reload --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager
from datetime import date
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

import models
import repository
from analytics import (
    InvalidRecordError,
    analyze_cash_flow,
    analyze_debts,
    analyze_spending_and_savings,
    calculate_statistics,
    clean_transaction,
    clean_transactions,
    detect_anomalies,
    emergency_fund_status,
    evaluate_accuracy,
    monthly_changes,
    predict_expenses,
    simple_spending_analysis,
    spending_change_recommendations,
)
from analytics.observability import logger, metrics
from config import get_settings
from database import get_db, init_db
from schemas import (
    TransactionCreate, TransactionOut, BudgetCreate, BudgetOut,
    DebtCreate, DebtOut, EmergencyFundUpdate, EmergencyFundOut,
    RawTransaction, AccuracyRequest,
    ForecastResponse, AnomalyOut, BudgetAnalysisResponse,
    DebtAnalysisResponse, EmergencyFundStatus, CashFlowMonth,
    HealthResponse,
)


# =============================================================================
# Application Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    logger.info("Starting finance analytics API")
    init_db()
    yield
    logger.info("Shutting down finance analytics API")


app = FastAPI(
    title="Finance Analytics API",
    description="""
    Personal finance tracking with an analytics engine.

    ## Features
    - Weighted moving-average expense forecasts with trend and seasonality
    - Z-score anomaly detection per category
    - Savings recommendation and priority-ordered debt repayment plan
    - Cash flow and spending-change reports
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidRecordError)
async def invalid_record_handler(request: Request, exc: InvalidRecordError) -> JSONResponse:
    """Surface validation failures with the offending record's identity."""
    logger.warning("Invalid record", path=request.url.path, record=exc.record_id, errors=len(exc.errors))
    metrics.increment("records.invalid", tags={"type": exc.record_type})
    return JSONResponse(
        status_code=422,
        content={
            "detail": str(exc),
            "record_type": exc.record_type,
            "record_id": exc.record_id,
            "errors": exc.errors,
        },
    )


# =============================================================================
# System Endpoints
# =============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(db: DBSession = Depends(get_db)) -> HealthResponse:
    """Check API and database connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e))
        db_status = f"error: {e}"

    return HealthResponse(
        status="healthy" if db_status == "connected" else "degraded",
        database=db_status,
    )


@app.get("/metrics", tags=["System"])
async def get_metrics():
    """Counters, gauges and timing statistics collected since startup."""
    return metrics.get_summary()


# =============================================================================
# Records
# =============================================================================

@app.post("/transactions", response_model=TransactionOut, status_code=status.HTTP_201_CREATED, tags=["Records"])
async def create_transaction(payload: TransactionCreate, db: DBSession = Depends(get_db)):
    txn = models.Transaction(**payload.model_dump())
    db.add(txn)
    db.commit()
    db.refresh(txn)
    return txn


@app.get("/transactions", response_model=list[TransactionOut], tags=["Records"])
async def list_transactions(kind: Optional[str] = None, db: DBSession = Depends(get_db)):
    query = db.query(models.Transaction)
    if kind:
        query = query.filter(models.Transaction.kind == kind)
    return query.order_by(models.Transaction.occurred_at.desc()).all()


@app.post("/budgets", response_model=BudgetOut, status_code=status.HTTP_201_CREATED, tags=["Records"])
async def create_budget(payload: BudgetCreate, db: DBSession = Depends(get_db)):
    existing = db.query(models.Budget).filter(models.Budget.category == payload.category).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Budget for {payload.category} already exists."
        )
    budget = models.Budget(**payload.model_dump())
    db.add(budget)
    db.commit()
    db.refresh(budget)
    return budget


@app.get("/budgets", response_model=list[BudgetOut], tags=["Records"])
async def list_budgets(db: DBSession = Depends(get_db)):
    return db.query(models.Budget).order_by(models.Budget.id).all()


@app.put("/budgets/{budget_id}", response_model=BudgetOut, tags=["Records"])
async def update_budget(budget_id: int, payload: BudgetCreate, db: DBSession = Depends(get_db)):
    budget = db.query(models.Budget).filter(models.Budget.id == budget_id).first()
    if budget is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")

    clash = (
        db.query(models.Budget)
        .filter(models.Budget.category == payload.category, models.Budget.id != budget_id)
        .first()
    )
    if clash:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Budget for {payload.category} already exists."
        )

    for field, value in payload.model_dump().items():
        setattr(budget, field, value)
    db.commit()
    db.refresh(budget)
    return budget


@app.delete("/budgets/{budget_id}", tags=["Records"])
async def delete_budget(budget_id: int, db: DBSession = Depends(get_db)):
    budget = db.query(models.Budget).filter(models.Budget.id == budget_id).first()
    if budget is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
    db.delete(budget)
    db.commit()
    return {"message": "Budget deleted"}


@app.post("/debts", response_model=DebtOut, status_code=status.HTTP_201_CREATED, tags=["Records"])
async def create_debt(payload: DebtCreate, db: DBSession = Depends(get_db)):
    debt = models.Debt(**payload.model_dump())
    db.add(debt)
    db.commit()
    db.refresh(debt)
    return debt


@app.get("/debts", response_model=list[DebtOut], tags=["Records"])
async def list_debts(db: DBSession = Depends(get_db)):
    return db.query(models.Debt).order_by(models.Debt.interest_rate.desc()).all()


@app.put("/debts/{debt_id}", response_model=DebtOut, tags=["Records"])
async def update_debt(debt_id: int, payload: DebtCreate, db: DBSession = Depends(get_db)):
    debt = db.query(models.Debt).filter(models.Debt.id == debt_id).first()
    if debt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Debt not found")
    for field, value in payload.model_dump().items():
        setattr(debt, field, value)
    db.commit()
    db.refresh(debt)
    return debt


@app.delete("/debts/{debt_id}", tags=["Records"])
async def delete_debt(debt_id: int, db: DBSession = Depends(get_db)):
    debt = db.query(models.Debt).filter(models.Debt.id == debt_id).first()
    if debt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Debt not found")
    db.delete(debt)
    db.commit()
    return {"message": "Debt deleted"}


@app.get("/emergency-fund", response_model=EmergencyFundOut, tags=["Records"])
async def get_emergency_fund(db: DBSession = Depends(get_db)):
    fund = db.query(models.EmergencyFund).first()
    if fund is None:
        return EmergencyFundOut(goal=0, current=0, monthly_contribution=0)
    return fund


@app.put("/emergency-fund", response_model=EmergencyFundOut, tags=["Records"])
async def update_emergency_fund(payload: EmergencyFundUpdate, db: DBSession = Depends(get_db)):
    fund = db.query(models.EmergencyFund).first()
    if fund is None:
        fund = models.EmergencyFund(**payload.model_dump())
        db.add(fund)
    else:
        for field, value in payload.model_dump().items():
            setattr(fund, field, value)
    db.commit()
    db.refresh(fund)
    return fund


# =============================================================================
# Forecasting & Anomalies
# =============================================================================

@app.get("/predictions/expenses", response_model=ForecastResponse, tags=["Analytics"])
async def get_expense_predictions(as_of: Optional[date] = None, db: DBSession = Depends(get_db)):
    """
    Next-month spending prediction per category.

    Args:
        as_of: Reference date; seasonality is taken for the following month.
    """
    transactions = repository.load_transactions(db, kind="expense")
    return predict_expenses(transactions, as_of=as_of).to_dict()


@app.get("/predictions/anomalies", response_model=list[AnomalyOut], tags=["Analytics"])
async def get_anomalies(db: DBSession = Depends(get_db)):
    """Transactions more than two standard deviations from their category mean."""
    transactions = repository.load_transactions(db)
    return [anomaly.to_dict() for anomaly in detect_anomalies(transactions)]


# =============================================================================
# Planning
# =============================================================================

@app.get("/budgets/analysis", response_model=BudgetAnalysisResponse, tags=["Planning"])
async def get_budget_analysis(db: DBSession = Depends(get_db)):
    """Budget status, savings recommendation and debt repayment plan."""
    transactions = repository.load_transactions(db)
    budgets = repository.load_budgets(db)
    return analyze_spending_and_savings(transactions, budgets).to_dict()


@app.get("/debts/analysis", response_model=DebtAnalysisResponse, tags=["Planning"])
async def get_debt_analysis(db: DBSession = Depends(get_db)):
    return analyze_debts(repository.load_debts(db))


@app.get("/emergency-fund/status", response_model=EmergencyFundStatus, tags=["Planning"])
async def get_emergency_fund_status(db: DBSession = Depends(get_db)):
    return emergency_fund_status(repository.load_emergency_fund(db))


# =============================================================================
# Reports
# =============================================================================

@app.get("/analytics/cash-flow", response_model=list[CashFlowMonth], tags=["Reports"])
async def get_cash_flow(db: DBSession = Depends(get_db)):
    return analyze_cash_flow(repository.load_transactions(db))


@app.get("/analytics/spending-changes", tags=["Reports"])
async def get_spending_changes(db: DBSession = Depends(get_db)):
    """Budget suggestions for categories whose spending is new or rising."""
    return spending_change_recommendations(repository.load_transactions(db, kind="expense"))


@app.get("/analytics/trends", tags=["Reports"])
async def get_monthly_trends(db: DBSession = Depends(get_db)):
    """Month-over-month percentage changes, overall and per category."""
    return monthly_changes(repository.load_transactions(db, kind="expense"))


@app.get("/analytics/analysis", tags=["Reports"])
async def get_spending_analysis(db: DBSession = Depends(get_db)):
    """Recent-average predictions, monthly trends and 1.5x-average flags."""
    return simple_spending_analysis(repository.load_transactions(db))


@app.get("/data-analysis/statistics", tags=["Reports"])
async def get_statistics(db: DBSession = Depends(get_db)):
    return calculate_statistics(repository.load_transactions(db))


@app.post("/data-analysis/clean", tags=["Reports"])
async def clean_raw_transaction(payload: RawTransaction):
    """
    Clean and validate a raw transaction without storing it.

    Raises:
        422 with the record id when the amount or date cannot be parsed.
    """
    return clean_transaction(payload.model_dump()).model_dump(mode="json")


@app.post("/data-analysis/clean-batch", tags=["Reports"])
async def clean_raw_transactions(payload: list[RawTransaction]):
    """Clean a batch; the first row that cannot be cleaned rejects the batch."""
    cleaned = clean_transactions(row.model_dump() for row in payload)
    return [txn.model_dump(mode="json") for txn in cleaned]


@app.post("/data-analysis/accuracy", tags=["Reports"])
async def get_accuracy(payload: AccuracyRequest):
    try:
        return evaluate_accuracy(payload.predictions, payload.actuals)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

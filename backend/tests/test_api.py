"""
Test Module: test_api.py
Description: End-to-end tests of the FastAPI endpoints against an in-memory
SQLite database.

Author: Finance Analytics Team
"""

import pytest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

import models  # noqa: F401
from analytics.observability import metrics
from database import Base, engine
from main import app


@pytest.fixture
def client():
    """Fresh schema per test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    metrics.reset()
    with TestClient(app) as test_client:
        yield test_client


def add_txn(client, amount, category="Food", occurred_at="2024-03-15", kind="expense", description=""):
    response = client.post("/transactions", json={
        "kind": kind,
        "amount": amount,
        "category": category,
        "occurred_at": occurred_at,
        "description": description,
    })
    assert response.status_code == 201
    return response.json()


# =============================================================================
# System & Records
# =============================================================================

class TestSystem:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}

    def test_metrics_record_engine_timings(self, client):
        add_txn(client, 10.0)
        client.get("/predictions/expenses", params={"as_of": "2024-03-20"})

        summary = client.get("/metrics").json()
        assert "forecast.predict_expenses" in summary["timings"]
        assert summary["counters"]["forecast.predict_expenses.success"] == 1


class TestRecords:

    def test_create_and_list_transactions(self, client):
        created = add_txn(client, 12.5, description="lunch")
        add_txn(client, 3000.0, category="Salary", kind="income", occurred_at="2024-03-01")

        assert created["id"] > 0
        assert created["kind"] == "expense"
        assert len(client.get("/transactions").json()) == 2
        assert [t["category"] for t in client.get("/transactions", params={"kind": "income"}).json()] == ["Salary"]

    def test_negative_amount_rejected(self, client):
        response = client.post("/transactions", json={
            "kind": "expense", "amount": -1, "category": "Food", "occurred_at": "2024-03-15",
        })
        assert response.status_code == 422

    def test_duplicate_budget_conflict(self, client):
        payload = {"category": "Food", "limit_amount": 300}
        assert client.post("/budgets", json=payload).status_code == 201
        assert client.post("/budgets", json=payload).status_code == 409

    def test_update_and_delete_budget(self, client):
        food = client.post("/budgets", json={"category": "Food", "limit_amount": 300}).json()
        client.post("/budgets", json={"category": "Housing", "limit_amount": 1200})

        updated = client.put(f"/budgets/{food['id']}", json={"category": "Food", "limit_amount": 450})
        assert updated.status_code == 200
        assert updated.json()["limit_amount"] == 450.0

        renamed = client.put(f"/budgets/{food['id']}", json={"category": "Housing", "limit_amount": 450})
        assert renamed.status_code == 409

        assert client.delete(f"/budgets/{food['id']}").json() == {"message": "Budget deleted"}
        assert [b["category"] for b in client.get("/budgets").json()] == ["Housing"]

    def test_missing_budget_is_404(self, client):
        assert client.put("/budgets/999", json={"category": "Food", "limit_amount": 1}).status_code == 404
        assert client.delete("/budgets/999").status_code == 404

    def test_update_and_delete_debt(self, client):
        debt = client.post("/debts", json={
            "name": "Card", "amount": 5000, "interest_rate": 24.99, "minimum_payment": 150,
        }).json()

        updated = client.put(f"/debts/{debt['id']}", json={
            "name": "Card", "amount": 4200, "interest_rate": 24.99, "minimum_payment": 150,
        })
        assert updated.json()["amount"] == 4200.0

        assert client.delete(f"/debts/{debt['id']}").json() == {"message": "Debt deleted"}
        assert client.get("/debts").json() == []
        assert client.delete(f"/debts/{debt['id']}").status_code == 404
        assert client.put("/debts/999", json={
            "name": "X", "amount": 1, "interest_rate": 1, "minimum_payment": 1,
        }).status_code == 404

    def test_emergency_fund_upsert(self, client):
        assert client.get("/emergency-fund").json()["goal"] == 0

        fund = {"goal": 1000, "current": 250, "monthly_contribution": 100}
        assert client.put("/emergency-fund", json=fund).json() == fund
        fund["current"] = 400
        client.put("/emergency-fund", json=fund)

        status = client.get("/emergency-fund/status").json()
        assert status["remaining"] == 600.0
        assert status["months_to_goal"] == 6


# =============================================================================
# Analytics
# =============================================================================

class TestAnalytics:

    def test_expense_forecast(self, client):
        add_txn(client, 100.0, occurred_at="2024-01-10")
        add_txn(client, 50.0, occurred_at="2024-02-10")
        add_txn(client, 200.0, occurred_at="2024-03-10")
        add_txn(client, 4000.0, category="Salary", kind="income", occurred_at="2024-03-01")

        body = client.get("/predictions/expenses", params={"as_of": "2024-03-20"}).json()

        assert list(body["predictions"]) == ["Food"]
        food = body["predictions"]["Food"]
        assert food["amount"] == pytest.approx(42.5)
        assert food["trend_direction"] == "decreasing"
        assert 0 <= body["accuracy"]["Food"]["confidence"] <= 100

    def test_anomalies(self, client):
        for _ in range(9):
            add_txn(client, 10.0, category="Dining")
        spike = add_txn(client, 100.0, category="Dining", description="ANNIVERSARY DINNER")

        anomalies = client.get("/predictions/anomalies").json()

        assert len(anomalies) == 1
        assert anomalies[0]["transaction"]["id"] == spike["id"]
        assert anomalies[0]["z_score"] == pytest.approx(3.0)

    def test_budget_analysis(self, client):
        add_txn(client, 1000.0, category="Salary", kind="income")
        add_txn(client, 850.0, category="Food")
        client.post("/budgets", json={"category": "Food", "limit_amount": 800})
        client.post("/budgets", json={
            "category": "Loans", "limit_amount": 0, "minimum_payment": 100, "debt_priority": "high",
        })

        body = client.get("/budgets/analysis").json()

        assert body["savings_recommendation"] == 100.0
        assert body["debt_repayment_plan"] == [{
            "category": "Loans", "minimum_payment": 100.0, "additional_payment": 50.0, "priority": "high",
        }]
        assert body["remaining_income"] == 0.0
        assert body["budget_status"]["Food"]["spent"] == 850.0
        assert any(r["type"] == "warning" and r["category"] == "Food" for r in body["recommendations"])

    def test_debt_analysis(self, client):
        client.post("/debts", json={"name": "Card", "amount": 5000, "interest_rate": 24.99, "minimum_payment": 150})
        client.post("/debts", json={"name": "Car", "amount": 12000, "interest_rate": 6.5, "minimum_payment": 300})

        body = client.get("/debts/analysis").json()

        assert body["debt_count"] == 2
        assert body["total_min_payment"] == 450.0
        assert [d["name"] for d in client.get("/debts").json()] == ["Card", "Car"]

    def test_reports(self, client):
        add_txn(client, 3000.0, category="Salary", kind="income", occurred_at="2024-01-01")
        add_txn(client, 1000.0, occurred_at="2024-01-05")
        add_txn(client, 500.0, occurred_at="2024-02-05")

        flow = client.get("/analytics/cash-flow").json()
        assert flow[0]["net_flow"] == 2000.0

        trends = client.get("/analytics/trends").json()
        assert trends["2024-02"]["total"] == -50.0

        stats = client.get("/data-analysis/statistics").json()
        assert stats["count"] == 3

        assert isinstance(client.get("/analytics/spending-changes").json(), list)

    def test_simple_analysis(self, client):
        add_txn(client, 150.01, occurred_at="2024-02-01")
        for day in ("2024-03-01", "2024-03-02", "2024-03-03"):
            add_txn(client, 100.0, occurred_at=day)

        body = client.get("/analytics/analysis").json()

        assert body["predictions"]["next_month"] == {"Food": 100.0}
        assert [a["amount"] for a in body["anomalies"]] == [150.01]
        assert body["trends"]["monthly"]["2024-03"]["total"] == 300.0


# =============================================================================
# Data Analysis
# =============================================================================

class TestDataAnalysis:

    def test_clean_transaction(self, client):
        response = client.post("/data-analysis/clean", json={
            "id": "x1", "type": "expense", "amount": "19.999", "category": "groceries", "date": "2024-05-02",
        })

        assert response.status_code == 200
        assert response.json()["category"] == "Food"
        assert response.json()["amount"] == 20.0

    def test_invalid_record_names_the_row(self, client):
        response = client.post("/data-analysis/clean", json={
            "id": "x2", "type": "expense", "amount": "n/a", "category": "Food", "date": "2024-05-02",
        })

        assert response.status_code == 422
        body = response.json()
        assert body["record_id"] == "x2"
        assert body["record_type"] == "transaction"

    def test_clean_batch(self, client):
        rows = [
            {"id": 1, "type": "expense", "amount": "10", "category": "rent", "date": "2024-05-01"},
            {"id": 2, "type": "income", "amount": 2500, "category": "Salary", "date": "2024-05-01"},
        ]
        response = client.post("/data-analysis/clean-batch", json=rows)

        assert response.status_code == 200
        assert [t["category"] for t in response.json()] == ["Housing", "Salary"]

    def test_clean_batch_rejects_on_first_bad_row(self, client):
        rows = [
            {"id": 1, "type": "expense", "amount": "10", "category": "Food", "date": "2024-05-01"},
            {"id": 2, "type": "expense", "amount": "ten", "category": "Food", "date": "2024-05-01"},
        ]
        response = client.post("/data-analysis/clean-batch", json=rows)

        assert response.status_code == 422
        assert response.json()["record_id"] == 2

    def test_accuracy(self, client):
        ok = client.post("/data-analysis/accuracy", json={"predictions": [110, 90], "actuals": [100, 100]})
        assert ok.json()["accuracy"] == 90.0

        bad = client.post("/data-analysis/accuracy", json={"predictions": [1], "actuals": []})
        assert bad.status_code == 400

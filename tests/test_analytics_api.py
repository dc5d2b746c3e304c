"""
Endpoint tests for /analytics: access control, parameter validation and
response shape against the seeded database.
"""

from datetime import date

import pytest

from roomledger.extensions import db
from roomledger.models import Expense, Payment
from roomledger.services.analytics import load_dataset, load_previous_period

API = "/api/v1"

ENDPOINTS = [
    ("financial", "total_revenue"),
    ("financial/forecast", "predicted_revenue"),
    ("financial/roi", "property_roi"),
    ("financial/profit-loss", "monthly_profit_loss"),
    ("financial/cash-flow", "cash_flow_projection"),
    ("occupancy", "current_occupancy_rate"),
    ("occupancy/seasonal", "seasonal_trends"),
    ("occupancy/forecast", "vacancy_risk"),
    ("occupancy/market", "market_position"),
    ("maintenance", "total_requests"),
    ("maintenance/costs", "category_breakdown"),
    ("maintenance/vendors", "vendor_metrics"),
    ("maintenance/predictive", "equipment_lifecycle"),
    ("maintenance/efficiency", "response_time_metrics"),
    ("dashboard", "occupancy"),
]


@pytest.mark.parametrize("path,key", ENDPOINTS)
def test_admin_gets_analytics(client, admin_headers, path, key):
    resp = client.get(f"{API}/analytics/{path}", headers=admin_headers)
    assert resp.status_code == 200
    assert key in resp.get_json()["data"]


@pytest.mark.parametrize("path,_key", ENDPOINTS)
def test_renter_is_forbidden(client, renter_headers, path, _key):
    assert client.get(f"{API}/analytics/{path}", headers=renter_headers).status_code == 403


class TestParameters:
    def test_months_range(self, client, admin_headers):
        assert client.get(f"{API}/analytics/financial?months=0", headers=admin_headers).status_code == 400
        assert client.get(f"{API}/analytics/financial?months=61", headers=admin_headers).status_code == 400
        assert client.get(f"{API}/analytics/financial?months=abc", headers=admin_headers).status_code == 400

    def test_unknown_property(self, client, admin_headers):
        assert client.get(f"{API}/analytics/occupancy?property_id=999", headers=admin_headers).status_code == 404

    def test_forecast_months(self, client, admin_headers):
        resp = client.get(f"{API}/analytics/financial/forecast?forecast_months=6", headers=admin_headers)
        assert len(resp.get_json()["data"]["months"]) == 6
        bad = client.get(f"{API}/analytics/financial/forecast?forecast_months=25", headers=admin_headers)
        assert bad.status_code == 400


class TestFigures:
    def test_occupancy_from_seed(self, client, seed, admin_headers):
        data = client.get(f"{API}/analytics/occupancy", headers=admin_headers).get_json()["data"]

        assert data["total_units"] == 2
        assert data["occupied_units"] == 1
        assert data["current_occupancy_rate"] == 50.0

    def test_financial_counts_paid_payments_only(self, client, seed, admin_headers):
        for status in ("PAID", "PENDING"):
            client.post(f"{API}/payments", headers=admin_headers, json={
                "contract_id": seed.contract.id, "amount": 1000,
                "due_date": seed.today.isoformat(), "status": status,
            })
        client.post(f"{API}/expenses", headers=admin_headers, json={
            "property_id": seed.property.id, "category": "UTILITIES", "amount": 250,
            "description": "Electricity", "date": seed.today.isoformat(),
        })

        data = client.get(f"{API}/analytics/financial", headers=admin_headers).get_json()["data"]

        assert data["total_revenue"] == 1000.0
        assert data["total_expenses"] == 250.0
        assert data["net_profit"] == 750.0
        assert data["profit_margin"] == 75.0
        assert data["period"]["end"] == seed.today.isoformat()


class TestWindows:
    def test_previous_period_ends_before_current_starts(self, seed):
        today = date(2024, 6, 15)
        boundary, day_before = date(2024, 3, 15), date(2024, 3, 14)
        for day, amount in ((boundary, 700), (day_before, 300)):
            db.session.add(Payment(contract_id=seed.contract.id, amount=amount, due_date=day, status="PAID"))
            db.session.add(Expense(property_id=seed.property.id, category="UTILITIES", amount=amount,
                                   description="Water", date=day))
        db.session.commit()

        current = load_dataset(months=3, today=today)
        prev_payments, prev_expenses = load_previous_period(months=3, today=today)

        assert current.start == boundary
        assert [p.amount for p in current.payments] == [700]
        assert [e.amount for e in current.expenses] == [700]
        assert [p.amount for p in prev_payments] == [300]
        assert [e.amount for e in prev_expenses] == [300]

    def test_previous_period_covers_same_length(self, seed):
        db.session.add(Payment(contract_id=seed.contract.id, amount=50, due_date=date(2023, 12, 15)))
        db.session.add(Payment(contract_id=seed.contract.id, amount=60, due_date=date(2023, 12, 14)))
        db.session.commit()

        prev_payments, _ = load_previous_period(months=3, today=date(2024, 6, 15))

        assert [p.amount for p in prev_payments] == [50]

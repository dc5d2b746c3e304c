"""
Tests for expenses and the financial/occupancy/maintenance reports.
"""

import csv
import io
from datetime import timedelta

API = "/api/v1"


def _expense(client, headers, property_id, category, amount, day, **extra):
    payload = {
        "property_id": property_id,
        "category": category,
        "amount": amount,
        "description": f"{category.title()} bill",
        "date": day.isoformat(),
    }
    payload.update(extra)
    return client.post(f"{API}/expenses", headers=headers, json=payload)


class TestExpenses:
    def test_create_expense(self, client, seed, admin_headers):
        resp = _expense(client, admin_headers, seed.property.id, "maintenance", 120, seed.today,
                        subcategory="plumbing", vendor="AquaFix")

        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["category"] == "MAINTENANCE"
        assert data["subcategory"] == "PLUMBING"
        assert data["property"]["name"] == "Sunrise House"

    def test_invalid_category(self, client, seed, admin_headers):
        resp = _expense(client, admin_headers, seed.property.id, "CATERING", 50, seed.today)
        assert resp.status_code == 400

    def test_summary_groups_by_category(self, client, seed, admin_headers):
        _expense(client, admin_headers, seed.property.id, "MAINTENANCE", 100, seed.today)
        _expense(client, admin_headers, seed.property.id, "MAINTENANCE", 50, seed.today)
        _expense(client, admin_headers, seed.property.id, "UTILITIES", 75, seed.today)

        data = client.get(f"{API}/expenses/summary", headers=admin_headers).get_json()["data"]

        by_category = {row["category"]: row for row in data["summary"]}
        assert by_category["MAINTENANCE"]["totalAmount"] == 150.0
        assert by_category["MAINTENANCE"]["count"] == 2
        assert by_category["UTILITIES"]["totalAmount"] == 75.0
        assert data["totals"] == {"totalAmount": 225.0, "totalCount": 3, "averageAmount": 75.0}

    def test_recurring_listing(self, client, seed, admin_headers):
        _expense(client, admin_headers, seed.property.id, "UTILITIES", 75, seed.today,
                 is_recurring=True, recurring_frequency="monthly")
        _expense(client, admin_headers, seed.property.id, "SUPPLIES", 20, seed.today)

        data = client.get(f"{API}/expenses/recurring", headers=admin_headers).get_json()["data"]
        assert [e["recurring_frequency"] for e in data] == ["MONTHLY"]

    def test_date_filter(self, client, seed, admin_headers):
        _expense(client, admin_headers, seed.property.id, "TAXES", 900, seed.today - timedelta(days=40))
        _expense(client, admin_headers, seed.property.id, "TAXES", 100, seed.today)

        start = (seed.today - timedelta(days=7)).isoformat()
        body = client.get(f"{API}/expenses?start_date={start}", headers=admin_headers).get_json()
        assert [e["amount"] for e in body["data"]] == [100.0]

    def test_renter_forbidden(self, client, renter_headers):
        assert client.get(f"{API}/expenses", headers=renter_headers).status_code == 403


class TestReports:
    def test_report_types(self, client, admin_headers):
        data = client.get(f"{API}/reports/types", headers=admin_headers).get_json()["data"]
        assert [t["id"] for t in data] == ["financial", "occupancy", "maintenance"]

    def test_financial_report(self, client, seed, admin_headers):
        client.post(f"{API}/payments", headers=admin_headers, json={
            "contract_id": seed.contract.id, "amount": 1000, "due_date": seed.today.isoformat(), "status": "PAID",
        })
        _expense(client, admin_headers, seed.property.id, "MAINTENANCE", 200, seed.today)

        data = client.get(f"{API}/reports/financial", headers=admin_headers).get_json()["data"]

        assert data["summary"] == {
            "total_income": 1000.0,
            "total_expenses": 200.0,
            "net_profit": 800.0,
            "profit_margin": "80.00",
        }
        assert data["income_by_property"][0]["income"] == 1000.0
        assert data["period"]["end_date"] == seed.today.isoformat()

    def test_financial_report_as_csv(self, client, seed, admin_headers):
        _expense(client, admin_headers, seed.property.id, "UTILITIES", 60, seed.today)

        resp = client.get(f"{API}/reports/financial?format=csv", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert "attachment" in resp.headers["Content-Disposition"]
        rows = list(csv.reader(io.StringIO(resp.get_data(as_text=True))))
        assert rows[0] == ["section", "name", "amount"]
        assert ["expense", "UTILITIES", "60.0"] in rows

    def test_occupancy_report(self, client, seed, admin_headers):
        data = client.get(f"{API}/reports/occupancy", headers=admin_headers).get_json()["data"]

        assert data["summary"]["total_rooms"] == 2
        assert data["summary"]["occupied_rooms"] == 1
        assert data["summary"]["occupancy_rate"] == 50.0
        assert len(data["contract_history"]) == 1

    def test_maintenance_report(self, client, seed, admin_headers, renter_headers):
        client.post(f"{API}/maintenance", headers=renter_headers, json={
            "title": "Leaky tap", "category": "PLUMBING", "room_id": seed.room_a.id,
        })

        data = client.get(f"{API}/reports/maintenance", headers=admin_headers).get_json()["data"]
        assert data["summary"]["total_requests"] == 1
        assert data["summary"]["pending"] == 1
        assert data["by_category"] == {"PLUMBING": 1}

    def test_bad_parameters(self, client, seed, admin_headers):
        assert client.get(f"{API}/reports/financial?start_date=yesterday", headers=admin_headers).status_code == 400
        assert client.get(
            f"{API}/reports/financial?start_date=2030-01-02&end_date=2030-01-01", headers=admin_headers
        ).status_code == 400
        assert client.get(f"{API}/reports/financial?format=xml", headers=admin_headers).status_code == 400
        assert client.get(f"{API}/reports/weather", headers=admin_headers).status_code == 404

    def test_renter_forbidden(self, client, renter_headers):
        assert client.get(f"{API}/reports/financial", headers=renter_headers).status_code == 403

    def test_maintenance_csv_lists_every_request(self, client, seed, renter_headers, admin_headers):
        for i in range(12):
            client.post(f"{API}/maintenance", headers=renter_headers, json={
                "title": f"Issue {i}", "category": "REPAIRS", "room_id": seed.room_a.id,
            })

        resp = client.get(f"{API}/reports/maintenance?format=csv", headers=admin_headers)
        rows = list(csv.reader(io.StringIO(resp.get_data(as_text=True))))
        assert len(rows) == 13
        assert rows[0][0] == "id"

        data = client.get(f"{API}/reports/maintenance", headers=admin_headers).get_json()["data"]
        assert data["summary"]["total_requests"] == 12
        assert len(data["recent_requests"]) == 10

"""Financial, occupancy and maintenance reports for a period, as dicts or CSV rows."""
import csv
import io
from collections import defaultdict
from datetime import datetime

from ..models import Contract, Expense, MaintenanceRequest, Payment, Property, Room
from ..models.enums import ContractStatus, MaintenanceStatus, PaymentStatus

REPORT_TYPES = [
    {"id": "financial", "name": "Financial Report", "description": "Income, expenses and profit for a period"},
    {"id": "occupancy", "name": "Occupancy Report", "description": "Room occupancy and contract history"},
    {"id": "maintenance", "name": "Maintenance Report", "description": "Maintenance requests by status, category and priority"},
]


def _period(start, end):
    return {"start_date": start.isoformat(), "end_date": end.isoformat()}


def _properties(property_id):
    query = Property.query
    if property_id:
        query = query.filter(Property.id == property_id)
    return query.order_by(Property.name).all()


def financial_report(start, end, property_id=None):
    payments = Payment.query.join(Contract).join(Room).filter(
        Payment.status == PaymentStatus.PAID.value,
        Payment.payment_date >= start,
        Payment.payment_date <= end,
    )
    expenses = Expense.query.filter(Expense.date >= start, Expense.date <= end)
    if property_id:
        payments = payments.filter(Room.property_id == property_id)
        expenses = expenses.filter(Expense.property_id == property_id)
    payments, expenses = payments.all(), expenses.all()

    income_by_property = defaultdict(float)
    for p in payments:
        income_by_property[p.contract.room.property_id] += float(p.amount)
    expenses_by_category = defaultdict(float)
    for e in expenses:
        expenses_by_category[e.category] += float(e.amount)

    total_income = sum(income_by_property.values())
    total_expenses = sum(expenses_by_category.values())
    net_profit = total_income - total_expenses
    margin = net_profit / total_income * 100 if total_income > 0 else 0

    return {
        "summary": {
            "total_income": round(total_income, 2),
            "total_expenses": round(total_expenses, 2),
            "net_profit": round(net_profit, 2),
            "profit_margin": f"{margin:.2f}",
        },
        "income_by_property": [
            {"property_id": prop.id, "property_name": prop.name, "income": round(income_by_property[prop.id], 2)}
            for prop in _properties(property_id)
        ],
        "expenses_by_category": [
            {"category": c, "amount": round(a, 2)} for c, a in sorted(expenses_by_category.items())
        ],
        "period": _period(start, end),
        "generated_at": datetime.utcnow().isoformat() + "Z",
    }


def occupancy_report(start, end, property_id=None):
    rows = []
    for prop in _properties(property_id):
        total = len(prop.rooms)
        occupied = sum(1 for room in prop.rooms if room.active_contract is not None)
        rows.append({
            "property_id": prop.id,
            "property_name": prop.name,
            "total_rooms": total,
            "occupied_rooms": occupied,
            "vacant_rooms": total - occupied,
            "occupancy_rate": round(occupied / total * 100, 2) if total else 0,
        })

    query = Contract.query.join(Room).filter(Contract.start_date <= end, Contract.end_date >= start)
    if property_id:
        query = query.filter(Room.property_id == property_id)
    history = query.order_by(Contract.start_date).all()

    total = sum(r["total_rooms"] for r in rows)
    occupied = sum(r["occupied_rooms"] for r in rows)
    return {
        "summary": {
            "total_rooms": total,
            "occupied_rooms": occupied,
            "vacant_rooms": total - occupied,
            "occupancy_rate": round(occupied / total * 100, 2) if total else 0,
            "active_contracts": sum(1 for c in history if c.status == ContractStatus.ACTIVE.value),
        },
        "properties": rows,
        "contract_history": [c.summary() for c in history],
        "period": _period(start, end),
        "generated_at": datetime.utcnow().isoformat() + "Z",
    }


def maintenance_report(start, end, property_id=None, recent=10):
    """``recent`` caps the request list; None lists every request in the period."""
    query = MaintenanceRequest.query.join(Room).filter(
        MaintenanceRequest.submitted_at >= datetime.combine(start, datetime.min.time()),
        MaintenanceRequest.submitted_at <= datetime.combine(end, datetime.max.time()),
    )
    if property_id:
        query = query.filter(Room.property_id == property_id)
    requests = query.order_by(MaintenanceRequest.submitted_at.desc()).all()

    by_status = defaultdict(int)
    by_category = defaultdict(int)
    by_priority = defaultdict(int)
    for r in requests:
        by_status[r.status] += 1
        by_category[r.category] += 1
        by_priority[r.priority] += 1

    resolution = [
        (r.completed_at - r.submitted_at).total_seconds() / 86400
        for r in requests
        if r.status == MaintenanceStatus.COMPLETED.value and r.completed_at and r.submitted_at
    ]
    total = len(requests)
    completed = by_status[MaintenanceStatus.COMPLETED.value]

    return {
        "summary": {
            "total_requests": total,
            "completed": completed,
            "pending": by_status[MaintenanceStatus.SUBMITTED.value],
            "in_progress": by_status[MaintenanceStatus.IN_PROGRESS.value],
            "completion_rate": round(completed / total * 100, 2) if total else 0,
            "avg_resolution_time_days": round(sum(resolution) / len(resolution), 2) if resolution else 0,
        },
        "by_category": dict(sorted(by_category.items())),
        "by_priority": dict(sorted(by_priority.items())),
        "recent_requests": [r.serialize() for r in (requests if recent is None else requests[:recent])],
        "period": _period(start, end),
        "generated_at": datetime.utcnow().isoformat() + "Z",
    }


BUILDERS = {
    "financial": financial_report,
    "occupancy": occupancy_report,
    "maintenance": maintenance_report,
}


def _csv_rows(report_type, report):
    if report_type == "financial":
        yield ["section", "name", "amount"]
        for key, value in report["summary"].items():
            yield ["summary", key, value]
        for row in report["income_by_property"]:
            yield ["income", row["property_name"], row["income"]]
        for row in report["expenses_by_category"]:
            yield ["expense", row["category"], row["amount"]]
    elif report_type == "occupancy":
        yield ["property_id", "property_name", "total_rooms", "occupied_rooms", "vacant_rooms", "occupancy_rate"]
        for row in report["properties"]:
            yield [row["property_id"], row["property_name"], row["total_rooms"],
                   row["occupied_rooms"], row["vacant_rooms"], row["occupancy_rate"]]
    else:
        yield ["id", "title", "category", "priority", "status", "submitted_at", "completed_at", "actual_cost"]
        for row in report["recent_requests"]:
            yield [row["id"], row["title"], row["category"], row["priority"], row["status"],
                   row["submitted_at"], row["completed_at"], row["actual_cost"]]


def to_csv(report_type, report):
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerows(_csv_rows(report_type, report))
    return buf.getvalue()


def export_csv(report_type, start, end, property_id=None):
    if report_type == "maintenance":
        report = maintenance_report(start, end, property_id, recent=None)
    else:
        report = BUILDERS[report_type](start, end, property_id)
    return to_csv(report_type, report)

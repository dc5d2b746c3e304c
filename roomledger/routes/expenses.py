from collections import defaultdict

from flask import Blueprint, request

from ..extensions import db
from ..models import Expense, Property
from ..models.enums import ExpenseCategory, MaintenanceCategory, RecurringFrequency
from ..security import admin_required
from ..utils.db import commit
from ..utils.requests import (
    apply_sort, json_body, ok, paginated, parse_amount, parse_bool, parse_choice, parse_date,
    reject_blank, require_fields,
)

bp = Blueprint("expenses", __name__)


def _filtered(query):
    category = parse_choice(request.args.get("category"), ExpenseCategory, "category")
    if category:
        query = query.filter(Expense.category == category)
    property_id = request.args.get("property_id", type=int)
    if property_id:
        query = query.filter(Expense.property_id == property_id)
    if request.args.get("is_recurring") is not None:
        query = query.filter(Expense.is_recurring.is_(parse_bool(request.args["is_recurring"])))
    vendor = (request.args.get("vendor") or "").strip()
    if vendor:
        query = query.filter(Expense.vendor.ilike(f"%{vendor}%"))

    start_date = parse_date(request.args.get("start_date"), "start_date")
    end_date = parse_date(request.args.get("end_date"), "end_date")
    if start_date:
        query = query.filter(Expense.date >= start_date)
    if end_date:
        query = query.filter(Expense.date <= end_date)
    return query


def _apply_fields(expense, data):
    reject_blank(data, ["description"])
    if "category" in data:
        expense.category = parse_choice(data["category"], ExpenseCategory, "category", required=True)
    if "subcategory" in data:
        expense.subcategory = parse_choice(data["subcategory"], MaintenanceCategory, "subcategory")
    if "amount" in data:
        expense.amount = parse_amount(data["amount"])
    if "date" in data:
        expense.date = parse_date(data["date"], "date", required=True)
    if "is_recurring" in data:
        expense.is_recurring = parse_bool(data["is_recurring"])
    if "recurring_frequency" in data:
        expense.recurring_frequency = parse_choice(
            data["recurring_frequency"], RecurringFrequency, "recurring_frequency")
    for field in ("description", "vendor", "receipt_path"):
        if field in data:
            setattr(expense, field, data[field])


@bp.get("/expenses")
@admin_required
def list_expenses():
    return paginated(apply_sort(_filtered(Expense.query), Expense, "date"))


@bp.get("/expenses/summary")
@admin_required
def expense_summary():
    """Per-category totals plus overall totals for the filtered expenses"""
    expenses = _filtered(Expense.query).order_by(Expense.date.desc()).all()

    groups = defaultdict(list)
    for expense in expenses:
        groups[expense.category].append(expense)

    summary = [
        {
            "category": category,
            "totalAmount": round(sum(float(e.amount) for e in items), 2),
            "count": len(items),
            "expenses": [e.serialize() for e in items],
        }
        for category, items in sorted(groups.items())
    ]
    total = sum(float(e.amount) for e in expenses)
    return ok({
        "summary": summary,
        "totals": {
            "totalAmount": round(total, 2),
            "totalCount": len(expenses),
            "averageAmount": round(total / len(expenses), 2) if expenses else 0,
        },
    })


@bp.get("/expenses/recurring")
@admin_required
def recurring_expenses():
    query = Expense.query.filter(Expense.is_recurring.is_(True))
    property_id = request.args.get("property_id", type=int)
    if property_id:
        query = query.filter(Expense.property_id == property_id)
    return ok([e.serialize() for e in query.order_by(Expense.date.desc()).all()])


@bp.get("/expenses/property/<int:property_id>")
@admin_required
def expenses_by_property(property_id):
    db.get_or_404(Property, property_id)
    query = _filtered(Expense.query.filter(Expense.property_id == property_id))
    return ok([e.serialize() for e in query.order_by(Expense.date.desc()).all()])


@bp.get("/expenses/<int:expense_id>")
@admin_required
def get_expense(expense_id):
    return ok(db.get_or_404(Expense, expense_id).serialize())


@bp.post("/expenses")
@admin_required
def create_expense():
    data = json_body()
    require_fields(data, ["property_id", "category", "amount", "description", "date"])
    db.get_or_404(Property, data["property_id"])

    expense = Expense(property_id=data["property_id"], is_recurring=False)
    _apply_fields(expense, data)
    db.session.add(expense)
    commit("creation_failed")
    return ok(expense.serialize(), 201)


@bp.patch("/expenses/<int:expense_id>")
@bp.put("/expenses/<int:expense_id>")
@admin_required
def update_expense(expense_id):
    expense = db.get_or_404(Expense, expense_id)
    data = json_body()
    if "property_id" in data:
        db.get_or_404(Property, data["property_id"])
        expense.property_id = data["property_id"]
    _apply_fields(expense, data)
    commit("update_failed")
    return ok(expense.serialize())


@bp.delete("/expenses/<int:expense_id>")
@admin_required
def delete_expense(expense_id):
    expense = db.get_or_404(Expense, expense_id)
    db.session.delete(expense)
    commit("deletion_failed")
    return ok(None, message="Expense deleted successfully")

import logging
from collections import defaultdict
from datetime import date

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from ..errors import ValidationError
from ..extensions import db
from ..models import Contract, Payment
from ..models.enums import ContractStatus, PaymentMethod, PaymentStatus
from ..security import admin_required, ensure_owns, scope_to_renter
from ..utils.db import commit
from ..utils.requests import (
    apply_sort, json_body, ok, paginated, parse_amount, parse_choice, parse_date, require_fields,
)

logger = logging.getLogger(__name__)

bp = Blueprint("payments", __name__)


def _renter_scoped(query):
    return scope_to_renter(query.join(Contract), Contract.renter_id)


@bp.get("/payments")
@jwt_required()
def list_payments():
    query = _renter_scoped(Payment.query)

    status = parse_choice(request.args.get("status"), PaymentStatus, "status")
    if status:
        query = query.filter(Payment.status == status)
    method = parse_choice(request.args.get("method"), PaymentMethod, "method")
    if method:
        query = query.filter(Payment.method == method)
    contract_id = request.args.get("contract_id", type=int)
    if contract_id:
        query = query.filter(Payment.contract_id == contract_id)

    start_date = parse_date(request.args.get("start_date"), "start_date")
    end_date = parse_date(request.args.get("end_date"), "end_date")
    if start_date:
        query = query.filter(Payment.due_date >= start_date)
    if end_date:
        query = query.filter(Payment.due_date <= end_date)

    return paginated(apply_sort(query, Payment, "due_date"))


@bp.get("/payments/overdue")
@admin_required
def overdue_payments():
    today = date.today()
    payments = Payment.query.filter(
        Payment.status != PaymentStatus.PAID.value,
        Payment.due_date < today,
    ).order_by(Payment.due_date).all()

    data = []
    for payment in payments:
        item = payment.serialize()
        item["days_overdue"] = (today - payment.due_date).days
        data.append(item)
    return ok(data)


@bp.get("/payments/analytics")
@admin_required
def payment_analytics():
    """Totals for a contract or date range, broken down by status and method"""
    query = Payment.query
    contract_id = request.args.get("contract_id", type=int)
    if contract_id:
        query = query.filter(Payment.contract_id == contract_id)
    start_date = parse_date(request.args.get("start_date"), "start_date")
    end_date = parse_date(request.args.get("end_date"), "end_date")
    if start_date:
        query = query.filter(Payment.due_date >= start_date)
    if end_date:
        query = query.filter(Payment.due_date <= end_date)

    payments = query.all()
    by_status = defaultdict(float)
    by_method = defaultdict(float)
    for p in payments:
        by_status[p.status] += float(p.amount)
        by_method[p.method] += float(p.amount)

    total = sum(float(p.amount) for p in payments)
    return ok({
        "summary": {
            "totalAmount": round(total, 2),
            "totalCount": len(payments),
            "paidAmount": round(by_status[PaymentStatus.PAID.value], 2),
            "pendingAmount": round(by_status[PaymentStatus.PENDING.value] + by_status[PaymentStatus.PARTIAL.value], 2),
            "overdueAmount": round(by_status[PaymentStatus.OVERDUE.value], 2),
            "averageAmount": round(total / len(payments), 2) if payments else 0,
        },
        "breakdowns": {
            "byStatus": {k: round(v, 2) for k, v in by_status.items() if v},
            "byMethod": {k: round(v, 2) for k, v in by_method.items()},
        },
    })


@bp.post("/payments/generate-recurring")
@admin_required
def generate_recurring():
    data = json_body()
    require_fields(data, ["contract_id"])
    contract = db.get_or_404(Contract, data["contract_id"])
    if contract.status != ContractStatus.ACTIVE.value:
        raise ValidationError("Recurring payments can only be generated for active contracts")

    try:
        months = int(data.get("months", 12))
    except (TypeError, ValueError):
        raise ValidationError("months must be an integer")
    if months < 1 or months > 60:
        raise ValidationError("months must be between 1 and 60")

    created = contract.generate_recurring_payments(months)
    commit("creation_failed")
    logger.info("Generated %d recurring payments for contract %s", len(created), contract.id)
    return ok([p.serialize(include_contract=False) for p in created], 201,
              message=f"{len(created)} payments generated")


@bp.patch("/payments/bulk-status")
@admin_required
def bulk_update_status():
    data = json_body()
    require_fields(data, ["payment_ids", "status"])
    ids = data["payment_ids"]
    if not isinstance(ids, list) or not ids:
        raise ValidationError("payment_ids must be a non-empty list")
    status = parse_choice(data["status"], PaymentStatus, "status")

    payments = Payment.query.filter(Payment.id.in_(ids)).all()
    for payment in payments:
        if status == PaymentStatus.PAID.value:
            payment.record()
        else:
            payment.status = status
    commit("update_failed")
    return ok({"updated_count": len(payments)}, message=f"{len(payments)} payments updated")


@bp.get("/payments/contract/<int:contract_id>")
@jwt_required()
def payments_by_contract(contract_id):
    contract = db.get_or_404(Contract, contract_id)
    ensure_owns(contract.renter_id)
    payments = Payment.query.filter_by(contract_id=contract_id).order_by(Payment.due_date).all()
    return ok([p.serialize(include_contract=False) for p in payments])


@bp.get("/payments/<int:payment_id>")
@jwt_required()
def get_payment(payment_id):
    payment = db.get_or_404(Payment, payment_id)
    ensure_owns(payment.contract.renter_id)
    return ok(payment.serialize())


@bp.post("/payments")
@admin_required
def create_payment():
    data = json_body()
    require_fields(data, ["contract_id", "amount", "due_date"])
    contract = db.get_or_404(Contract, data["contract_id"])

    payment = Payment(
        contract=contract,
        amount=parse_amount(data["amount"]),
        due_date=parse_date(data["due_date"], "due_date"),
        method=parse_choice(data.get("method"), PaymentMethod, "method") or PaymentMethod.CASH.value,
        status=parse_choice(data.get("status"), PaymentStatus, "status") or PaymentStatus.PENDING.value,
        payment_date=parse_date(data.get("payment_date"), "payment_date"),
        notes=data.get("notes"),
        receipt_path=data.get("receipt_path"),
    )
    if payment.status == PaymentStatus.PAID.value and payment.payment_date is None:
        payment.payment_date = date.today()

    db.session.add(payment)
    commit("creation_failed")
    return ok(payment.serialize(), 201)


@bp.patch("/payments/<int:payment_id>")
@bp.put("/payments/<int:payment_id>")
@admin_required
def update_payment(payment_id):
    payment = db.get_or_404(Payment, payment_id)
    data = json_body()

    if "amount" in data:
        payment.amount = parse_amount(data["amount"])
    if "due_date" in data:
        payment.due_date = parse_date(data["due_date"], "due_date", required=True)
    if "payment_date" in data:
        payment.payment_date = parse_date(data["payment_date"], "payment_date")
    if "method" in data:
        payment.method = parse_choice(data["method"], PaymentMethod, "method", required=True)
    if "status" in data:
        payment.status = parse_choice(data["status"], PaymentStatus, "status", required=True)
    for field in ("notes", "receipt_path"):
        if field in data:
            setattr(payment, field, data[field])

    commit("update_failed")
    return ok(payment.serialize())


@bp.delete("/payments/<int:payment_id>")
@admin_required
def delete_payment(payment_id):
    payment = db.get_or_404(Payment, payment_id)
    db.session.delete(payment)
    commit("deletion_failed")
    return ok(None, message="Payment deleted successfully")


@bp.post("/payments/<int:payment_id>/record")
@admin_required
def record_payment(payment_id):
    payment = db.get_or_404(Payment, payment_id)
    data = json_body()

    if payment.is_paid:
        raise ValidationError("Payment has already been recorded")

    payment.record(
        payment_date=parse_date(data.get("payment_date"), "payment_date"),
        method=parse_choice(data.get("method"), PaymentMethod, "method"),
        receipt_path=data.get("receipt_path"),
        notes=data.get("notes"),
    )
    commit("update_failed")
    logger.info("Recorded payment %s (%s)", payment.id, payment.amount)
    return ok(payment.serialize(), message="Payment recorded successfully")

import logging
from datetime import date, timedelta

from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_

from ..errors import ApiError, ValidationError
from ..extensions import db
from ..models import Contract, Renter, Room
from ..models.enums import ContractStatus, ContractType, DocumentEntityType
from ..security import admin_required, ensure_owns, scope_to_renter
from ..services import documents as storage
from ..services.lifecycle import expire_contracts
from ..utils.db import commit
from ..utils.requests import (
    apply_sort, json_body, ok, paginated, parse_amount, parse_bool, parse_choice,
    parse_date, require_fields,
)

logger = logging.getLogger(__name__)

bp = Blueprint("contracts", __name__)


def _check_room_free(room_id, start_date, end_date, exclude_id=None):
    query = Contract.query.filter(
        Contract.room_id == room_id,
        Contract.status == ContractStatus.ACTIVE.value,
    )
    if exclude_id is not None:
        query = query.filter(Contract.id != exclude_id)
    for other in query.all():
        if other.overlaps(start_date, end_date):
            raise ApiError(400, "room_unavailable",
                           f"Room already has an active contract ({other.start_date} to {other.end_date})")


def _apply_status(contract, status):
    if status == ContractStatus.ACTIVE.value:
        contract.activate()
    elif status == ContractStatus.TERMINATED.value:
        contract.terminate()
    elif status == ContractStatus.EXPIRED.value:
        contract.expire()
    else:
        contract.status = status


@bp.get("/contracts")
@jwt_required()
def list_contracts():
    query = scope_to_renter(Contract.query, Contract.renter_id)

    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        query = query.join(Contract.renter).join(Contract.room).filter(or_(
            Renter.name.ilike(like),
            Room.name.ilike(like),
            Room.number.ilike(like),
        ))

    status = parse_choice(request.args.get("status"), ContractStatus, "status")
    if status:
        query = query.filter(Contract.status == status)
    contract_type = parse_choice(request.args.get("contract_type"), ContractType, "contract_type")
    if contract_type:
        query = query.filter(Contract.contract_type == contract_type)
    for field in ("room_id", "renter_id"):
        value = request.args.get(field, type=int)
        if value:
            query = query.filter(getattr(Contract, field) == value)

    return paginated(apply_sort(query, Contract, "created_at"))


@bp.get("/contracts/expiring")
@admin_required
def expiring_contracts():
    days = request.args.get("days", 30, type=int)
    if days < 1 or days > 365:
        raise ValidationError("days must be between 1 and 365")

    today = date.today()
    contracts = Contract.query.filter(
        Contract.status == ContractStatus.ACTIVE.value,
        Contract.end_date >= today,
        Contract.end_date <= today + timedelta(days=days),
    ).order_by(Contract.end_date).all()

    data = []
    for contract in contracts:
        item = contract.serialize()
        item["days_until_expiration"] = contract.days_until_expiration(today)
        data.append(item)
    return ok(data)


@bp.post("/contracts/handle-expiration")
@admin_required
def handle_expiration():
    expired = expire_contracts()
    return ok({"expired_count": len(expired), "contract_ids": [c.id for c in expired]},
              message=f"{len(expired)} contracts marked as expired")


@bp.get("/contracts/renter/<int:renter_id>")
@jwt_required()
def contracts_by_renter(renter_id):
    ensure_owns(renter_id)
    db.get_or_404(Renter, renter_id)
    contracts = Contract.query.filter_by(renter_id=renter_id).order_by(Contract.start_date.desc()).all()
    return ok([c.serialize() for c in contracts])


@bp.get("/contracts/room/<int:room_id>")
@admin_required
def contracts_by_room(room_id):
    db.get_or_404(Room, room_id)
    contracts = Contract.query.filter_by(room_id=room_id).order_by(Contract.start_date.desc()).all()
    return ok([c.serialize() for c in contracts])


@bp.get("/contracts/<int:contract_id>")
@jwt_required()
def get_contract(contract_id):
    contract = db.get_or_404(Contract, contract_id)
    ensure_owns(contract.renter_id)
    return ok(contract.serialize(include_payments=True))


@bp.post("/contracts")
@admin_required
def create_contract():
    data = json_body()
    require_fields(data, ["renter_id", "room_id", "start_date", "end_date", "monthly_rent"])

    renter = db.get_or_404(Renter, data["renter_id"])
    room = db.get_or_404(Room, data["room_id"])
    start_date = parse_date(data["start_date"], "start_date")
    end_date = parse_date(data["end_date"], "end_date")
    if end_date <= start_date:
        raise ValidationError("end_date must be after start_date")

    status = parse_choice(data.get("status"), ContractStatus, "status") or ContractStatus.ACTIVE.value
    if status == ContractStatus.ACTIVE.value:
        _check_room_free(room.id, start_date, end_date)

    contract = Contract(
        renter=renter,
        room=room,
        start_date=start_date,
        end_date=end_date,
        monthly_rent=parse_amount(data["monthly_rent"], "monthly_rent"),
        security_deposit=parse_amount(data.get("security_deposit", 0), "security_deposit", allow_zero=True),
        contract_type=(
            parse_choice(data.get("contract_type"), ContractType, "contract_type")
            or ContractType.LONG_TERM.value
        ),
        terms=data.get("terms"),
        document_path=data.get("document_path"),
        status=ContractStatus.DRAFT.value,
    )
    db.session.add(contract)
    _apply_status(contract, status)

    if parse_bool(data.get("generate_payments", False)):
        contract.generate_recurring_payments(int(data.get("months", 12)))

    commit("creation_failed")
    logger.info("Created contract %s for renter %s in room %s", contract.id, renter.id, room.id)
    return ok(contract.serialize(include_payments=True), 201)


@bp.patch("/contracts/<int:contract_id>")
@bp.put("/contracts/<int:contract_id>")
@admin_required
def update_contract(contract_id):
    contract = db.get_or_404(Contract, contract_id)
    data = json_body()

    start_date, end_date = contract.start_date, contract.end_date
    if "start_date" in data:
        start_date = parse_date(data["start_date"], "start_date", required=True)
    if "end_date" in data:
        end_date = parse_date(data["end_date"], "end_date", required=True)
    if end_date <= start_date:
        raise ValidationError("end_date must be after start_date")
    contract.start_date, contract.end_date = start_date, end_date

    if "monthly_rent" in data:
        contract.monthly_rent = parse_amount(data["monthly_rent"], "monthly_rent")
    if "security_deposit" in data:
        contract.security_deposit = parse_amount(data["security_deposit"], "security_deposit", allow_zero=True)
    if "contract_type" in data:
        contract.contract_type = parse_choice(
            data["contract_type"], ContractType, "contract_type", required=True)
    for field in ("terms", "document_path"):
        if field in data:
            setattr(contract, field, data[field])

    status = parse_choice(data.get("status"), ContractStatus, "status") or contract.status
    if status == ContractStatus.ACTIVE.value:
        _check_room_free(contract.room_id, start_date, end_date, exclude_id=contract.id)
    if status != contract.status:
        _apply_status(contract, status)

    commit("update_failed")
    return ok(contract.serialize())


@bp.delete("/contracts/<int:contract_id>")
@admin_required
def delete_contract(contract_id):
    contract = db.get_or_404(Contract, contract_id)
    if contract.is_active:
        contract.release_room()

    db.session.delete(contract)
    paths = storage.drop_for(DocumentEntityType.CONTRACT.value, [contract.id])
    commit("deletion_failed")
    storage.discard(paths)
    return ok(None, message="Contract deleted successfully")


@bp.post("/contracts/<int:contract_id>/terminate")
@admin_required
def terminate_contract(contract_id):
    contract = db.get_or_404(Contract, contract_id)
    data = json_body()
    require_fields(data, ["reason"])

    if contract.status in (ContractStatus.TERMINATED.value, ContractStatus.EXPIRED.value):
        raise ApiError(400, "invalid_state", f"Contract is already {contract.status.lower()}")

    contract.terminate(data["reason"], parse_date(data.get("termination_date"), "termination_date"))
    commit("update_failed")
    logger.info("Terminated contract %s: %s", contract.id, data["reason"])
    return ok(contract.serialize(), message="Contract terminated successfully")


@bp.post("/contracts/<int:contract_id>/renew")
@admin_required
def renew_contract(contract_id):
    contract = db.get_or_404(Contract, contract_id)
    data = json_body()
    require_fields(data, ["new_end_date"])

    if contract.status == ContractStatus.TERMINATED.value:
        raise ApiError(400, "invalid_state", "Cannot renew a terminated contract")

    new_end_date = parse_date(data["new_end_date"], "new_end_date")
    monthly_rent = parse_amount(data["monthly_rent"], "monthly_rent") if data.get("monthly_rent") is not None else None

    if contract.status != ContractStatus.DRAFT.value:
        _check_room_free(contract.room_id, contract.start_date, new_end_date, exclude_id=contract.id)

    try:
        contract.renew(new_end_date, monthly_rent, data.get("terms"))
    except ValueError as e:
        raise ValidationError(str(e))

    commit("update_failed")
    return ok(contract.serialize(), message="Contract renewed successfully")


@bp.patch("/contracts/<int:contract_id>/document")
@admin_required
def upload_document(contract_id):
    contract = db.get_or_404(Contract, contract_id)
    data = json_body()
    require_fields(data, ["document_path"])

    contract.document_path = data["document_path"]
    commit("update_failed")
    return ok(contract.serialize())

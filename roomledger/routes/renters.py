from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_

from ..errors import ApiError
from ..extensions import db
from ..models import Renter, Room
from ..models.enums import DocumentEntityType
from ..security import admin_required, ensure_owns
from ..services import documents as storage
from ..utils.db import commit
from ..utils.requests import json_body, ok, paginated, reject_blank, require_fields

bp = Blueprint("renters", __name__)

UPDATABLE_FIELDS = ["name", "email", "phone", "emergency_contact", "identity_number", "avatar"]


@bp.get("/renters")
@admin_required
def list_renters():
    query = Renter.query
    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        query = query.filter(or_(
            Renter.name.ilike(like),
            Renter.email.ilike(like),
            Renter.phone.ilike(like),
        ))
    return paginated(query.order_by(Renter.name))


@bp.get("/renters/<int:renter_id>")
@jwt_required()
def get_renter(renter_id):
    ensure_owns(renter_id, "You can only view your own renter profile")

    renter = db.get_or_404(Renter, renter_id)
    data = renter.serialize()
    data["contracts"] = [c.summary() for c in renter.contracts]
    return ok(data)


@bp.post("/renters")
@admin_required
def create_renter():
    data = json_body()
    require_fields(data, ["name", "phone"])

    if data.get("room_id") is not None:
        db.get_or_404(Room, data["room_id"])

    renter = Renter(
        name=data["name"].strip(),
        phone=str(data["phone"]).strip(),
        email=(data.get("email") or "").strip().lower() or None,
        emergency_contact=data.get("emergency_contact"),
        identity_number=data.get("identity_number"),
        avatar=data.get("avatar"),
        room_id=data.get("room_id"),
    )
    db.session.add(renter)
    commit("creation_failed")
    return ok(renter.serialize(), 201)


@bp.patch("/renters/<int:renter_id>")
@bp.put("/renters/<int:renter_id>")
@admin_required
def update_renter(renter_id):
    renter = db.get_or_404(Renter, renter_id)
    data = json_body()
    reject_blank(data, ["name", "phone"])

    for field in UPDATABLE_FIELDS:
        if field in data:
            setattr(renter, field, data[field])
    if "room_id" in data:
        if data["room_id"] is not None:
            db.get_or_404(Room, data["room_id"])
        renter.room_id = data["room_id"]

    commit("update_failed")
    return ok(renter.serialize())


@bp.delete("/renters/<int:renter_id>")
@admin_required
def delete_renter(renter_id):
    renter = db.get_or_404(Renter, renter_id)
    if any(c.is_active for c in renter.contracts):
        raise ApiError(400, "cannot_delete", "Cannot delete renter with an active contract")
    if renter.contracts:
        raise ApiError(400, "cannot_delete", "Renter has contract history; terminate instead of deleting")

    if renter.user:
        renter.user.renter_id = None
    db.session.delete(renter)
    paths = storage.drop_for(DocumentEntityType.RENTER.value, [renter.id])
    commit("deletion_failed")
    storage.discard(paths)
    return ok(None, message="Renter deleted successfully")

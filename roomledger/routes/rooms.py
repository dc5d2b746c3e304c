from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_

from ..errors import ApiError
from ..extensions import db
from ..models import Property, Renter, Room
from ..models.enums import DocumentEntityType, RoomStatus
from ..security import admin_required
from ..services import documents as storage
from ..utils.db import commit
from ..utils.requests import (
    json_body, ok, paginated, parse_amount, parse_choice, reject_blank, require_fields,
)

bp = Blueprint("rooms", __name__)


@bp.get("/rooms")
@jwt_required()
def list_rooms():
    """Get rooms with optional search, status and property filters"""
    query = Room.query

    search = (request.args.get("search") or "").strip()
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Room.name.ilike(like), Room.number.ilike(like)))

    status = parse_choice(request.args.get("status"), RoomStatus, "status")
    if status:
        query = query.filter(Room.status == status)

    property_id = request.args.get("property_id", type=int)
    if property_id:
        query = query.filter(Room.property_id == property_id)

    return paginated(
        query.order_by(Room.property_id, Room.number),
        lambda room: room.serialize(include_property=True),
    )


@bp.get("/rooms/<int:room_id>")
@jwt_required()
def get_room(room_id):
    room = db.get_or_404(Room, room_id)
    data = room.serialize(include_property=True)
    active = room.active_contract
    data["active_contract"] = active.summary() if active else None
    return ok(data)


@bp.post("/rooms")
@admin_required
def create_room():
    data = json_body()
    require_fields(data, ["property_id", "name", "number", "price"])

    db.get_or_404(Property, data["property_id"])
    number = str(data["number"]).strip()
    if Room.query.filter_by(property_id=data["property_id"], number=number).first():
        raise ApiError(409, "conflict", f"Room {number} already exists in this property")

    room = Room(
        property_id=data["property_id"],
        name=data["name"].strip(),
        number=number,
        floor=data.get("floor", 1),
        size=data.get("size"),
        description=data.get("description"),
        type=data.get("type"),
        price=parse_amount(data["price"], "price", allow_zero=True),
        status=parse_choice(data.get("status"), RoomStatus, "status") or RoomStatus.AVAILABLE.value,
    )
    db.session.add(room)
    commit("creation_failed")
    return ok(room.serialize(include_property=True), 201)


@bp.patch("/rooms/<int:room_id>")
@bp.put("/rooms/<int:room_id>")
@admin_required
def update_room(room_id):
    room = db.get_or_404(Room, room_id)
    data = json_body()
    reject_blank(data, ["name", "number"])

    if "number" in data:
        number = str(data["number"]).strip()
        clash = Room.query.filter(
            Room.property_id == room.property_id, Room.number == number, Room.id != room.id
        ).first()
        if clash:
            raise ApiError(409, "conflict", f"Room {number} already exists in this property")
        room.number = number

    for field in ("name", "floor", "size", "description", "type"):
        if field in data:
            setattr(room, field, data[field])
    if "price" in data:
        room.price = parse_amount(data["price"], "price", allow_zero=True)
    if "status" in data:
        room.status = parse_choice(data["status"], RoomStatus, "status", required=True)

    commit("update_failed")
    return ok(room.serialize(include_property=True))


@bp.delete("/rooms/<int:room_id>")
@admin_required
def delete_room(room_id):
    room = db.get_or_404(Room, room_id)
    if room.active_contract is not None:
        raise ApiError(400, "cannot_delete", "Cannot delete room with an active contract")
    if room.has_history():
        raise ApiError(400, "cannot_delete", "Cannot delete room with contract or maintenance history")

    Renter.query.filter_by(room_id=room.id).update({"room_id": None})
    db.session.delete(room)
    paths = storage.drop_for(DocumentEntityType.ROOM.value, [room.id])
    commit("deletion_failed")
    storage.discard(paths)
    return ok(None, message="Room deleted successfully")

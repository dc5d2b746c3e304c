from datetime import date

from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from sqlalchemy import or_

from ..errors import ApiError, ValidationError
from ..extensions import db
from ..models import Property, Renter, Room
from ..models.enums import DocumentEntityType
from ..security import admin_required, current_user
from ..services import documents as storage
from ..utils.db import commit
from ..utils.requests import json_body, ok, paginated, parse_amount, reject_blank, require_fields

bp = Blueprint("properties", __name__)

UPDATABLE_FIELDS = ["name", "address"]


def _year_built(value):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 1800 or value > date.today().year:
        raise ValidationError("year_built must be a year between 1800 and this year")
    return value


def _investment(value):
    return parse_amount(value, "initial_investment") if value is not None else None


@bp.get("/properties")
@jwt_required()
def list_properties():
    """Get list of properties with optional search"""
    q = (request.args.get("search") or "").strip()

    query = Property.query
    if q:
        like = f"%{q}%"
        query = query.filter(or_(Property.name.ilike(like), Property.address.ilike(like)))

    return paginated(query.order_by(Property.created_at.desc(), Property.id.desc()))


@bp.post("/properties")
@admin_required
def create_property():
    data = json_body()
    require_fields(data, ["name", "address"])

    property_obj = Property(
        name=data["name"].strip(),
        address=data["address"].strip(),
        user_id=current_user().id,
        year_built=_year_built(data.get("year_built")),
        initial_investment=_investment(data.get("initial_investment")),
    )
    db.session.add(property_obj)
    commit("creation_failed")
    return ok(property_obj.serialize(), 201)


@bp.get("/properties/<int:property_id>")
@jwt_required()
def get_property(property_id):
    """Get property details including rooms"""
    property_obj = db.get_or_404(Property, property_id)
    data = property_obj.serialize()
    data["rooms"] = [room.serialize() for room in property_obj.rooms]
    return ok(data)


@bp.patch("/properties/<int:property_id>")
@bp.put("/properties/<int:property_id>")
@admin_required
def update_property(property_id):
    property_obj = db.get_or_404(Property, property_id)
    data = json_body()
    reject_blank(data, UPDATABLE_FIELDS)

    for field in UPDATABLE_FIELDS:
        if field in data:
            setattr(property_obj, field, data[field])
    if "year_built" in data:
        property_obj.year_built = _year_built(data["year_built"])
    if "initial_investment" in data:
        property_obj.initial_investment = _investment(data["initial_investment"])

    commit("update_failed")
    return ok(property_obj.serialize())


@bp.delete("/properties/<int:property_id>")
@admin_required
def delete_property(property_id):
    property_obj = db.get_or_404(Property, property_id)

    if property_obj.has_active_contracts():
        raise ApiError(400, "cannot_delete", "Cannot delete property with active contracts")
    if any(room.has_history() for room in property_obj.rooms):
        raise ApiError(400, "cannot_delete", "Cannot delete property with contract or maintenance history")

    room_ids = [room.id for room in property_obj.rooms]
    paths = storage.drop_for(DocumentEntityType.PROPERTY.value, [property_obj.id])
    paths += storage.drop_for(DocumentEntityType.ROOM.value, room_ids)
    if room_ids:
        Renter.query.filter(Renter.room_id.in_(room_ids)).update({"room_id": None})
    db.session.delete(property_obj)
    commit("deletion_failed")
    storage.discard(paths)
    return ok(None, message="Property deleted successfully")


@bp.get("/properties/<int:property_id>/rooms")
@jwt_required()
def get_property_rooms(property_id):
    db.get_or_404(Property, property_id)
    query = Room.query.filter_by(property_id=property_id).order_by(Room.number)
    return ok([room.serialize() for room in query.all()])

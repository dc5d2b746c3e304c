import logging
from datetime import datetime, timedelta

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from ..errors import ApiError, ForbiddenError, ValidationError
from ..extensions import db
from ..models import MaintenanceRequest, Renter, Room
from ..models.enums import MaintenanceCategory, MaintenancePriority, MaintenanceStatus
from ..security import admin_required, current_user, ensure_owns, is_admin, scope_to_renter
from ..services import notifications
from ..utils.db import commit
from ..utils.requests import (
    apply_sort, json_body, ok, paginated, parse_amount, parse_choice, parse_datetime, reject_blank,
    require_fields,
)

logger = logging.getLogger(__name__)

bp = Blueprint("maintenance", __name__)

# fields a renter may change on their own request
RENTER_FIELDS = ("title", "description", "images", "rating")


def _renter_rooms(renter):
    rooms = {c.room_id for c in renter.contracts if c.is_active}
    if renter.room_id:
        rooms.add(renter.room_id)
    return rooms


def _parse_rating(value):
    try:
        rating = int(value)
    except (TypeError, ValueError):
        raise ValidationError("rating must be an integer between 1 and 5")
    if rating < 1 or rating > 5:
        raise ValidationError("rating must be an integer between 1 and 5")
    return rating


@bp.get("/maintenance")
@jwt_required()
def list_requests():
    query = scope_to_renter(MaintenanceRequest.query, MaintenanceRequest.renter_id)

    for field, enum_cls in (
        ("status", MaintenanceStatus),
        ("priority", MaintenancePriority),
        ("category", MaintenanceCategory),
    ):
        value = parse_choice(request.args.get(field), enum_cls, field)
        if value:
            query = query.filter(getattr(MaintenanceRequest, field) == value)
    for field in ("room_id", "renter_id"):
        value = request.args.get(field, type=int)
        if value:
            query = query.filter(getattr(MaintenanceRequest, field) == value)
    assigned_to = (request.args.get("assigned_to") or "").strip()
    if assigned_to:
        query = query.filter(MaintenanceRequest.assigned_to.ilike(f"%{assigned_to}%"))

    return paginated(apply_sort(query, MaintenanceRequest, "submitted_at"))


@bp.get("/maintenance/urgent")
@admin_required
def urgent_requests():
    requests = MaintenanceRequest.query.filter(
        MaintenanceRequest.priority.in_([MaintenancePriority.URGENT.value, MaintenancePriority.HIGH.value]),
        MaintenanceRequest.status.in_([MaintenanceStatus.SUBMITTED.value, MaintenanceStatus.IN_PROGRESS.value]),
    ).order_by(MaintenanceRequest.submitted_at).all()
    # URGENT first, oldest first within a priority
    requests.sort(key=lambda r: r.priority != MaintenancePriority.URGENT.value)
    return ok([r.serialize() for r in requests])


@bp.get("/maintenance/renter/<int:renter_id>")
@jwt_required()
def requests_by_renter(renter_id):
    ensure_owns(renter_id)
    db.get_or_404(Renter, renter_id)
    requests = MaintenanceRequest.query.filter_by(renter_id=renter_id) \
        .order_by(MaintenanceRequest.submitted_at.desc()).all()
    return ok([r.serialize() for r in requests])


@bp.get("/maintenance/room/<int:room_id>")
@admin_required
def requests_by_room(room_id):
    db.get_or_404(Room, room_id)
    requests = MaintenanceRequest.query.filter_by(room_id=room_id) \
        .order_by(MaintenanceRequest.submitted_at.desc()).all()
    return ok([r.serialize() for r in requests])


@bp.get("/maintenance/<int:request_id>")
@jwt_required()
def get_request(request_id):
    req = db.get_or_404(MaintenanceRequest, request_id)
    ensure_owns(req.renter_id)
    return ok(req.serialize())


@bp.post("/maintenance")
@jwt_required()
def create_request():
    data = json_body()
    require_fields(data, ["title", "category", "room_id"])
    room = db.get_or_404(Room, data["room_id"])

    if is_admin():
        renter_id = data.get("renter_id")
        if renter_id is not None:
            db.get_or_404(Renter, renter_id)
    else:
        user = current_user()
        renter = user.renter if user else None
        if renter is None:
            raise ForbiddenError("Your account is not linked to a renter profile")
        if room.id not in _renter_rooms(renter):
            raise ForbiddenError("You can only submit requests for your own room")
        renter_id = renter.id

    priority = parse_choice(data.get("priority"), MaintenancePriority, "priority") or MaintenancePriority.MEDIUM.value
    submitted_at = datetime.utcnow()
    due_date = parse_datetime(data.get("due_date"), "due_date")
    if due_date is None and priority == MaintenancePriority.URGENT.value:
        due_date = submitted_at + timedelta(hours=24)

    req = MaintenanceRequest(
        title=data["title"].strip(),
        description=data.get("description") or "",
        category=parse_choice(data["category"], MaintenanceCategory, "category"),
        priority=priority,
        room_id=room.id,
        renter_id=renter_id,
        status=MaintenanceStatus.SUBMITTED.value,
        submitted_at=submitted_at,
        due_date=due_date,
        images=data.get("images") or [],
    )
    db.session.add(req)
    db.session.flush()
    notifications.maintenance_request_created(req)
    commit("creation_failed")

    logger.info("Maintenance request %s (%s) submitted for room %s", req.id, req.priority, room.id)
    return ok(req.serialize(), 201)


@bp.patch("/maintenance/<int:request_id>")
@bp.put("/maintenance/<int:request_id>")
@jwt_required()
def update_request(request_id):
    req = db.get_or_404(MaintenanceRequest, request_id)
    ensure_owns(req.renter_id)
    data = json_body()
    reject_blank(data, ["title"])

    if not is_admin():
        blocked = [k for k in data if k not in RENTER_FIELDS]
        if blocked:
            raise ForbiddenError(f"Renters cannot change: {', '.join(sorted(blocked))}")

    if "title" in data:
        req.title = data["title"]
    if "description" in data:
        req.description = data["description"] or ""
    if "images" in data:
        req.images = list(data["images"] or [])
    if "rating" in data:
        if req.status != MaintenanceStatus.COMPLETED.value:
            raise ValidationError("Only completed requests can be rated")
        req.rating = _parse_rating(data["rating"])

    if is_admin():
        if "category" in data:
            req.category = parse_choice(data["category"], MaintenanceCategory, "category", required=True)
        if "priority" in data:
            req.priority = parse_choice(data["priority"], MaintenancePriority, "priority", required=True)
        if "status" in data:
            req.status = parse_choice(data["status"], MaintenanceStatus, "status", required=True)
        for field in ("assigned_to", "vendor", "notes"):
            if field in data:
                setattr(req, field, data[field])
        for field in ("due_date", "estimated_completion"):
            if field in data:
                setattr(req, field, parse_datetime(data[field], field))
        if "actual_cost" in data:
            req.actual_cost = parse_amount(data["actual_cost"], "actual_cost", allow_zero=True)

    commit("update_failed")
    return ok(req.serialize())


@bp.delete("/maintenance/<int:request_id>")
@jwt_required()
def delete_request(request_id):
    req = db.get_or_404(MaintenanceRequest, request_id)
    ensure_owns(req.renter_id)
    if not is_admin() and req.status != MaintenanceStatus.SUBMITTED.value:
        raise ForbiddenError("Only submitted requests can be withdrawn")

    db.session.delete(req)
    commit("deletion_failed")
    return ok(None, message="Maintenance request deleted successfully")


@bp.post("/maintenance/<int:request_id>/assign")
@admin_required
def assign_request(request_id):
    req = db.get_or_404(MaintenanceRequest, request_id)
    data = json_body()
    require_fields(data, ["assigned_to"])

    try:
        req.assign(
            data["assigned_to"],
            estimated_completion=parse_datetime(data.get("estimated_completion"), "estimated_completion"),
            notes=data.get("notes"),
            vendor=data.get("vendor"),
        )
    except ValueError as e:
        raise ApiError(400, "invalid_state", str(e))

    commit("update_failed")
    return ok(req.serialize(), message="Maintenance request assigned")


@bp.post("/maintenance/<int:request_id>/complete")
@admin_required
def complete_request(request_id):
    req = db.get_or_404(MaintenanceRequest, request_id)
    data = json_body()

    actual_cost = data.get("actual_cost")
    if actual_cost is not None:
        actual_cost = parse_amount(actual_cost, "actual_cost", allow_zero=True)
    try:
        req.complete(data.get("completion_notes"), actual_cost, data.get("images"))
    except ValueError as e:
        raise ApiError(400, "invalid_state", str(e))

    notifications.maintenance_request_completed(req)
    commit("update_failed")
    return ok(req.serialize(), message="Maintenance request completed")

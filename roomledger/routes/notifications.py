from datetime import date, datetime

from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from ..errors import ForbiddenError, ValidationError
from ..extensions import db
from ..models import Notification, User
from ..models.enums import NotificationPriority, NotificationStatus, NotificationType
from ..security import admin_required, current_user, is_admin
from ..services import notifications as generators
from ..utils.db import commit
from ..utils.requests import (
    json_body, ok, paginated, parse_choice, parse_date, reject_blank, require_fields,
)

bp = Blueprint("notifications", __name__)


def _filtered(query):
    for field, enum_cls in (
        ("status", NotificationStatus),
        ("type", NotificationType),
        ("priority", NotificationPriority),
    ):
        value = parse_choice(request.args.get(field), enum_cls, field)
        if value:
            query = query.filter(getattr(Notification, field) == value)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc())


def _owned(notification_id):
    notification = db.get_or_404(Notification, notification_id)
    if not is_admin() and notification.user_id != current_user().id:
        raise ForbiddenError("You can only access your own notifications")
    return notification


def _build(user_id, data):
    return Notification(
        user_id=user_id,
        type=parse_choice(data.get("type"), NotificationType, "type") or NotificationType.GENERAL.value,
        title=data["title"],
        message=data["message"],
        priority=parse_choice(data.get("priority"), NotificationPriority, "priority")
        or NotificationPriority.NORMAL.value,
        related_id=data.get("related_id"),
        related_type=data.get("related_type"),
        action_url=data.get("action_url"),
    )


@bp.get("/notifications")
@jwt_required()
def list_own():
    query = Notification.query.filter(Notification.user_id == current_user().id)
    return paginated(_filtered(query))


@bp.get("/notifications/all")
@admin_required
def list_all():
    query = Notification.query
    user_id = request.args.get("user_id", type=int)
    if user_id:
        query = query.filter(Notification.user_id == user_id)
    return paginated(_filtered(query))


@bp.get("/notifications/unread-count")
@jwt_required()
def unread_count():
    count = Notification.query.filter_by(
        user_id=current_user().id, status=NotificationStatus.UNREAD.value
    ).count()
    return ok({"count": count})


@bp.patch("/notifications/read-all")
@jwt_required()
def mark_all_read():
    unread = Notification.query.filter_by(
        user_id=current_user().id, status=NotificationStatus.UNREAD.value
    ).all()
    for notification in unread:
        notification.mark_read()
    commit("update_failed")
    return ok({"updated_count": len(unread)}, message="All notifications marked as read")


@bp.post("/notifications/bulk")
@admin_required
def create_bulk():
    data = json_body()
    require_fields(data, ["user_ids", "title", "message"])
    user_ids = data["user_ids"]
    if not isinstance(user_ids, list) or not user_ids:
        raise ValidationError("user_ids must be a non-empty list")

    users = User.query.filter(User.id.in_(user_ids)).all()
    if len(users) != len(set(user_ids)):
        raise ValidationError("One or more users do not exist")

    created = [_build(user.id, data) for user in users]
    db.session.add_all(created)
    commit("creation_failed")
    return ok([n.serialize() for n in created], 201, message=f"{len(created)} notifications created")


@bp.post("/notifications/generate")
@admin_required
def generate():
    """Run the scheduled generators now (as of ?date=YYYY-MM-DD, default today)"""
    today = parse_date(request.args.get("date"), "date") or date.today()
    counts = generators.generate_all(today)
    return ok(counts, message=f"{sum(counts.values())} notifications generated")


@bp.get("/notifications/<int:notification_id>")
@jwt_required()
def get_notification(notification_id):
    return ok(_owned(notification_id).serialize())


@bp.post("/notifications")
@admin_required
def create_notification():
    data = json_body()
    require_fields(data, ["user_id", "title", "message"])
    db.get_or_404(User, data["user_id"])

    notification = _build(data["user_id"], data)
    db.session.add(notification)
    commit("creation_failed")
    return ok(notification.serialize(), 201)


@bp.patch("/notifications/<int:notification_id>")
@bp.put("/notifications/<int:notification_id>")
@jwt_required()
def update_notification(notification_id):
    notification = _owned(notification_id)
    data = json_body()
    reject_blank(data, ["title", "message"])

    if "status" in data:
        notification.status = parse_choice(data["status"], NotificationStatus, "status", required=True)
        if notification.status == NotificationStatus.READ.value and notification.read_at is None:
            notification.read_at = datetime.utcnow()
    if is_admin():
        for field in ("title", "message", "action_url"):
            if field in data:
                setattr(notification, field, data[field])
        if "priority" in data:
            notification.priority = parse_choice(
                data["priority"], NotificationPriority, "priority", required=True)

    commit("update_failed")
    return ok(notification.serialize())


@bp.patch("/notifications/<int:notification_id>/read")
@jwt_required()
def mark_read(notification_id):
    notification = _owned(notification_id)
    notification.mark_read()
    commit("update_failed")
    return ok(notification.serialize())


@bp.delete("/notifications/<int:notification_id>")
@jwt_required()
def delete_notification(notification_id):
    notification = _owned(notification_id)
    db.session.delete(notification)
    commit("deletion_failed")
    return ok(None, message="Notification deleted successfully")

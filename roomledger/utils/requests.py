"""Helpers shared by the route modules for parsing query strings and payloads."""
import math
from datetime import date, datetime

from flask import jsonify, request
from sqlalchemy import asc, desc

from ..errors import ValidationError

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def json_body():
    return request.get_json(silent=True) or {}


def require_fields(data, fields):
    for field in fields:
        if data.get(field) in (None, ""):
            raise ValidationError(f"{field} is required")


def reject_blank(data, fields):
    """Fields an update may leave out but not clear."""
    for field in fields:
        if field in data and data[field] in (None, ""):
            raise ValidationError(f"{field} cannot be empty")


def parse_date(value, field="date", required=False):
    """Parse YYYY-MM-DD (or a full ISO timestamp) into a date."""
    if value in (None, ""):
        if required:
            raise ValidationError(f"{field} cannot be empty")
        return None
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}. Use YYYY-MM-DD")


def parse_datetime(value, field="date"):
    if value in (None, ""):
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        raise ValidationError(f"Invalid {field}. Use ISO 8601")


def parse_amount(value, field="amount", allow_zero=False):
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise ValidationError(f"{field} must be positive")
    return amount


def parse_choice(value, enum_cls, field, required=False):
    if value in (None, ""):
        if required:
            raise ValidationError(f"{field} cannot be empty")
        return None
    value = str(value).upper()
    allowed = [m.value for m in enum_cls]
    if value not in allowed:
        raise ValidationError(f"Invalid {field}. Expected one of: {', '.join(allowed)}")
    return value


def parse_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).lower() in {"1", "true", "yes", "on"}


def page_args():
    try:
        page = max(1, int(request.args.get("page", 1)))
        limit = max(1, min(int(request.args.get("limit", DEFAULT_LIMIT)), MAX_LIMIT))
    except ValueError:
        raise ValidationError("page and limit must be integers")
    return page, limit


def apply_sort(query, model, default_field, default_order="desc"):
    sort_by = request.args.get("sort_by") or default_field
    sort_order = (request.args.get("sort_order") or default_order).lower()
    column = getattr(model, sort_by, None)
    if column is None or not hasattr(column, "desc"):
        raise ValidationError(f"Cannot sort by {sort_by}")
    return query.order_by(desc(column) if sort_order == "desc" else asc(column))


def paginated(query, serializer=None):
    """Run a paginated query and build the list envelope."""
    page, limit = page_args()
    total = query.order_by(None).count()
    items = query.limit(limit).offset((page - 1) * limit).all()
    serializer = serializer or (lambda obj: obj.serialize())
    return jsonify({
        "status": "success",
        "data": [serializer(item) for item in items],
        "pagination": {
            "currentPage": page,
            "totalPages": math.ceil(total / limit) if total else 0,
            "totalItems": total,
            "itemsPerPage": limit,
        },
    }), 200


def ok(data, status_code=200, message=None):
    body = {"status": "success", "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status_code

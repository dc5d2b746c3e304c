# roomledger/security/rbac.py
from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from sqlalchemy import false

from ..errors import ForbiddenError
from ..extensions import db
from ..models import User
from ..models.enums import UserRole


def require_role(allowed):
    """Usage: @require_role(['ADMIN'])"""
    allowed = {r.value if isinstance(r, UserRole) else r for r in allowed}

    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            role = get_jwt().get("role")
            if role not in allowed:
                return jsonify({
                    "status": "error",
                    "error": "forbidden",
                    "message": "Access denied. Required role: " + ", ".join(sorted(allowed)),
                }), 403
            return fn(*args, **kwargs)
        return wrapper
    return deco


admin_required = require_role([UserRole.ADMIN])


def current_user():
    """The User behind the JWT of the current request, or None."""
    try:
        uid = int(get_jwt_identity())
    except (TypeError, ValueError):
        return None
    return db.session.get(User, uid)


def is_admin():
    return get_jwt().get("role") == UserRole.ADMIN.value


def scope_to_renter(query, column):
    """Restrict a query to the current renter's rows; admins see everything."""
    if is_admin():
        return query
    user = current_user()
    if not user or user.renter_id is None:
        return query.filter(false())
    return query.filter(column == user.renter_id)


def ensure_owns(renter_id, message="Access denied"):
    if is_admin():
        return
    user = current_user()
    if not user or user.renter_id is None or user.renter_id != renter_id:
        raise ForbiddenError(message)

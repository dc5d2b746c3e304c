# roomledger/routes/auth.py
import logging

from flask import Blueprint, jsonify
from flask_jwt_extended import (
    create_access_token, create_refresh_token, decode_token,
    get_jwt, get_jwt_identity, jwt_required,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from sqlalchemy.exc import SQLAlchemyError

from ..errors import ApiError, ForbiddenError, ValidationError
from ..extensions import db
from ..models import Renter, RevokedToken, User
from ..models.enums import UserRole
from ..security import current_user
from ..utils.db import commit
from ..utils.requests import json_body, ok, parse_choice, require_fields

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)


def _tokens_for(user):
    claims = {"email": user.email, "role": user.role}
    access = create_access_token(identity=str(user.id), additional_claims=claims)
    refresh = create_refresh_token(identity=str(user.id), additional_claims=claims)
    return access, refresh


@bp.post("/auth/register")
def register():
    data = json_body()
    require_fields(data, ["name", "email", "password"])

    email = data["email"].strip().lower()
    if "@" not in email:
        raise ValidationError("Invalid email address")
    if len(data["password"]) < 6:
        raise ValidationError("Password must be at least 6 characters")
    if User.query.filter_by(email=email).first():
        raise ApiError(409, "conflict", "Email already registered")

    role = parse_choice(data.get("role"), UserRole, "role") or UserRole.RENTER.value
    if role != UserRole.RENTER.value:
        raise ForbiddenError("Only renter accounts can self-register")

    user = User(email=email, name=data["name"].strip(), role=role)
    user.set_password(data["password"])

    # Attach the account to a renter profile the landlord already created
    renter = Renter.query.filter(db.func.lower(Renter.email) == email).first()
    if renter:
        user.renter_id = renter.id

    try:
        db.session.add(user)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.exception("Registration failed for %s", email)
        raise ApiError(500, "creation_failed", str(e))

    logger.info("Registered user %s with role %s", user.email, user.role)
    access, refresh = _tokens_for(user)
    return ok({"user": user.serialize(), "access_token": access, "refresh_token": refresh}, 201)


@bp.post("/auth/login")
def login():
    data = json_body()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        raise ValidationError("email and password required")

    user = User.query.filter_by(email=email).first()
    if not user or user.is_active is False or not user.check_password(password):
        logger.warning("Failed login for %s", email)
        raise ApiError(401, "unauthorized", "Invalid email or password")

    access, refresh = _tokens_for(user)
    return ok({"user": user.serialize(), "access_token": access, "refresh_token": refresh})


@bp.post("/auth/refresh")
@jwt_required(refresh=True)
def refresh():
    claims = get_jwt()
    access = create_access_token(
        identity=get_jwt_identity(),
        additional_claims={"email": claims.get("email"), "role": claims.get("role")},
    )
    return jsonify(status="success", data={"access_token": access}), 200


@bp.get("/auth/me")
@jwt_required()
def me():
    user = current_user()
    if not user:
        raise ApiError(404, "not_found", "User not found")
    return ok(user.serialize())


@bp.post("/auth/logout")
@jwt_required()
def logout():
    """Revoke the access token, and the refresh token when the body carries one"""
    data = json_body()
    payloads = [get_jwt()]

    if data.get("refresh_token"):
        try:
            refresh_payload = decode_token(data["refresh_token"])
        except (PyJWTError, JWTExtendedException):
            raise ValidationError("refresh_token is invalid or expired")
        if refresh_payload.get("type") != "refresh" or refresh_payload.get("sub") != get_jwt_identity():
            raise ValidationError("refresh_token does not belong to this session")
        payloads.append(refresh_payload)

    for payload in payloads:
        RevokedToken.revoke(payload)
    RevokedToken.prune()
    commit("logout_failed")
    logger.info("User %s logged out (%d tokens revoked)", get_jwt_identity(), len(payloads))
    return ok(None, message="Logged out")

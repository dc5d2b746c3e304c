from flask import jsonify
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()


def _auth_error(message):
    return jsonify({"status": "error", "error": "unauthorized", "message": message}), 401


@jwt.token_in_blocklist_loader
def _is_token_revoked(jwt_header, jwt_payload):
    from .models import RevokedToken

    return RevokedToken.is_revoked(jwt_payload["jti"])


@jwt.unauthorized_loader
def _missing_token(reason):
    return _auth_error(reason)


@jwt.invalid_token_loader
def _invalid_token(reason):
    return _auth_error(reason)


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return _auth_error("Token has expired")


@jwt.revoked_token_loader
def _revoked_token(jwt_header, jwt_payload):
    return _auth_error("Token has been revoked")

# roomledger/errors.py
import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error raised by routes and services, rendered as the JSON error envelope."""

    def __init__(self, status_code, error, message):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.message = message

    def to_response(self):
        return jsonify({"status": "error", "error": self.error, "message": self.message}), self.status_code


class ValidationError(ApiError):
    def __init__(self, message):
        super().__init__(400, "validation_error", message)


class NotFoundError(ApiError):
    def __init__(self, message="Resource not found"):
        super().__init__(404, "not_found", message)


class ForbiddenError(ApiError):
    def __init__(self, message="Access denied"):
        super().__init__(403, "forbidden", message)


_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
    422: "unprocessable",
}


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def _api_error(e):
        return e.to_response()

    @app.errorhandler(HTTPException)
    def _http_error(e):
        code = _HTTP_ERROR_CODES.get(e.code, "http_error")
        message = e.description if e.code != 404 else f"Not Found: {request.path}"
        return jsonify({"status": "error", "error": code, "message": message}), e.code

    @app.errorhandler(500)
    def _server_error(e):
        logger.exception("Unhandled exception: %s", e)
        return jsonify({"status": "error", "error": "server_error", "message": "Internal Server Error"}), 500

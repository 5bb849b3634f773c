# Error types and the failure envelope
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

from models import db

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status and message."""

    status_code = 500
    default_message = 'Internal Server Error'

    def __init__(self, message=None, errors=None, status_code=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = list(errors or [])
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {
            "success": False,
            "message": self.message,
            "errors": self.errors
        }


class ValidationError(ApiError):
    status_code = 400
    default_message = 'Validation Error'


class InvalidRequest(ApiError):
    status_code = 400
    default_message = 'Invalid request'


class Unauthorized(ApiError):
    status_code = 401
    default_message = 'unauthorized request'


class InvalidToken(Unauthorized):
    default_message = 'invalid refresh token'


class Forbidden(ApiError):
    status_code = 403
    default_message = 'Not allowed'


class NotFound(ApiError):
    status_code = 404
    default_message = 'Resource not found'


class Conflict(ApiError):
    status_code = 409
    default_message = 'Resource already exists'


class InternalError(ApiError):
    pass


def error_response(status_code, message, errors=None):
    return jsonify({
        "success": False,
        "message": message,
        "errors": list(errors or [])
    }), status_code


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            db.session.rollback()
            logger.error("Request failed: %s", error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return error_response(error.code, error.description)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logger.exception("Unhandled error: %s", error)
        return error_response(500, InternalError.default_message)

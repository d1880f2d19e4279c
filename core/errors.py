import logging

from werkzeug.exceptions import HTTPException

from core.imports import jsonify, SQLAlchemyError
from core.extensions import db

logger = logging.getLogger(__name__)


class StorefrontError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(StorefrontError):
    status_code = 400


class AuthError(StorefrontError):
    status_code = 401


class ForbiddenError(StorefrontError):
    status_code = 403


class NotFoundError(StorefrontError):
    status_code = 404


class ConflictError(StorefrontError):
    status_code = 409


class OrderCreationError(StorefrontError):
    status_code = 500


def register_error_handlers(app):

    @app.errorhandler(StorefrontError)
    def handle_storefront_error(e):
        return jsonify({"error": e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        logger.exception("Database error")
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500

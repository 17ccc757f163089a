import logging

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .extensions import db

logger = logging.getLogger(__name__)


class RegistrarError(Exception):
    """Base for every failure that is turned into a JSON ``{"error": ...}`` body."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RegistrarError):
    status_code = 400
    default_message = "Invalid request"


class DuplicateKey(RegistrarError):
    status_code = 400
    default_message = "Already exists"


class Unauthorized(RegistrarError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(RegistrarError):
    status_code = 404
    default_message = "Not found"


class InvalidOrExpiredChallenge(RegistrarError):
    status_code = 400
    default_message = "Invalid or expired verification code"


class ChallengeNotFound(InvalidOrExpiredChallenge):
    default_message = "Invalid verification code"


class ChallengeExpired(InvalidOrExpiredChallenge):
    default_message = "Verification code expired"


class StorageFailure(RegistrarError):
    status_code = 500
    default_message = "Storage failure"


def register_error_handlers(app):
    @app.errorhandler(RegistrarError)
    def handle_registrar_error(err):
        return jsonify({"error": err.message}), err.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(err):
        db.session.rollback()
        logger.exception("Storage failure: %s", err)
        return jsonify({"error": StorageFailure.default_message}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({"error": err.description}), err.code

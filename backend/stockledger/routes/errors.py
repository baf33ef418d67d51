# Overview: Maps service exceptions to JSON error responses.

import logging

from flask import Flask
from werkzeug.exceptions import HTTPException

from ..extensions import db
from ..validation import BusinessRuleError, ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (BusinessRuleError, 422),
)


def _kind(exc: Exception) -> str:
    return exc.__class__.__name__.removesuffix("Error")


def error_body(exc: Exception, status: int) -> tuple[dict, int]:
    return {"error": _kind(exc), "message": str(exc), "status": status}, status


def register_error_handlers(app: Flask) -> None:
    for error_cls, status in STATUS_BY_ERROR:
        app.register_error_handler(error_cls, lambda exc, status=status: error_body(exc, status))

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        return {"error": exc.name, "message": exc.description, "status": exc.code}, exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        db.session.rollback()
        logger.exception("Unhandled error")
        return {"error": "InternalServerError", "message": "An unexpected error occurred", "status": 500}, 500

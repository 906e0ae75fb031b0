"""
CLIREC Onboarding Wizard API
Blueprint registry helpers.
"""

import logging

from flask import request
from sqlalchemy.exc import SQLAlchemyError

from clirec.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from clirec.models import db
from clirec.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def json_body() -> dict:
    """Parsed JSON object from the request; empty body → {}.

    Raises ValidationError when a body was sent but is not a JSON object.
    """
    if not request.get_data(cache=True):
        return {}
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(bp):
    """Map service-layer exceptions to JSON errors on ``bp``.

    NotFoundError → 404, ForbiddenError → 403, ValidationError → 400,
    ConflictError → 400, database/unexpected errors → 500 (logged, rolled
    back, details withheld).
    """

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        logger.info("Not found: %s", error)
        return api_error(E.NOT_FOUND, error.public_message)

    @bp.errorhandler(ForbiddenError)
    def _handle_forbidden(error: ForbiddenError):
        code = E.LOCKED if error.reason == "locked" else E.FORBIDDEN
        return api_error(code, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        logger.info("Conflict: %s", error)
        return api_error(E.CONFLICT_DUPLICATE, f"{error.resource} already exists")

    @bp.errorhandler(SQLAlchemyError)
    def _handle_database(error: SQLAlchemyError):
        db.session.rollback()
        logger.exception("Database error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.DATABASE, "Server error")

    return bp

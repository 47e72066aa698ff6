"""
Maturity Tracker
Blueprint registry and shared error handling.

Every API blueprint calls register_error_handlers() once so service-layer
exceptions map to the same status codes and JSON envelope everywhere:

    NotFoundError          → 404
    ValidationError        → 400
    ConflictError          → 409
    InvalidStateError      → 409
    InvalidTransitionError → 409
    AuthenticationError    → 401
    InternalError          → 500
"""

import logging

from flask import g, request
from werkzeug.exceptions import HTTPException

from maturity_tracker.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InternalError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from maturity_tracker.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def register_error_handlers(bp):
    """Attach the service-exception handlers to a blueprint."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, str(error), details={error.field: error.value})

    @bp.errorhandler(InvalidStateError)
    def _handle_invalid_state(error: InvalidStateError):
        details = {"state": error.state} if error.state else None
        return api_error(E.CONFLICT_STATE, str(error), details=details)

    @bp.errorhandler(InvalidTransitionError)
    def _handle_invalid_transition(error: InvalidTransitionError):
        return api_error(
            E.CONFLICT_TRANSITION, str(error),
            details={"current": error.current, "requested": error.requested},
        )

    @bp.errorhandler(AuthenticationError)
    def _handle_unauthenticated(error: AuthenticationError):
        return api_error(E.UNAUTHORIZED, str(error))

    @bp.errorhandler(InternalError)
    def _handle_internal(error: InternalError):
        return api_error(E.DATABASE, "Internal server error")

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return error
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")


def json_body() -> dict:
    """Request JSON as a dict ({} for a missing or non-object body)."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def current_user_id() -> int | None:
    return getattr(g, "current_user_id", None)

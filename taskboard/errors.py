"""Typed application errors.

Every error a service can raise on purpose lives here. The app-level
error handler in create_app() maps them to HTTP responses in one place:

    ValidationError   400   malformed / out-of-range input
    Unauthenticated   401   no valid caller identity
    Forbidden         403   authenticated but not permitted
    ResourceNotFound  404   referenced entity does not exist
    Conflict          409   duplicate award, stale position, state clash
    UpstreamFailure   503   store unreachable or unexpected store error
"""


class AppError(Exception):
    """Base for all typed errors. Carries an HTTP status and a short code."""

    status_code = 500
    code = "internal_error"
    default_message = "Unexpected error."

    def __init__(self, message=None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        payload = {"error": self.message, "code": self.code}
        payload.update(self.details)
        return payload


class ValidationError(AppError, ValueError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid input."


class InvalidPoints(ValidationError):
    code = "invalid_points"
    default_message = "Points must be a positive whole number."


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required."


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    default_message = "You do not have permission to perform this action."

    def __init__(self, message=None, reason=None, **details):
        self.reason = reason
        if reason is not None:
            details["reason"] = reason
        super().__init__(message, **details)


class ResourceNotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Request conflicts with the current state."


class AlreadyCompleted(Conflict):
    code = "already_completed"
    default_message = "Task is already completed."


class AlreadyAwarded(Conflict):
    code = "already_awarded"
    default_message = "Points were already awarded for this task."


class InsufficientPoints(Conflict):
    code = "insufficient_points"
    default_message = "Insufficient points."


class UpstreamFailure(AppError):
    status_code = 503
    code = "upstream_failure"
    default_message = "The data store is unavailable. Try again later."

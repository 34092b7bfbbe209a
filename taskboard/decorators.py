"""
Request helpers shared by the API blueprints.

- api_login_required: ensures the caller is logged in; 401 JSON otherwise.
- json_body: the request's JSON object, or a 400 if there isn't one.
- services: the per-request service set, built once and kept on `g`.
"""

from functools import wraps

from flask import g, request
from flask_login import current_user

from taskboard.errors import Unauthenticated, ValidationError
from taskboard.extensions import db


def api_login_required(f):
    """Require a logged-in, active user."""

    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            raise Unauthenticated()
        return f(*args, **kwargs)

    return decorated


def json_body():
    """Parsed JSON object from the request body.

    Raises:
        ValidationError: Body is missing, malformed, or not an object.
    """
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def services():
    """Services wired around db.session for the current request."""
    if "services" not in g:
        from taskboard.services import build_services

        g.services = build_services(db.session)
    return g.services


def actor():
    """The current user object (not the LocalProxy) for passing to services."""
    return current_user._get_current_object()

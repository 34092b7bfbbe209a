"""Auth blueprint — /auth/*

JSON registration, login, logout and session introspection.
Sessions are cookie-based (Flask-Login); state-changing requests from a
browser carry the token from /auth/csrf-token in the X-CSRFToken header.
"""

import logging

from flask import Blueprint, jsonify
from flask_login import current_user, login_user, logout_user
from flask_wtf.csrf import generate_csrf
from werkzeug.security import check_password_hash, generate_password_hash

from taskboard import permissions
from taskboard.decorators import api_login_required, json_body, services
from taskboard.errors import Conflict, Unauthenticated, ValidationError
from taskboard.extensions import limiter
from taskboard.serializers import user_dict
from taskboard.services.validation import require_text

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

PASSWORD_MIN_LENGTH = 8


# ──────────────────────────────────────────────
# POST /auth/register
# ──────────────────────────────────────────────

@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per minute")
def register():
    """Create an account and log it in.

    New accounts are members without a team; an admin or a team manager
    places them. The very first account becomes the admin.
    """
    data = json_body()
    email = (data.get("email") or "").lower().strip()
    password = data.get("password") or ""
    display_name = require_text(
        data.get("display_name"), "display_name", max_length=255
    )

    # --- Validation ---
    if not email or "@" not in email:
        raise ValidationError("A valid email is required.", field="email")
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters.",
            field="password",
        )

    repo = services().repository
    if repo.get_user_by_email(email):
        raise Conflict("An account with this email already exists.")

    # First user gets "admin", subsequent users get "member"
    role = permissions.MEMBER if repo.has_users() else permissions.ADMIN

    user = repo.create_user(
        email=email,
        password_hash=generate_password_hash(password),
        display_name=display_name,
        role=role,
    )
    repo.add_audit("user.registered", actor_user_id=user.id, email=email)
    repo.commit()

    login_user(user)
    logger.info(f"Registered user {user.id} ({role})")
    return jsonify(user_dict(user)), 201


# ──────────────────────────────────────────────
# POST /auth/login
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("15 per minute")
def login():
    """Email + password login."""
    data = json_body()
    email = (data.get("email") or "").lower().strip()
    password = data.get("password") or ""
    remember = bool(data.get("remember"))

    if not email or not password:
        raise ValidationError("Email and password are required.")

    user = services().repository.get_user_by_email(email)

    if user is None or not check_password_hash(user.password_hash, password):
        logger.warning(f"Failed login for {email}")
        raise Unauthenticated("Invalid email or password.")

    if not user.is_active:
        raise Unauthenticated("Your account has been deactivated.")

    login_user(user, remember=remember)
    return jsonify(user_dict(user))


# ──────────────────────────────────────────────
# POST /auth/logout
# ──────────────────────────────────────────────

@auth_bp.route("/logout", methods=["POST"])
def logout():
    logout_user()
    return jsonify({"success": True})


# ──────────────────────────────────────────────
# GET /auth/me, GET /auth/csrf-token
# ──────────────────────────────────────────────

@auth_bp.route("/me")
@api_login_required
def me():
    return jsonify(user_dict(current_user))


@auth_bp.route("/csrf-token")
def csrf_token():
    return jsonify({"csrf_token": generate_csrf()})

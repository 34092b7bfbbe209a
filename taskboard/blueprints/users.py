"""Users blueprint — /api/users/*

Route Map:
  GET   /api/users                 — All users (admin)
  PATCH /api/users/<id>            — Change role / team / active flag (admin)
  GET   /api/users/<id>/points     — A user's total, summed from the ledger
  POST  /api/users/<id>/points     — Manual award (admin)
"""

from flask import Blueprint, jsonify

from taskboard import permissions
from taskboard.decorators import actor, api_login_required, json_body, services
from taskboard.serializers import entry_dict, user_dict

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.route("", methods=["GET"])
@api_login_required
def list_users():
    users = services().users.list_users(actor())
    return jsonify([user_dict(u) for u in users])


@users_bp.route("/<user_id>", methods=["PATCH"])
@api_login_required
def update_user(user_id):
    user = services().users.update_user(actor(), user_id, json_body())
    return jsonify(user_dict(user))


# ─── Points ──────────────────────────────────────────────────────

@users_bp.route("/<user_id>/points", methods=["GET"])
@api_login_required
def user_points(user_id):
    permissions.require(actor(), "points.read")
    total = services().leaderboard.get_user_points(user_id)
    return jsonify({"user_id": user_id, "total_points": total})


@users_bp.route("/<user_id>/points", methods=["POST"])
@api_login_required
def award_points(user_id):
    data = json_body()
    entry = services().ledger.award_manual(
        actor(),
        user_id,
        data.get("points_earned"),
        notes=data.get("notes"),
    )
    return jsonify(entry_dict(entry)), 201

"""Points blueprint — own balance, history and the leaderboard.

Route Map:
  GET  /api/points                 — Caller's total and recent history
  GET  /api/points/history         — Caller's full history, newest first
  GET  /api/leaderboard?limit=N    — Standings (limit clamped to 1..1000)
"""

from contextlib import closing
from itertools import islice

from flask import Blueprint, current_app, jsonify, request

from taskboard import permissions
from taskboard.decorators import actor, api_login_required, services
from taskboard.serializers import entry_dict

points_bp = Blueprint("points", __name__, url_prefix="/api")

RECENT_HISTORY = 20


@points_bp.route("/points", methods=["GET"])
@api_login_required
def my_points():
    user = actor()
    permissions.require(user, "points.read")
    board = services().leaderboard
    with closing(board.iter_points_history(user.id)) as history:
        recent = [entry_dict(e) for e in islice(history, RECENT_HISTORY)]
    return jsonify({
        "user_id": user.id,
        "total_points": board.get_user_points(user.id),
        "recent": recent,
    })


@points_bp.route("/points/history", methods=["GET"])
@api_login_required
def my_history():
    user = actor()
    permissions.require(user, "points.read")
    entries = services().leaderboard.iter_points_history(user.id)
    return jsonify([entry_dict(e) for e in entries])


@points_bp.route("/leaderboard", methods=["GET"])
@api_login_required
def leaderboard():
    permissions.require(actor(), "leaderboard.read")
    limit = request.args.get(
        "limit", current_app.config.get("LEADERBOARD_DEFAULT_LIMIT")
    )
    return jsonify(services().leaderboard.get_leaderboard(limit))

"""Teams blueprint — /api/teams/*

Route Map:
  GET    /api/teams                              — Teams visible to the caller
  POST   /api/teams                              — Create team (admin)
  GET    /api/teams/<id>                         — Team detail
  PATCH  /api/teams/<id>                         — Rename (manager of team, admin)
  DELETE /api/teams/<id>                         — Delete (admin)
  GET    /api/teams/<id>/members                 — Members
  POST   /api/teams/<id>/members                 — Add member
  DELETE /api/teams/<id>/members/<user_id>       — Remove member
"""

from flask import Blueprint, jsonify

from taskboard.decorators import actor, api_login_required, json_body, services
from taskboard.serializers import team_dict, user_dict

teams_bp = Blueprint("teams", __name__, url_prefix="/api/teams")


@teams_bp.route("", methods=["GET"])
@api_login_required
def list_teams():
    teams = services().teams.list_teams(actor())
    return jsonify([team_dict(t) for t in teams])


@teams_bp.route("", methods=["POST"])
@api_login_required
def create_team():
    data = json_body()
    team = services().teams.create_team(actor(), data.get("name"))
    return jsonify(team_dict(team)), 201


@teams_bp.route("/<team_id>", methods=["GET"])
@api_login_required
def get_team(team_id):
    team = services().teams.get_team(actor(), team_id)
    return jsonify(team_dict(team))


@teams_bp.route("/<team_id>", methods=["PATCH"])
@api_login_required
def rename_team(team_id):
    data = json_body()
    team = services().teams.rename_team(actor(), team_id, data.get("name"))
    return jsonify(team_dict(team))


@teams_bp.route("/<team_id>", methods=["DELETE"])
@api_login_required
def delete_team(team_id):
    services().teams.delete_team(actor(), team_id)
    return "", 204


# ─── Members ─────────────────────────────────────────────────────

@teams_bp.route("/<team_id>/members", methods=["GET"])
@api_login_required
def list_members(team_id):
    members = services().teams.members(actor(), team_id)
    return jsonify([user_dict(u) for u in members])


@teams_bp.route("/<team_id>/members", methods=["POST"])
@api_login_required
def add_member(team_id):
    data = json_body()
    user = services().teams.add_member(actor(), team_id, data.get("user_id"))
    return jsonify(user_dict(user))


@teams_bp.route("/<team_id>/members/<user_id>", methods=["DELETE"])
@api_login_required
def remove_member(team_id, user_id):
    services().teams.remove_member(actor(), team_id, user_id)
    return "", 204

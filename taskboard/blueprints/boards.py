"""Boards blueprint — /api/boards/* and /api/lists/*

Route Map:
  GET    /api/boards                        — Boards for caller's team (admin: all, ?team_id=)
  POST   /api/boards                        — Create board
  GET    /api/boards/<id>                   — Board with lists and tasks
  PATCH  /api/boards/<id>                   — Update name/description
  DELETE /api/boards/<id>                   — Delete board (cascades lists, tasks)
  GET    /api/boards/<id>/lists             — Lists in position order
  POST   /api/boards/<id>/lists             — Create list
  PUT    /api/boards/<id>/lists/reorder     — Reorder lists
  PATCH  /api/lists/<id>                    — Update name/position
  DELETE /api/lists/<id>                    — Delete list (cascades tasks)
"""

from flask import Blueprint, jsonify, request

from taskboard.decorators import actor, api_login_required, json_body, services
from taskboard.serializers import board_dict, list_dict

boards_bp = Blueprint("boards", __name__, url_prefix="/api/boards")
lists_bp = Blueprint("lists", __name__, url_prefix="/api/lists")


# ─── Boards ──────────────────────────────────────────────────────

@boards_bp.route("", methods=["GET"])
@api_login_required
def list_boards():
    boards = services().boards.list_boards(
        actor(), team_id=request.args.get("team_id")
    )
    return jsonify([board_dict(b) for b in boards])


@boards_bp.route("", methods=["POST"])
@api_login_required
def create_board():
    data = json_body()
    board = services().boards.create_board(
        actor(),
        name=data.get("name"),
        description=data.get("description"),
        team_id=data.get("team_id"),
    )
    return jsonify(board_dict(board)), 201


@boards_bp.route("/<board_id>", methods=["GET"])
@api_login_required
def get_board(board_id):
    board = services().boards.get_board(actor(), board_id)
    return jsonify(board_dict(board, include_lists=True))


@boards_bp.route("/<board_id>", methods=["PATCH"])
@api_login_required
def update_board(board_id):
    board = services().boards.update_board(actor(), board_id, json_body())
    return jsonify(board_dict(board))


@boards_bp.route("/<board_id>", methods=["DELETE"])
@api_login_required
def delete_board(board_id):
    services().boards.delete_board(actor(), board_id)
    return "", 204


# ─── Lists on a board ────────────────────────────────────────────

@boards_bp.route("/<board_id>/lists", methods=["GET"])
@api_login_required
def board_lists(board_id):
    lists = services().boards.lists_for_board(actor(), board_id)
    return jsonify([list_dict(bl) for bl in lists])


@boards_bp.route("/<board_id>/lists", methods=["POST"])
@api_login_required
def create_list(board_id):
    data = json_body()
    blist = services().boards.create_list(
        actor(), board_id, data.get("name"), position=data.get("position")
    )
    return jsonify(list_dict(blist)), 201


@boards_bp.route("/<board_id>/lists/reorder", methods=["PUT"])
@api_login_required
def reorder_lists(board_id):
    data = json_body()
    services().boards.reorder_lists(actor(), board_id, data.get("lists"))
    return "", 204


# ─── Single list ─────────────────────────────────────────────────

@lists_bp.route("/<list_id>", methods=["PATCH"])
@api_login_required
def update_list(list_id):
    blist = services().boards.update_list(actor(), list_id, json_body())
    return jsonify(list_dict(blist))


@lists_bp.route("/<list_id>", methods=["DELETE"])
@api_login_required
def delete_list(list_id):
    services().boards.delete_list(actor(), list_id)
    return "", 204

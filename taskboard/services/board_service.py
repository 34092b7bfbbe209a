"""Boards and lists.

A board belongs to one team; lists are ordered columns on a board. List
positions are unique within a board. The store does not enforce that (a
reorder would trip over its own intermediate states), so it is checked here.
"""

import logging

from taskboard import permissions
from taskboard.errors import Conflict, ResourceNotFound, ValidationError
from taskboard.services.validation import (
    optional_id,
    optional_text,
    require_id,
    require_int,
    require_text,
)

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 1000


class BoardService:
    def __init__(self, repository, guard=permissions):
        self.repository = repository
        self.guard = guard

    # ─── Lookups ─────────────────────────────────────────────────

    def _load_board(self, board_id):
        board = self.repository.get_board(board_id)
        if board is None:
            raise ResourceNotFound(f"Board {board_id} not found.")
        return board

    def _load_list(self, list_id):
        blist = self.repository.get_list(list_id)
        if blist is None:
            raise ResourceNotFound(f"List {list_id} not found.")
        return blist

    # ─── Boards ──────────────────────────────────────────────────

    def list_boards(self, actor, team_id=None):
        """Boards visible to the actor.

        Admins see every board, or one team's with `team_id`. Everyone else
        sees their own team's boards (and nothing if they have no team).
        """
        if actor is not None and getattr(actor, "is_admin", False):
            if team_id:
                return self.repository.boards_for_team(team_id)
            return self.repository.all_boards()
        team_id = getattr(actor, "team_id", None)
        self.guard.require(actor, "board.read", team_id)
        return self.repository.boards_for_team(team_id)

    def get_board(self, actor, board_id):
        board = self._load_board(board_id)
        self.guard.require(actor, "board.read", board.team_id)
        return board

    def create_board(self, actor, name, description=None, team_id=None):
        """Create a board. Non-admins always create in their own team."""
        name = require_text(name, "name", max_length=NAME_MAX_LENGTH)
        description = optional_text(
            description, "description", max_length=DESCRIPTION_MAX_LENGTH
        )
        team_id = optional_id(team_id, "team_id")
        if team_id is None:
            team_id = getattr(actor, "team_id", None)
        if team_id is None:
            raise ValidationError("team_id is required.", field="team_id")
        if self.repository.get_team(team_id) is None:
            raise ResourceNotFound(f"Team {team_id} not found.")
        self.guard.require(actor, "board.create", team_id)

        board = self.repository.create_board(
            team_id=team_id,
            name=name,
            description=description,
            created_by=actor.id,
        )
        self.repository.add_audit(
            "board.created", actor_user_id=actor.id, team_id=team_id,
            board_id=board.id, name=name,
        )
        self.repository.commit()
        return board

    def update_board(self, actor, board_id, changes):
        cleaned = {}
        if "name" in changes:
            cleaned["name"] = require_text(
                changes["name"], "name", max_length=NAME_MAX_LENGTH
            )
        if "description" in changes:
            cleaned["description"] = optional_text(
                changes["description"],
                "description",
                max_length=DESCRIPTION_MAX_LENGTH,
            )
        if not cleaned:
            raise ValidationError("Nothing to update.")

        board = self._load_board(board_id)
        self.guard.require(actor, "board.update", board.team_id)
        for key, value in cleaned.items():
            setattr(board, key, value)
        self.repository.commit()
        return board

    def delete_board(self, actor, board_id):
        """Delete a board with its lists and tasks. The ledger is untouched."""
        board = self._load_board(board_id)
        team_id = board.team_id
        self.guard.require(actor, "board.delete", team_id)

        self.repository.add_audit(
            "board.deleted", actor_user_id=actor.id, team_id=team_id,
            board_id=board.id, name=board.name,
        )
        self.repository.delete_board(board)
        self.repository.commit()
        logger.info(f"Board {board_id} deleted by {actor.id}")

    # ─── Lists ───────────────────────────────────────────────────

    def lists_for_board(self, actor, board_id):
        board = self._load_board(board_id)
        self.guard.require(actor, "list.read", board.team_id)
        return self.repository.lists_for_board(board.id)

    def create_list(self, actor, board_id, name, position=None):
        """Add a list to a board, at the end unless `position` is given.

        Raises:
            Conflict: Another list on the board already has `position`.
        """
        name = require_text(name, "name", max_length=NAME_MAX_LENGTH)
        if position is not None:
            position = require_int(position, "position", minimum=0)

        board = self._load_board(board_id)
        self.guard.require(actor, "list.create", board.team_id)

        if position is None:
            position = self.repository.next_list_position(board.id)
        elif self.repository.list_position_taken(board.id, position):
            raise Conflict(
                f"Position {position} is already used on this board.",
                position=position,
            )

        blist = self.repository.create_list(board.id, name, position)
        self.repository.commit()
        return blist

    def update_list(self, actor, list_id, changes):
        cleaned = {}
        if "name" in changes:
            cleaned["name"] = require_text(
                changes["name"], "name", max_length=NAME_MAX_LENGTH
            )
        if "position" in changes:
            cleaned["position"] = require_int(
                changes["position"], "position", minimum=0
            )
        if not cleaned:
            raise ValidationError("Nothing to update.")

        blist = self._load_list(list_id)
        self.guard.require(actor, "list.update", blist.team_id)

        if "position" in cleaned and self.repository.list_position_taken(
            blist.board_id, cleaned["position"], exclude_id=blist.id
        ):
            raise Conflict(
                f"Position {cleaned['position']} is already used on this board.",
                position=cleaned["position"],
            )

        for key, value in cleaned.items():
            setattr(blist, key, value)
        self.repository.commit()
        return blist

    def delete_list(self, actor, list_id):
        """Delete a list with its tasks. The ledger is untouched."""
        blist = self._load_list(list_id)
        self.guard.require(actor, "list.delete", blist.team_id)
        self.repository.delete_list(blist)
        self.repository.commit()

    def reorder_lists(self, actor, board_id, items):
        """Apply new positions to a board's lists in one transaction.

        Args:
            items: List of {"id": list_id, "position": int}.

        Raises:
            ValidationError: Empty input, duplicate ids or positions,
                negative positions, or ids that are not lists of this board.
        """
        if not isinstance(items, list) or not items:
            raise ValidationError("Reorder requires a non-empty list of items.")

        positions = {}
        for item in items:
            if not isinstance(item, dict):
                raise ValidationError("Each item needs an id and a position.")
            list_id = require_id(item.get("id"), "id")
            position = require_int(item.get("position"), "position", minimum=0)
            if list_id in positions:
                raise ValidationError(f"Duplicate list id {list_id}.")
            positions[list_id] = position
        if len(set(positions.values())) != len(positions):
            raise ValidationError("Duplicate positions are not allowed.")

        board = self._load_board(board_id)
        self.guard.require(actor, "list.reorder", board.team_id)

        lists = {blist.id: blist for blist in self.repository.lists_for_board(board.id)}
        unknown = [list_id for list_id in positions if list_id not in lists]
        if unknown:
            raise ValidationError(
                "Some lists do not belong to this board.", list_ids=unknown
            )

        # Lists left out keep their positions, so they must not collide.
        untouched = {
            blist.position for list_id, blist in lists.items()
            if list_id not in positions
        }
        if untouched & set(positions.values()):
            raise Conflict("New positions collide with lists not being moved.")

        for list_id, position in positions.items():
            lists[list_id].position = position
        self.repository.commit()

"""Team management — create, rename, delete, membership.

Admins manage every team. A manager manages the membership of their own
team, and can only pull in users who are not on a team yet.
"""

import logging

from taskboard import permissions
from taskboard.errors import Conflict, ResourceNotFound
from taskboard.services.validation import require_id, require_text

logger = logging.getLogger(__name__)

TEAM_NAME_MAX_LENGTH = 255


class TeamService:
    def __init__(self, repository, guard=permissions):
        self.repository = repository
        self.guard = guard

    def _load_team(self, team_id):
        team = self.repository.get_team(team_id)
        if team is None:
            raise ResourceNotFound(f"Team {team_id} not found.")
        return team

    def _load_user(self, user_id):
        user = self.repository.get_user(user_id)
        if user is None:
            raise ResourceNotFound(f"User {user_id} not found.")
        return user

    # ─── Reads ───────────────────────────────────────────────────

    def list_teams(self, actor):
        """All teams for admins; the actor's own team for everyone else."""
        if self.guard.authorize(actor, "team.list_all"):
            return self.repository.list_teams()
        team_id = getattr(actor, "team_id", None)
        self.guard.require(actor, "team.read", team_id)
        return [self._load_team(team_id)]

    def get_team(self, actor, team_id):
        team = self._load_team(team_id)
        self.guard.require(actor, "team.read", team.id)
        return team

    def members(self, actor, team_id):
        team = self._load_team(team_id)
        self.guard.require(actor, "team.read", team.id)
        return self.repository.team_members(team.id)

    # ─── Mutations ───────────────────────────────────────────────

    def create_team(self, actor, name):
        name = require_text(name, "name", max_length=TEAM_NAME_MAX_LENGTH)
        self.guard.require(actor, "team.create")

        team = self.repository.create_team(name)
        self.repository.add_audit(
            "team.created", actor_user_id=actor.id, team_id=team.id, name=name
        )
        self.repository.commit()
        logger.info(f"Team {team.id} created by {actor.id}")
        return team

    def rename_team(self, actor, team_id, name):
        name = require_text(name, "name", max_length=TEAM_NAME_MAX_LENGTH)
        team = self._load_team(team_id)
        self.guard.require(actor, "team.update", team.id)

        team.name = name
        self.repository.commit()
        return team

    def delete_team(self, actor, team_id):
        """Delete a team with its boards. Members are left without a team."""
        team = self._load_team(team_id)
        self.guard.require(actor, "team.delete")

        self.repository.add_audit(
            "team.deleted", actor_user_id=actor.id, team_id=None,
            deleted_team_id=team.id, name=team.name,
        )
        self.repository.delete_team(team)
        self.repository.commit()
        logger.info(f"Team {team_id} deleted by {actor.id}")

    def add_member(self, actor, team_id, user_id):
        """Put a user on a team.

        Raises:
            Conflict: A manager tried to take a user from another team.
        """
        user_id = require_id(user_id, "user_id")
        team = self._load_team(team_id)
        self.guard.require(actor, "team.manage_members", team.id)
        user = self._load_user(user_id)

        if user.team_id == team.id:
            return user
        if user.team_id is not None and not actor.is_admin:
            raise Conflict("User already belongs to another team.")

        user.team_id = team.id
        self.repository.add_audit(
            "team.member_added", actor_user_id=actor.id, team_id=team.id,
            user_id=user.id,
        )
        self.repository.commit()
        return user

    def remove_member(self, actor, team_id, user_id):
        team = self._load_team(team_id)
        self.guard.require(actor, "team.manage_members", team.id)
        user = self._load_user(user_id)
        if user.team_id != team.id:
            raise ResourceNotFound("User is not a member of this team.")

        user.team_id = None
        self.repository.add_audit(
            "team.member_removed", actor_user_id=actor.id, team_id=team.id,
            user_id=user.id,
        )
        self.repository.commit()

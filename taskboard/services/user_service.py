"""User administration — admins list users and change roles and teams."""

import logging

from taskboard import permissions
from taskboard.errors import ResourceNotFound, ValidationError
from taskboard.services.validation import optional_id

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("role", "team_id", "is_active")


class UserService:
    def __init__(self, repository, guard=permissions):
        self.repository = repository
        self.guard = guard

    def list_users(self, actor):
        self.guard.require(actor, "user.manage")
        return self.repository.list_users()

    def update_user(self, actor, user_id, changes):
        """Change a user's role, team or active flag.

        Raises:
            ValidationError: Unknown field, unknown role, or non-bool is_active.
            ResourceNotFound: User or team does not exist.
        """
        self.guard.require(actor, "user.manage")

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Cannot update field(s): {', '.join(sorted(unknown))}."
            )
        if "role" in changes and changes["role"] not in permissions.ROLES:
            raise ValidationError(
                f"Role must be one of: {', '.join(permissions.ROLES)}.",
                field="role",
            )
        if "is_active" in changes and not isinstance(changes["is_active"], bool):
            raise ValidationError("is_active must be a boolean.", field="is_active")

        user = self.repository.get_user(user_id)
        if user is None:
            raise ResourceNotFound(f"User {user_id} not found.")
        team_id = optional_id(changes.get("team_id"), "team_id")
        if team_id is not None and self.repository.get_team(team_id) is None:
            raise ResourceNotFound(f"Team {team_id} not found.")

        for key, value in changes.items():
            setattr(user, key, value)
        self.repository.add_audit(
            "user.updated", actor_user_id=actor.id, team_id=user.team_id,
            user_id=user.id, changes=changes,
        )
        self.repository.commit()
        logger.info(f"Admin {actor.id} updated user {user.id}: {changes}")
        return user

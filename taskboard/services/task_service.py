"""Task lifecycle — create, edit, move, assign, complete, delete.

A task is Open (completed_at NULL) or Completed (timestamp). The only state
transition is Open -> Completed; there is no un-complete. Edits, moves,
assignment changes and deletes are allowed in either state and never touch
the points ledger.

Completion is a compare-and-swap on completed_at, committed on its own,
followed by exactly one award attempt through the ledger. A Conflict or
UpstreamFailure from the award is logged and does not undo the completion;
the award can be retried later with retry_award(), which is idempotent.
"""

import logging
from datetime import datetime, timezone

from taskboard import permissions
from taskboard.errors import (
    AlreadyCompleted,
    Conflict,
    Forbidden,
    ResourceNotFound,
    UpstreamFailure,
    ValidationError,
)
from taskboard.models.task import Task
from taskboard.services.validation import (
    optional_id,
    optional_text,
    parse_datetime,
    require_id,
    require_int,
    require_text,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("title", "description", "story_points", "due_date")


def _validate_story_points(value):
    return require_int(value, "story_points", minimum=0)


def _validate_position(value):
    return require_int(value, "position", minimum=0)


class TaskLifecycle:
    """Owns every task mutation. Dependencies come in through the constructor."""

    def __init__(self, repository, ledger, guard=permissions):
        self.repository = repository
        self.ledger = ledger
        self.guard = guard

    # ─── Lookups ─────────────────────────────────────────────────

    def _load_task(self, task_id):
        task = self.repository.get_task(task_id)
        if task is None:
            raise ResourceNotFound(f"Task {task_id} not found.")
        return task

    def _load_list(self, list_id):
        blist = self.repository.get_list(list_id)
        if blist is None:
            raise ResourceNotFound(f"List {list_id} not found.")
        return blist

    def _check_assignee(self, user_id):
        if user_id is None:
            return None
        if self.repository.get_user(user_id) is None:
            raise ResourceNotFound("Assignee not found.")
        return user_id

    # ─── Reads ───────────────────────────────────────────────────

    def get_task(self, actor, task_id):
        task = self._load_task(task_id)
        self.guard.require(actor, "task.read", task.team_id)
        return task

    def tasks_for_list(self, actor, list_id):
        blist = self._load_list(list_id)
        self.guard.require(actor, "task.read", blist.team_id)
        return self.repository.tasks_for_list(list_id)

    def tasks_assigned_to(self, actor, user_id):
        """Tasks assigned to a user, filtered to what the actor may read."""
        tasks = self.repository.tasks_assigned_to(user_id)
        return [
            t for t in tasks
            if self.guard.authorize(actor, "task.read", t.team_id)
        ]

    # ─── Mutations ───────────────────────────────────────────────

    def create_task(self, actor, list_id, title, story_points=1, position=None,
                    description=None, assigned_to=None, due_date=None):
        """Create an open task at the end of a list (or at `position`).

        Raises:
            ValidationError: Empty/over-long title or description, negative
                or non-integer story_points/position, bad due_date.
            ResourceNotFound: List or assignee does not exist.
            Forbidden: Actor is not manager+ in the list's team.
        """
        title = require_text(title, "title", max_length=Task.TITLE_MAX_LENGTH)
        description = optional_text(
            description, "description", max_length=Task.DESCRIPTION_MAX_LENGTH
        )
        story_points = _validate_story_points(story_points)
        if position is not None:
            position = _validate_position(position)
        due_date = parse_datetime(due_date, "due_date")
        assigned_to = optional_id(assigned_to, "assigned_to")

        blist = self._load_list(list_id)
        self.guard.require(actor, "task.create", blist.team_id)
        self._check_assignee(assigned_to)

        if position is None:
            position = self.repository.next_task_position(list_id)

        task = self.repository.create_task(
            list_id=list_id,
            title=title,
            description=description,
            story_points=story_points,
            position=position,
            assigned_to=assigned_to,
            due_date=due_date,
        )
        self.repository.commit()
        return task

    def update_task(self, actor, task_id, changes):
        """Edit title, description, story_points and/or due_date.

        completed_at, list and assignee are not editable here; use
        complete_task, move_task and assign_task.
        """
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Cannot update field(s): {', '.join(sorted(unknown))}."
            )

        cleaned = {}
        if "title" in changes:
            cleaned["title"] = require_text(
                changes["title"], "title", max_length=Task.TITLE_MAX_LENGTH
            )
        if "description" in changes:
            cleaned["description"] = optional_text(
                changes["description"],
                "description",
                max_length=Task.DESCRIPTION_MAX_LENGTH,
            )
        if "story_points" in changes:
            cleaned["story_points"] = _validate_story_points(
                changes["story_points"]
            )
        if "due_date" in changes:
            cleaned["due_date"] = parse_datetime(changes["due_date"], "due_date")

        task = self._load_task(task_id)
        self.guard.require(actor, "task.update", task.team_id)

        for key, value in cleaned.items():
            setattr(task, key, value)
        self.repository.commit()
        return task

    def move_task(self, actor, task_id, list_id, position):
        """Move a task to another list/position. Completion and points untouched."""
        position = _validate_position(position)
        list_id = require_id(list_id, "list_id")

        task = self._load_task(task_id)
        self.guard.require(actor, "task.move", task.team_id)
        target = self._load_list(list_id)
        self.guard.require(actor, "task.move", target.team_id)

        task.list_id = target.id
        task.position = position
        self.repository.commit()
        return task

    def assign_task(self, actor, task_id, assigned_to):
        """Set or clear (None) the assignee. Manager/admin only."""
        assigned_to = optional_id(assigned_to, "assigned_to")
        task = self._load_task(task_id)
        self.guard.require(actor, "task.assign", task.team_id)
        self._check_assignee(assigned_to)

        task.assigned_to = assigned_to
        self.repository.commit()
        return task

    def complete_task(self, actor, task_id):
        """Mark a task completed and award its story points once.

        Members may only complete tasks assigned to them; managers and
        admins may complete any task in scope.

        Returns:
            The completed Task.

        Raises:
            ResourceNotFound: Task does not exist.
            Forbidden: Wrong team, or a member completing someone else's task.
            AlreadyCompleted: Task was already completed (including losing a
                race with a concurrent completion).
        """
        task = self._load_task(task_id)
        team_id = task.team_id
        self.guard.require(actor, "task.complete", team_id)

        if (
            not permissions.is_at_least(actor.role, permissions.MANAGER)
            and task.assigned_to != actor.id
        ):
            raise Forbidden(
                "Members can only complete tasks assigned to them.",
                reason=permissions.DenialReason.INSUFFICIENT_ROLE,
            )

        if task.completed_at is not None:
            raise AlreadyCompleted(task_id=task_id)

        now = datetime.now(timezone.utc)
        if not self.repository.mark_task_completed(task_id, now, actor.id):
            self.repository.rollback()
            raise AlreadyCompleted(task_id=task_id)
        self.repository.add_audit(
            "task.completed",
            actor_user_id=actor.id,
            team_id=team_id,
            task_id=task_id,
            story_points=task.story_points,
        )
        self.repository.commit()
        logger.info(f"Task {task_id} completed by user {actor.id}")

        self._award_after_completion(task_id, actor.id)

        return self.repository.refresh(self._load_task(task_id))

    def retry_award(self, actor, task_id):
        """Re-run the completion award for a completed task.

        Safe to call any number of times: a task that already has its award
        raises AlreadyAwarded instead of crediting twice. The points go to
        whoever completed the task, not to the caller.
        """
        task = self._load_task(task_id)
        self.guard.require(actor, "task.award", task.team_id)
        if task.completed_at is None:
            raise ValidationError("Task is not completed.")
        return self.ledger.award_for_task_completion(
            task_id, task.completed_by or actor.id
        )

    def delete_task(self, actor, task_id):
        """Delete a task. Points already earned for it are kept."""
        task = self._load_task(task_id)
        team_id = task.team_id
        self.guard.require(actor, "task.delete", team_id)

        self.repository.add_audit(
            "task.deleted",
            actor_user_id=actor.id,
            team_id=team_id,
            task_id=task_id,
            title=task.title,
        )
        self.repository.delete_task(task)
        self.repository.commit()

    # ─── Helpers ─────────────────────────────────────────────────

    def _award_after_completion(self, task_id, completing_user_id):
        try:
            self.ledger.award_for_task_completion(task_id, completing_user_id)
        except (Conflict, UpstreamFailure) as e:
            logger.warning(
                f"Award for completed task {task_id} not recorded "
                f"({e.code}): {e.message}"
            )

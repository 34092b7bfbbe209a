"""Points ledger — append-only writer for points_history.

Three ways points move:
- award_for_task_completion: automatic, once per completed task
- award_manual: admin-only grants to any user
- record_redemption: negative entry when a user buys a shop item

Exactly-once completion awards do not rely on the read-before-write check
alone: points_history.task_id is UNIQUE, so if two awards for the same task
race past the pre-check, the store rejects the second insert and the caller
gets AlreadyAwarded. Nothing here retries on its own.
"""

import logging

from taskboard import permissions
from taskboard.errors import (
    AlreadyAwarded,
    Conflict,
    InsufficientPoints,
    ResourceNotFound,
    ValidationError,
)
from taskboard.models.points import PointsHistoryEntry
from taskboard.models.user import User
from taskboard.services.validation import (
    calculate_task_points,
    optional_text,
    validate_manual_award,
)

logger = logging.getLogger(__name__)

NOTES_MAX_LENGTH = 500


class PointsLedger:
    def __init__(self, repository, guard=permissions):
        self.repository = repository
        self.session = repository.session
        self.guard = guard

    def completion_entry_for(self, task_id):
        """The task_complete entry for a task, or None."""
        return (
            self.session.query(PointsHistoryEntry)
            .filter_by(task_id=task_id, reason=PointsHistoryEntry.TASK_COMPLETE)
            .first()
        )

    def award_for_task_completion(self, task_id, completing_user_id):
        """Credit a completed task's story points, at most once per task.

        The user who completed the task is credited and recorded as
        awarded_by, whoever the assignee is.

        Returns:
            The new PointsHistoryEntry (committed).

        Raises:
            ResourceNotFound: Task or completing user does not exist.
            ValidationError: Task is not completed yet.
            AlreadyAwarded: A task_complete entry already exists.
            InvalidPoints: Task has negative story points.
            UpstreamFailure: Store error on commit.
        """
        task = self.repository.get_task(task_id)
        if task is None:
            raise ResourceNotFound(f"Task {task_id} not found.")
        if task.completed_at is None:
            raise ValidationError("Cannot award points for an open task.")

        if self.completion_entry_for(task_id) is not None:
            raise AlreadyAwarded(task_id=task_id)

        team_id = task.team_id
        points = calculate_task_points(task.story_points)

        recipient = self.repository.get_user(completing_user_id)
        if recipient is None:
            raise ResourceNotFound(f"User {completing_user_id} not found.")

        entry = self._append(
            recipient,
            points,
            PointsHistoryEntry.TASK_COMPLETE,
            task_id=task_id,
            awarded_by=completing_user_id,
        )
        self.repository.add_audit(
            "points.task_awarded",
            actor_user_id=completing_user_id,
            team_id=team_id,
            task_id=task_id,
            user_id=recipient.id,
            points=points,
        )
        try:
            self.repository.commit()
        except Conflict as e:
            # Lost a race with a concurrent award for the same task.
            raise AlreadyAwarded(task_id=task_id) from e

        logger.info(
            f"Awarded {points} points to user {recipient.id} for task {task_id}"
        )
        return entry

    def award_manual(self, actor, user_id, points_earned, notes=None):
        """Grant points to any user. Admin only.

        Returns:
            The new PointsHistoryEntry (committed).

        Raises:
            Unauthenticated / Forbidden: Actor is not an admin.
            InvalidPoints: points_earned is not a finite whole number > 0.
            ResourceNotFound: Target user does not exist.
        """
        self.guard.require(actor, "points.award")
        points = validate_manual_award(points_earned)
        notes = optional_text(notes, "notes", max_length=NOTES_MAX_LENGTH)

        user = self.repository.get_user(user_id)
        if user is None:
            raise ResourceNotFound(f"User {user_id} not found.")
        team_id = user.team_id

        entry = self._append(
            user,
            points,
            PointsHistoryEntry.MANUAL_AWARD,
            awarded_by=actor.id,
            notes=notes,
        )
        self.repository.add_audit(
            "points.manual_award",
            actor_user_id=actor.id,
            team_id=team_id,
            user_id=user.id,
            points=points,
        )
        self.repository.commit()

        logger.info(f"Admin {actor.id} awarded {points} points to user {user.id}")
        return entry

    def record_redemption(self, user_id, points_spent, notes=None):
        """Debit points for a redemption. Flushes; the caller commits.

        The cached balance is decremented with a conditional UPDATE, so two
        concurrent redemptions cannot both spend the same points.

        Raises:
            InsufficientPoints: Balance is lower than points_spent.
        """
        debited = (
            self.session.query(User)
            .filter(User.id == user_id, User.total_points >= points_spent)
            .update(
                {User.total_points: User.total_points - points_spent},
                synchronize_session=False,
            )
        )
        if debited != 1:
            raise InsufficientPoints(
                required=points_spent,
                available=self.balance(user_id),
            )

        entry = PointsHistoryEntry(
            user_id=user_id,
            points_earned=-points_spent,
            reason=PointsHistoryEntry.REDEMPTION,
            notes=notes,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def balance(self, user_id):
        """Cached total for a user (0 if unknown)."""
        user = self.repository.get_user(user_id)
        if user is None:
            return 0
        self.session.refresh(user, ["total_points"])
        return user.total_points or 0

    def _append(self, user, points, reason, task_id=None, awarded_by=None,
                notes=None):
        entry = PointsHistoryEntry(
            user_id=user.id,
            points_earned=points,
            reason=reason,
            task_id=task_id,
            awarded_by=awarded_by,
            notes=notes,
        )
        self.session.add(entry)
        # SQL-side increment so concurrent awards cannot lose an update.
        user.total_points = User.total_points + points
        return entry

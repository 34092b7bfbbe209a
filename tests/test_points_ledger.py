"""Tests for the points ledger (taskboard/services/points_service.py).

Covers:
- Story points convert 1:1 into awarded points
- Completion awards: preconditions, at-most-once (pre-check and store
  constraint), cached total kept in step
- Manual awards: admin only, input validation, unknown users
- Redemptions: conditional debit, insufficient balance
- Append-only ledger rows
"""

import math
from datetime import datetime, timezone

import pytest

from taskboard.errors import (
    AlreadyAwarded,
    Forbidden,
    InsufficientPoints,
    InvalidPoints,
    ResourceNotFound,
    ValidationError,
)
from taskboard.models.points import PointsHistoryEntry
from taskboard.services.validation import calculate_task_points, validate_manual_award


# ─── Helpers ───────────────────────────────────────────────

def _mark_completed(db_session, task):
    task.completed_at = datetime.now(timezone.utc)
    db_session.commit()
    return task


class TestCalculateTaskPoints:
    @pytest.mark.parametrize("story_points", [0, 1, 2, 3, 5, 8, 13, 100])
    def test_one_to_one(self, story_points):
        assert calculate_task_points(story_points) == story_points

    @pytest.mark.parametrize("story_points", [-1, 1.5, "5", None, True])
    def test_rejects_non_integers_and_negatives(self, story_points):
        with pytest.raises(InvalidPoints):
            calculate_task_points(story_points)


class TestAwardForTaskCompletion:
    @pytest.mark.parametrize("story_points", [0, 1, 2, 3, 5, 8, 13, 100])
    def test_awards_story_points(self, services, seed_data, db_session, story_points):
        task = seed_data["task"]
        task.story_points = story_points
        _mark_completed(db_session, task)

        entry = services.ledger.award_for_task_completion(
            task.id, seed_data["member"].id
        )

        assert entry.points_earned == story_points
        assert entry.task_id == task.id
        assert entry.user_id == seed_data["member"].id
        assert seed_data["member"].total_points == story_points

    def test_open_task_rejected(self, services, seed_data):
        with pytest.raises(ValidationError):
            services.ledger.award_for_task_completion(
                seed_data["task_id"], seed_data["manager"].id
            )

    def test_missing_task(self, services, seed_data):
        with pytest.raises(ResourceNotFound):
            services.ledger.award_for_task_completion("nope", seed_data["manager"].id)

    def test_second_award_rejected_by_precheck(self, services, seed_data, db_session):
        task = _mark_completed(db_session, seed_data["task"])
        services.ledger.award_for_task_completion(task.id, seed_data["member"].id)

        with pytest.raises(AlreadyAwarded):
            services.ledger.award_for_task_completion(task.id, seed_data["member"].id)

        assert PointsHistoryEntry.query.filter_by(task_id=task.id).count() == 1
        assert seed_data["member"].total_points == 5

    def test_second_award_rejected_by_store(self, services, seed_data, db_session,
                                            monkeypatch):
        """Two awards racing past the pre-check: the unique constraint wins."""
        task = _mark_completed(db_session, seed_data["task"])
        services.ledger.award_for_task_completion(task.id, seed_data["member"].id)

        monkeypatch.setattr(services.ledger, "completion_entry_for", lambda task_id: None)
        with pytest.raises(AlreadyAwarded):
            services.ledger.award_for_task_completion(task.id, seed_data["member"].id)

        assert PointsHistoryEntry.query.filter_by(task_id=task.id).count() == 1
        assert seed_data["member"].total_points == 5

    def test_credits_completing_user_not_assignee(self, services, seed_data, db_session):
        task = _mark_completed(db_session, seed_data["task"])
        entry = services.ledger.award_for_task_completion(
            task.id, seed_data["manager"].id
        )
        assert entry.user_id == seed_data["manager"].id
        assert entry.awarded_by == seed_data["manager"].id
        assert seed_data["manager"].total_points == 5
        assert seed_data["member"].total_points == 0

    def test_unassigned_credits_completer(self, services, seed_data, db_session):
        task = _mark_completed(db_session, seed_data["unassigned"])
        entry = services.ledger.award_for_task_completion(
            task.id, seed_data["manager"].id
        )
        assert entry.user_id == seed_data["manager"].id


class TestAwardManual:
    def test_admin_awards_points(self, services, seed_data):
        member = seed_data["member"]
        entry = services.ledger.award_manual(
            seed_data["admin"], member.id, 25, notes="<i>Great</i> sprint"
        )
        assert entry.reason == PointsHistoryEntry.MANUAL_AWARD
        assert entry.points_earned == 25
        assert entry.task_id is None
        assert entry.awarded_by == seed_data["admin"].id
        assert entry.notes == "Great sprint"
        assert member.total_points == 25

    def test_integral_float_accepted(self, services, seed_data):
        entry = services.ledger.award_manual(
            seed_data["admin"], seed_data["member"].id, 100.0
        )
        assert entry.points_earned == 100
        assert isinstance(entry.points_earned, int)

    @pytest.mark.parametrize("points", [
        0, -5, 1.5, math.nan, math.inf, -math.inf, True, "10", None,
    ])
    def test_invalid_points(self, services, seed_data, points):
        with pytest.raises(InvalidPoints):
            services.ledger.award_manual(
                seed_data["admin"], seed_data["member"].id, points
            )
        assert PointsHistoryEntry.query.count() == 0

    @pytest.mark.parametrize("role_key", ["manager", "member"])
    def test_non_admin_forbidden(self, services, seed_data, role_key):
        with pytest.raises(Forbidden):
            services.ledger.award_manual(
                seed_data[role_key], seed_data["member"].id, 10
            )

    def test_unknown_user(self, services, seed_data):
        with pytest.raises(ResourceNotFound):
            services.ledger.award_manual(seed_data["admin"], "ghost", 10)

    def test_validation_helper_returns_int(self):
        assert validate_manual_award(7) == 7
        assert validate_manual_award(7.0) == 7


class TestRecordRedemption:
    def test_debits_balance(self, services, seed_data, db_session):
        member = seed_data["member"]
        services.ledger.award_manual(seed_data["admin"], member.id, 50)

        entry = services.ledger.record_redemption(member.id, 30, notes="Mug")
        db_session.commit()

        assert entry.points_earned == -30
        assert entry.reason == PointsHistoryEntry.REDEMPTION
        assert services.ledger.balance(member.id) == 20
        assert services.leaderboard.get_user_points(member.id) == 20

    def test_insufficient_points(self, services, seed_data, db_session):
        member = seed_data["member"]
        services.ledger.award_manual(seed_data["admin"], member.id, 10)

        with pytest.raises(InsufficientPoints) as exc:
            services.ledger.record_redemption(member.id, 30)
        db_session.rollback()

        assert exc.value.details == {"required": 30, "available": 10}
        assert services.ledger.balance(member.id) == 10

    def test_balance_for_unknown_user_is_zero(self, services):
        assert services.ledger.balance("ghost") == 0


class TestAppendOnly:
    def test_update_refused(self, services, seed_data, db_session):
        entry = services.ledger.award_manual(
            seed_data["admin"], seed_data["member"].id, 10
        )
        entry.points_earned = 1000
        with pytest.raises(ValueError, match="append-only"):
            db_session.flush()
        db_session.rollback()

    def test_delete_refused(self, services, seed_data, db_session):
        entry = services.ledger.award_manual(
            seed_data["admin"], seed_data["member"].id, 10
        )
        db_session.delete(entry)
        with pytest.raises(ValueError, match="append-only"):
            db_session.flush()
        db_session.rollback()

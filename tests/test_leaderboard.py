"""Tests for the leaderboard aggregator (taskboard/services/leaderboard_service.py).

Covers:
- Limit clamping
- Totals summed from the ledger (not the cached counter)
- Ordering: total desc, then user id asc
- Per-user totals and lazy, newest-first history
"""

import math
from datetime import datetime, timedelta, timezone
from itertools import islice

import pytest

from taskboard.errors import ResourceNotFound
from taskboard.models.points import PointsHistoryEntry
from taskboard.services.leaderboard_service import clamp_limit


# ─── Helpers ───────────────────────────────────────────────

def _entry(db_session, user, points, reason="manual_award", created_at=None,
           task_id=None):
    entry = PointsHistoryEntry(
        user_id=user.id,
        points_earned=points,
        reason=reason,
        task_id=task_id,
        created_at=created_at or datetime.now(timezone.utc),
    )
    db_session.add(entry)
    db_session.flush()
    return entry


class TestClampLimit:
    @pytest.mark.parametrize("raw,expected", [
        (None, 100),
        ("abc", 100),
        (math.nan, 100),
        ("nan", 100),
        (0, 1),
        (-10, 1),
        (1, 1),
        (50, 50),
        ("25", 25),
        (1000, 1000),
        (5000, 1000),
        (math.inf, 1000),
        (12.9, 12),
    ])
    def test_clamp(self, raw, expected):
        assert clamp_limit(raw) == expected

    def test_bool_uses_default(self):
        assert clamp_limit(True) == 100


class TestGetLeaderboard:
    def test_sorted_by_total(self, services, seed_data, db_session):
        _entry(db_session, seed_data["member"], 10)
        _entry(db_session, seed_data["manager"], 30)
        _entry(db_session, seed_data["beta_member"], 20)
        db_session.commit()

        board = services.leaderboard.get_leaderboard(limit=3)

        assert [row["user_id"] for row in board] == [
            seed_data["manager"].id,
            seed_data["beta_member"].id,
            seed_data["member"].id,
        ]
        assert [row["total_points"] for row in board] == [30, 20, 10]
        assert [row["rank"] for row in board] == [1, 2, 3]
        assert board[0]["display_name"] == seed_data["manager"].display_name

    def test_ties_broken_by_user_id(self, services, seed_data, db_session):
        a, b = seed_data["member"], seed_data["teammate"]
        _entry(db_session, a, 7)
        _entry(db_session, b, 7)
        db_session.commit()

        board = services.leaderboard.get_leaderboard(limit=2)
        assert [row["user_id"] for row in board] == sorted([a.id, b.id])

    def test_users_without_entries_show_zero(self, services, seed_data):
        board = services.leaderboard.get_leaderboard()
        assert len(board) == 7
        assert all(row["total_points"] == 0 for row in board)
        assert [row["user_id"] for row in board] == sorted(r["user_id"] for r in board)

    def test_limit_applied(self, services, seed_data):
        assert len(services.leaderboard.get_leaderboard(limit=0)) == 1
        assert len(services.leaderboard.get_leaderboard(limit=3)) == 3
        assert len(services.leaderboard.get_leaderboard(limit="junk")) == 7

    def test_sums_ledger_not_cached_counter(self, services, seed_data, db_session):
        member = seed_data["member"]
        member.total_points = 999  # stale cache must not leak into standings
        _entry(db_session, member, 12)
        _entry(db_session, member, -2, reason="redemption")
        db_session.commit()

        row = services.leaderboard.get_leaderboard(limit=1)[0]
        assert row["user_id"] == member.id
        assert row["total_points"] == 10


class TestGetUserPoints:
    def test_sum(self, services, seed_data, db_session):
        member = seed_data["member"]
        _entry(db_session, member, 5)
        _entry(db_session, member, 8)
        db_session.commit()
        assert services.leaderboard.get_user_points(member.id) == 13

    def test_no_entries_is_zero(self, services, seed_data):
        assert services.leaderboard.get_user_points(seed_data["loner"].id) == 0

    def test_unknown_user(self, services, seed_data):
        with pytest.raises(ResourceNotFound):
            services.leaderboard.get_user_points("ghost")


class TestPointsHistory:
    def test_newest_first(self, services, seed_data, db_session):
        member = seed_data["member"]
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        oldest = _entry(db_session, member, 1, created_at=base)
        newest = _entry(db_session, member, 3, created_at=base + timedelta(days=2))
        middle = _entry(db_session, member, 2, created_at=base + timedelta(days=1))
        db_session.commit()

        history = list(services.leaderboard.iter_points_history(member.id))
        assert [e.id for e in history] == [newest.id, middle.id, oldest.id]

    def test_only_own_entries(self, services, seed_data, db_session):
        _entry(db_session, seed_data["member"], 1)
        _entry(db_session, seed_data["teammate"], 2)
        db_session.commit()
        history = list(services.leaderboard.iter_points_history(seed_data["member"].id))
        assert [e.points_earned for e in history] == [1]

    def test_is_lazy_and_restartable(self, services, seed_data, db_session):
        member = seed_data["member"]
        _entry(db_session, member, 4)
        db_session.commit()

        history = services.leaderboard.iter_points_history(member.id)
        assert next(history).points_earned == 4
        assert list(history) == []

        # A fresh call sees entries added since the first one.
        _entry(db_session, member, 6)
        db_session.commit()
        assert len(list(services.leaderboard.iter_points_history(member.id))) == 2

    def test_closing_early_releases_the_query(self, services, seed_data, db_session):
        member = seed_data["member"]
        for points in (1, 2, 3):
            _entry(db_session, member, points)
        db_session.commit()

        history = services.leaderboard.iter_points_history(member.id)
        assert len(list(islice(history, 1))) == 1
        history.close()
        assert list(history) == []

        # The session is still usable for writes and new reads.
        _entry(db_session, member, 4)
        db_session.commit()
        assert services.leaderboard.get_user_points(member.id) == 10

    def test_empty_history(self, services, seed_data):
        assert list(services.leaderboard.iter_points_history(seed_data["loner"].id)) == []

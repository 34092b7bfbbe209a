"""Leaderboard aggregator — standings and totals summed from the ledger.

Totals are always computed from points_history, never read from the
cached users.total_points counter, so they cannot drift.
"""

import math

from sqlalchemy import func, select

from taskboard.errors import ResourceNotFound
from taskboard.models.points import PointsHistoryEntry
from taskboard.models.user import User

DEFAULT_LIMIT = 100
MIN_LIMIT = 1
MAX_LIMIT = 1000

HISTORY_BATCH_SIZE = 100


def clamp_limit(limit, default=DEFAULT_LIMIT):
    """Clamp a caller-supplied limit into [MIN_LIMIT, MAX_LIMIT].

    Missing or non-numeric values (None, "abc", NaN) give `default`.
    Numeric strings from a query string are accepted.
    """
    if isinstance(limit, bool):
        return default
    try:
        value = float(limit)
    except (TypeError, ValueError):
        return default
    if math.isnan(value):
        return default
    return int(min(max(value, MIN_LIMIT), MAX_LIMIT))


class Leaderboard:
    def __init__(self, session):
        self.session = session

    def get_leaderboard(self, limit=None):
        """Ranked standings, highest total first.

        Ties are broken by user id so pages are deterministic. Users with
        no ledger entries appear with 0.

        Returns:
            List of dicts: user_id, display_name, total_points, rank.
        """
        limit = clamp_limit(limit)
        total = func.coalesce(func.sum(PointsHistoryEntry.points_earned), 0)
        rows = (
            self.session.query(
                User.id,
                User.display_name,
                total.label("total_points"),
            )
            .outerjoin(PointsHistoryEntry, PointsHistoryEntry.user_id == User.id)
            .group_by(User.id, User.display_name)
            .order_by(total.desc(), User.id.asc())
            .limit(limit)
            .all()
        )
        return [
            {
                "user_id": row.id,
                "display_name": row.display_name,
                "total_points": int(row.total_points),
                "rank": index + 1,
            }
            for index, row in enumerate(rows)
        ]

    def get_user_points(self, user_id):
        """Sum of every ledger entry for the user.

        Raises:
            ResourceNotFound: Unknown user.
        """
        if self.session.get(User, user_id) is None:
            raise ResourceNotFound(f"User {user_id} not found.")
        total = (
            self.session.query(
                func.coalesce(func.sum(PointsHistoryEntry.points_earned), 0)
            )
            .filter(PointsHistoryEntry.user_id == user_id)
            .scalar()
        )
        return int(total)

    def iter_points_history(self, user_id):
        """Yield the user's ledger entries, newest first.

        Lazy and finite. Each call runs a fresh query; nothing is kept
        between calls. Closing the generator early closes the result.
        """
        stmt = (
            select(PointsHistoryEntry)
            .where(PointsHistoryEntry.user_id == user_id)
            .order_by(
                PointsHistoryEntry.created_at.desc(),
                PointsHistoryEntry.id.desc(),
            )
            .execution_options(yield_per=HISTORY_BATCH_SIZE)
        )
        result = self.session.execute(stmt).scalars()
        try:
            yield from result
        finally:
            result.close()

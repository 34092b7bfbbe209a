"""Service layer.

Services are plain classes wired together per request by build_services():
the repository wraps the session, the ledger writes points, and the guard
(taskboard.permissions by default) answers every authorization question.
"""

from types import SimpleNamespace

from taskboard import permissions
from taskboard.services.board_service import BoardService
from taskboard.services.leaderboard_service import Leaderboard
from taskboard.services.points_service import PointsLedger
from taskboard.services.repository import Repository
from taskboard.services.shop_service import ShopService
from taskboard.services.task_service import TaskLifecycle
from taskboard.services.team_service import TeamService
from taskboard.services.user_service import UserService


def build_services(session, guard=permissions):
    """Wire every service around one session."""
    repository = Repository(session)
    ledger = PointsLedger(repository, guard=guard)
    return SimpleNamespace(
        repository=repository,
        ledger=ledger,
        tasks=TaskLifecycle(repository, ledger, guard=guard),
        teams=TeamService(repository, guard=guard),
        users=UserService(repository, guard=guard),
        boards=BoardService(repository, guard=guard),
        shop=ShopService(repository, ledger, guard=guard),
        leaderboard=Leaderboard(session),
    )

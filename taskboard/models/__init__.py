# Import every model here so Alembic can discover them.

from taskboard.models.team import Team  # noqa: F401
from taskboard.models.user import User  # noqa: F401
from taskboard.models.board import Board, BoardList  # noqa: F401
from taskboard.models.task import Task  # noqa: F401
from taskboard.models.points import PointsHistoryEntry  # noqa: F401
from taskboard.models.shop import ShopItem, Redemption  # noqa: F401
from taskboard.models.audit import AuditEvent  # noqa: F401

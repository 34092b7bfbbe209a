"""Repository facade — CRUD against the relational store.

Wraps a SQLAlchemy session. Lookups return the model instance or None;
the services decide what "not found" means for their operation. Writes
add/flush only; commit() is the one place a transaction is closed, and it
translates store errors:

    IntegrityError          -> Conflict
    other SQLAlchemyError   -> UpstreamFailure

No retries happen here. An ambiguous failure (e.g. a timeout during commit)
is surfaced to the caller as-is.
"""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from taskboard.errors import Conflict, UpstreamFailure
from taskboard.models.audit import AuditEvent
from taskboard.models.board import Board, BoardList
from taskboard.models.task import Task
from taskboard.models.team import Team
from taskboard.models.user import User

logger = logging.getLogger(__name__)


class Repository:
    def __init__(self, session):
        self.session = session

    # ─── Transactions ────────────────────────────────────────────

    def commit(self):
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Integrity error on commit: {e.orig}")
            raise Conflict("The change conflicts with existing data.") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Store error on commit: {e}", exc_info=True)
            raise UpstreamFailure() from e

    def rollback(self):
        self.session.rollback()

    def flush(self):
        self.session.flush()

    def add_audit(self, action, actor_user_id=None, team_id=None, **metadata):
        """Queue an audit row in the current transaction."""
        event = AuditEvent(
            team_id=team_id,
            actor_user_id=actor_user_id,
            action=action,
            metadata_=metadata,
        )
        self.session.add(event)
        return event

    # ─── Teams ───────────────────────────────────────────────────

    def get_team(self, team_id):
        return self.session.get(Team, team_id)

    def list_teams(self):
        return self.session.query(Team).order_by(Team.name, Team.id).all()

    def create_team(self, name):
        team = Team(name=name)
        self.session.add(team)
        self.session.flush()
        return team

    def delete_team(self, team):
        self.session.delete(team)

    def team_members(self, team_id):
        return (
            self.session.query(User)
            .filter(User.team_id == team_id)
            .order_by(User.display_name, User.id)
            .all()
        )

    # ─── Users ───────────────────────────────────────────────────

    def get_user(self, user_id):
        if not user_id:
            return None
        return self.session.get(User, user_id)

    def get_user_by_email(self, email):
        return self.session.query(User).filter_by(email=email).first()

    def list_users(self):
        return self.session.query(User).order_by(User.email).all()

    def has_users(self):
        return self.session.query(User.id).first() is not None

    def create_user(self, email, password_hash, display_name, role="member",
                    team_id=None):
        user = User(
            email=email,
            password_hash=password_hash,
            display_name=display_name,
            role=role,
            team_id=team_id,
        )
        self.session.add(user)
        self.session.flush()
        return user

    # ─── Boards ──────────────────────────────────────────────────

    def get_board(self, board_id):
        return self.session.get(Board, board_id)

    def boards_for_team(self, team_id):
        return (
            self.session.query(Board)
            .filter(Board.team_id == team_id)
            .order_by(Board.created_at, Board.id)
            .all()
        )

    def all_boards(self):
        return (
            self.session.query(Board)
            .order_by(Board.created_at, Board.id)
            .all()
        )

    def create_board(self, team_id, name, description=None, created_by=None):
        board = Board(
            team_id=team_id,
            name=name,
            description=description,
            created_by=created_by,
        )
        self.session.add(board)
        self.session.flush()
        return board

    def delete_board(self, board):
        self.session.delete(board)

    # ─── Lists ───────────────────────────────────────────────────

    def get_list(self, list_id):
        return self.session.get(BoardList, list_id)

    def lists_for_board(self, board_id):
        return (
            self.session.query(BoardList)
            .filter(BoardList.board_id == board_id)
            .order_by(BoardList.position, BoardList.id)
            .all()
        )

    def next_list_position(self, board_id):
        max_pos = (
            self.session.query(func.max(BoardList.position))
            .filter(BoardList.board_id == board_id)
            .scalar()
        )
        return 0 if max_pos is None else max_pos + 1

    def list_position_taken(self, board_id, position, exclude_id=None):
        query = self.session.query(BoardList.id).filter(
            BoardList.board_id == board_id,
            BoardList.position == position,
        )
        if exclude_id is not None:
            query = query.filter(BoardList.id != exclude_id)
        return query.first() is not None

    def create_list(self, board_id, name, position):
        blist = BoardList(board_id=board_id, name=name, position=position)
        self.session.add(blist)
        self.session.flush()
        return blist

    def delete_list(self, blist):
        self.session.delete(blist)

    # ─── Tasks ───────────────────────────────────────────────────

    def get_task(self, task_id):
        return self.session.get(Task, task_id)

    def refresh(self, instance):
        self.session.refresh(instance)
        return instance

    def tasks_for_list(self, list_id):
        return (
            self.session.query(Task)
            .filter(Task.list_id == list_id)
            .order_by(Task.position, Task.created_at, Task.id)
            .all()
        )

    def tasks_assigned_to(self, user_id):
        return (
            self.session.query(Task)
            .filter(Task.assigned_to == user_id)
            .order_by(Task.created_at.desc(), Task.id)
            .all()
        )

    def next_task_position(self, list_id):
        max_pos = (
            self.session.query(func.max(Task.position))
            .filter(Task.list_id == list_id)
            .scalar()
        )
        return 0 if max_pos is None else max_pos + 1

    def create_task(self, **fields):
        task = Task(**fields)
        self.session.add(task)
        self.session.flush()
        return task

    def delete_task(self, task):
        self.session.delete(task)

    def mark_task_completed(self, task_id, completed_at, completed_by=None):
        """Compare-and-swap completed_at from NULL to `completed_at`, recording
        who completed the task.

        Returns True if this call flipped the task to completed, False if
        it was already completed (or does not exist). Concurrent callers
        are serialized by the store; only one sees True.
        """
        updated = (
            self.session.query(Task)
            .filter(Task.id == task_id, Task.completed_at.is_(None))
            .update(
                {Task.completed_at: completed_at, Task.completed_by: completed_by},
                synchronize_session=False,
            )
        )
        return updated == 1

"""Shared test fixtures for the taskboard test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- services: service set built around db_session
- seed_data: two teams with users of every role, a board, a list, tasks
- login: helper that logs a seeded user in through /auth/login

Tests run inside the app context opened by db_session, so objects from
seed_data stay attached to the same session as the services and routes.
"""

import pytest
from werkzeug.security import generate_password_hash

from taskboard import create_app
from taskboard.extensions import db as _db
from taskboard.models.board import Board, BoardList
from taskboard.models.task import Task
from taskboard.models.team import Team
from taskboard.models.user import User
from taskboard.services import build_services

PASSWORD = "password123"


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def services(db_session):
    return build_services(db_session)


def _make_user(db_session, email, role, team=None, display_name=None):
    user = User(
        email=email,
        password_hash=generate_password_hash(PASSWORD),
        display_name=display_name or email.split("@")[0].title(),
        role=role,
        team_id=team.id if team else None,
    )
    db_session.add(user)
    db_session.flush()
    return user


def _make_task(db_session, blist, title, story_points=1, position=0,
               assigned_to=None):
    task = Task(
        list_id=blist.id,
        title=title,
        story_points=story_points,
        position=position,
        assigned_to=assigned_to.id if assigned_to else None,
    )
    db_session.add(task)
    db_session.flush()
    return task


@pytest.fixture
def seed_data(db_session):
    """Seed two teams, one user per role, a board with a list and tasks.

    Returns a dict with all created objects and their ids.
    """
    # --- Teams ---
    alpha = Team(name="Alpha")
    beta = Team(name="Beta")
    db_session.add_all([alpha, beta])
    db_session.flush()

    # --- Users ---
    admin = _make_user(db_session, "admin@example.com", "admin", display_name="Admin")
    manager = _make_user(db_session, "manager@example.com", "manager", alpha)
    member = _make_user(db_session, "member@example.com", "member", alpha)
    teammate = _make_user(db_session, "teammate@example.com", "member", alpha)
    beta_manager = _make_user(db_session, "beta.manager@example.com", "manager", beta)
    beta_member = _make_user(db_session, "beta.member@example.com", "member", beta)
    loner = _make_user(db_session, "loner@example.com", "member")

    # --- Board + lists ---
    board = Board(name="Sprint 1", team_id=alpha.id, created_by=manager.id)
    db_session.add(board)
    db_session.flush()
    todo = BoardList(board_id=board.id, name="To Do", position=0)
    done = BoardList(board_id=board.id, name="Done", position=1)
    db_session.add_all([todo, done])
    db_session.flush()

    beta_board = Board(name="Beta Board", team_id=beta.id, created_by=beta_manager.id)
    db_session.add(beta_board)
    db_session.flush()
    beta_list = BoardList(board_id=beta_board.id, name="Backlog", position=0)
    db_session.add(beta_list)
    db_session.flush()

    # --- Tasks ---
    task = _make_task(db_session, todo, "Write docs", story_points=5,
                      assigned_to=member)
    unassigned = _make_task(db_session, todo, "Triage bugs", story_points=3,
                            position=1)
    beta_task = _make_task(db_session, beta_list, "Beta work", story_points=2,
                           assigned_to=beta_member)

    db_session.commit()

    return {
        "alpha": alpha,
        "alpha_id": alpha.id,
        "beta": beta,
        "beta_id": beta.id,
        "admin": admin,
        "manager": manager,
        "member": member,
        "teammate": teammate,
        "beta_manager": beta_manager,
        "beta_member": beta_member,
        "loner": loner,
        "board": board,
        "board_id": board.id,
        "todo": todo,
        "todo_id": todo.id,
        "done": done,
        "done_id": done.id,
        "beta_board": beta_board,
        "beta_list": beta_list,
        "task": task,
        "task_id": task.id,
        "unassigned": unassigned,
        "unassigned_id": unassigned.id,
        "beta_task": beta_task,
        "beta_task_id": beta_task.id,
    }


@pytest.fixture
def login(client):
    """Log a user in by email. Returns the response."""

    def _login(user_or_email, password=PASSWORD):
        email = getattr(user_or_email, "email", user_or_email)
        return client.post("/auth/login", json={
            "email": email,
            "password": password,
        })

    return _login

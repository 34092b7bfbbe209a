"""Board and list models.

- Board: a named collection of lists owned by one Team.
- BoardList: an ordered column of tasks within a board ("List" in the API;
  renamed here to keep clear of the builtin).

Deleting a board deletes its lists, and deleting a list deletes its tasks.
"""

import uuid

from taskboard.extensions import db


class Board(db.Model):
    __tablename__ = "boards"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    team_id = db.Column(
        db.String(36),
        db.ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_by = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    team = db.relationship("Team", back_populates="boards")
    creator = db.relationship("User", foreign_keys=[created_by])
    lists = db.relationship(
        "BoardList",
        back_populates="board",
        cascade="all, delete-orphan",
        order_by="BoardList.position",
    )

    def __repr__(self):
        return f"<Board {self.name}>"


class BoardList(db.Model):
    __tablename__ = "lists"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    board_id = db.Column(
        db.String(36),
        db.ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    board = db.relationship("Board", back_populates="lists")
    tasks = db.relationship(
        "Task",
        back_populates="list",
        cascade="all, delete-orphan",
        order_by="Task.position",
    )

    @property
    def team_id(self):
        return self.board.team_id

    def __repr__(self):
        return f"<BoardList {self.name} @{self.position}>"

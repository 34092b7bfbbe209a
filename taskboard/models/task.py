"""Task model.

A unit of work on a list. completed_at doubles as the state: NULL is open,
a timestamp is completed. It only ever moves from NULL to a timestamp
(enforced in task_service via a conditional UPDATE).
"""

import uuid

from taskboard.extensions import db


class Task(db.Model):
    __tablename__ = "tasks"

    TITLE_MAX_LENGTH = 200
    DESCRIPTION_MAX_LENGTH = 1000

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    list_id = db.Column(
        db.String(36),
        db.ForeignKey("lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = db.Column(db.String(TITLE_MAX_LENGTH), nullable=False)
    description = db.Column(db.Text, nullable=True)
    story_points = db.Column(db.Integer, nullable=False, default=1)
    assigned_to = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    position = db.Column(db.Integer, nullable=False, default=0)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_by = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __table_args__ = (
        db.CheckConstraint(
            "story_points >= 0", name="ck_tasks_story_points_non_negative"
        ),
    )

    # --- Relationships ---
    list = db.relationship("BoardList", back_populates="tasks")
    assignee = db.relationship(
        "User", foreign_keys=[assigned_to], back_populates="assigned_tasks"
    )

    @property
    def is_completed(self):
        return self.completed_at is not None

    @property
    def team_id(self):
        return self.list.board.team_id

    def __repr__(self):
        return f"<Task {self.title[:40]}>"

"""User model.

Stores authentication credentials, role and team membership.
Flask-Login integration via UserMixin.

total_points is a cached counter kept in step with the points ledger;
standings and per-user totals are always summed from the ledger itself.
"""

import uuid

from flask_login import UserMixin

from taskboard.extensions import db
from taskboard.permissions import ADMIN, MANAGER, MEMBER, ROLES


class User(UserMixin, db.Model):
    __tablename__ = "users"

    ROLES = list(ROLES)

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    display_name = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.String(20), nullable=False, default=MEMBER
    )  # admin | manager | member
    team_id = db.Column(
        db.String(36),
        db.ForeignKey("teams.id", ondelete="SET NULL"),
        nullable=True,
    )
    total_points = db.Column(db.Integer, nullable=False, default=0)
    avatar_url = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.CheckConstraint(
            "role IN ('admin', 'manager', 'member')", name="ck_users_role"
        ),
    )

    # --- Relationships ---
    team = db.relationship("Team", back_populates="members")
    assigned_tasks = db.relationship(
        "Task",
        foreign_keys="Task.assigned_to",
        back_populates="assignee",
        lazy="dynamic",
    )
    points_history = db.relationship(
        "PointsHistoryEntry",
        foreign_keys="PointsHistoryEntry.user_id",
        back_populates="user",
        lazy="dynamic",
    )
    audit_events = db.relationship(
        "AuditEvent", back_populates="actor", lazy="dynamic"
    )

    @property
    def is_admin(self):
        return self.role == ADMIN

    @property
    def is_manager(self):
        return self.role == MANAGER

    def __repr__(self):
        return f"<User {self.email}>"

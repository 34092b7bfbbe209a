"""Points ledger model (append-only).

Every point movement is one row: task completions, manual admin awards,
and shop redemptions (negative). Rows are never updated or deleted.

task_id is set only for task_complete rows and is UNIQUE, so the store
itself refuses a second completion award for the same task. It is not a
foreign key: deleting a task leaves its award row untouched.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import event

from taskboard.extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class PointsHistoryEntry(db.Model):
    __tablename__ = "points_history"

    # -- Valid reasons --
    TASK_COMPLETE = "task_complete"
    MANUAL_AWARD = "manual_award"
    REDEMPTION = "redemption"
    REASONS = [TASK_COMPLETE, MANUAL_AWARD, REDEMPTION]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    points_earned = db.Column(db.Integer, nullable=False)
    reason = db.Column(
        db.String(50), nullable=False
    )  # task_complete | manual_award | redemption
    task_id = db.Column(db.String(36), nullable=True)
    awarded_by = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=True
    )
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True),
        default=_utcnow,
        server_default=db.func.now(),
        nullable=False,
    )

    __table_args__ = (
        db.UniqueConstraint("task_id", name="uq_points_history_task_id"),
        db.CheckConstraint(
            "reason IN ('task_complete', 'manual_award', 'redemption')",
            name="ck_points_history_reason",
        ),
        db.CheckConstraint(
            "(reason = 'task_complete') = (task_id IS NOT NULL)",
            name="ck_points_history_task_id_only_for_completion",
        ),
        db.CheckConstraint(
            "reason <> 'manual_award' OR points_earned > 0",
            name="ck_points_history_manual_award_positive",
        ),
        db.Index("ix_points_history_user_created", "user_id", "created_at"),
    )

    # --- Relationships ---
    user = db.relationship(
        "User", foreign_keys=[user_id], back_populates="points_history"
    )
    awarder = db.relationship("User", foreign_keys=[awarded_by])

    def __repr__(self):
        return f"<PointsHistoryEntry {self.reason} {self.points_earned:+d}>"


@event.listens_for(PointsHistoryEntry, "before_update")
def _refuse_update(mapper, connection, target):
    raise ValueError("Points history entries are append-only.")


@event.listens_for(PointsHistoryEntry, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise ValueError("Points history entries are append-only.")

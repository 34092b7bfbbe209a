"""Team model.

The root scoping unit: every Board belongs to exactly one Team, and users
see team-specific data only for the team they belong to.
"""

import uuid

from taskboard.extensions import db


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    members = db.relationship("User", back_populates="team")
    boards = db.relationship(
        "Board",
        back_populates="team",
        cascade="all, delete-orphan",
    )
    audit_events = db.relationship(
        "AuditEvent",
        back_populates="team",
        lazy="dynamic",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Team {self.name}>"

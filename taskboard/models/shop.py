"""Points shop models.

- ShopItem: a reward users can buy with points.
- Redemption: one purchase. The matching negative ledger row lives in
  points_history with reason "redemption".
"""

import uuid

from taskboard.extensions import db


class ShopItem(db.Model):
    __tablename__ = "shop_items"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    point_cost = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(50), nullable=False, default="item")
    image_url = db.Column(db.String(500), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.CheckConstraint("point_cost > 0", name="ck_shop_items_point_cost"),
    )

    redemptions = db.relationship(
        "Redemption", back_populates="shop_item", lazy="dynamic"
    )

    def __repr__(self):
        return f"<ShopItem {self.name} ({self.point_cost})>"


class Redemption(db.Model):
    __tablename__ = "redemptions"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    shop_item_id = db.Column(
        db.String(36),
        db.ForeignKey("shop_items.id", ondelete="RESTRICT"),
        nullable=False,
    )
    points_spent = db.Column(db.Integer, nullable=False)
    redeemed_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.CheckConstraint(
            "points_spent > 0", name="ck_redemptions_points_spent"
        ),
    )

    user = db.relationship("User")
    shop_item = db.relationship("ShopItem", back_populates="redemptions")

    def __repr__(self):
        return f"<Redemption {self.shop_item_id} by {self.user_id}>"

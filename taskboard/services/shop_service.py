"""Points shop — spend earned points on rewards.

A redemption is three writes in one transaction: the conditional balance
decrement and negative ledger row (PointsLedger.record_redemption), and the
Redemption row itself. Either all land or none do.
"""

import logging

from taskboard import permissions
from taskboard.errors import Conflict, ResourceNotFound
from taskboard.models.shop import Redemption, ShopItem
from taskboard.services.validation import optional_text, require_int, require_text

logger = logging.getLogger(__name__)


class ShopService:
    def __init__(self, repository, ledger, guard=permissions):
        self.repository = repository
        self.session = repository.session
        self.ledger = ledger
        self.guard = guard

    def available_items(self, actor):
        self.guard.require(actor, "shop.read")
        return (
            self.session.query(ShopItem)
            .filter_by(is_active=True)
            .order_by(ShopItem.point_cost, ShopItem.name)
            .all()
        )

    def create_item(self, actor, name, point_cost, description=None,
                    category="item", image_url=None):
        name = require_text(name, "name", max_length=255)
        point_cost = require_int(point_cost, "point_cost", minimum=1)
        description = optional_text(description, "description", max_length=1000)
        category = optional_text(category, "category", max_length=50) or "item"
        image_url = optional_text(image_url, "image_url", max_length=500)
        self.guard.require(actor, "shop.manage")

        item = ShopItem(
            name=name,
            point_cost=point_cost,
            description=description,
            category=category,
            image_url=image_url,
        )
        self.session.add(item)
        self.repository.commit()
        return item

    def redeem_item(self, actor, item_id):
        """Buy `item_id` for the actor.

        Returns:
            The new Redemption (committed).

        Raises:
            ResourceNotFound: Unknown item.
            Conflict: Item is no longer available.
            InsufficientPoints: Balance is below the item's cost.
        """
        self.guard.require(actor, "shop.redeem")
        item = self.session.get(ShopItem, item_id)
        if item is None:
            raise ResourceNotFound(f"Shop item {item_id} not found.")
        if not item.is_active:
            raise Conflict("This item is no longer available.")

        try:
            self.ledger.record_redemption(
                actor.id, item.point_cost, notes=f"Redeemed: {item.name}"
            )
        except Conflict:
            self.repository.rollback()
            raise

        redemption = Redemption(
            user_id=actor.id,
            shop_item_id=item.id,
            points_spent=item.point_cost,
        )
        self.session.add(redemption)
        self.repository.add_audit(
            "shop.redeemed",
            actor_user_id=actor.id,
            team_id=actor.team_id,
            shop_item_id=item.id,
            points_spent=item.point_cost,
        )
        self.repository.commit()
        logger.info(
            f"User {actor.id} redeemed {item.name} for {item.point_cost} points"
        )
        return redemption

    def redemptions_for(self, actor):
        self.guard.require(actor, "shop.read")
        return (
            self.session.query(Redemption)
            .filter_by(user_id=actor.id)
            .order_by(Redemption.redeemed_at.desc(), Redemption.id)
            .all()
        )

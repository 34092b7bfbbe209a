"""Shop blueprint — /api/shop/*

Route Map:
  GET  /api/shop/items               — Active items
  POST /api/shop/items               — Create item (admin)
  POST /api/shop/items/<id>/redeem   — Spend points on an item
  GET  /api/shop/redemptions         — Caller's redemptions
"""

from flask import Blueprint, jsonify

from taskboard.decorators import actor, api_login_required, json_body, services
from taskboard.serializers import redemption_dict, shop_item_dict

shop_bp = Blueprint("shop", __name__, url_prefix="/api/shop")


@shop_bp.route("/items", methods=["GET"])
@api_login_required
def list_items():
    items = services().shop.available_items(actor())
    return jsonify([shop_item_dict(i) for i in items])


@shop_bp.route("/items", methods=["POST"])
@api_login_required
def create_item():
    data = json_body()
    item = services().shop.create_item(
        actor(),
        name=data.get("name"),
        point_cost=data.get("point_cost"),
        description=data.get("description"),
        category=data.get("category", "item"),
        image_url=data.get("image_url"),
    )
    return jsonify(shop_item_dict(item)), 201


@shop_bp.route("/items/<item_id>/redeem", methods=["POST"])
@api_login_required
def redeem(item_id):
    redemption = services().shop.redeem_item(actor(), item_id)
    return jsonify(redemption_dict(redemption)), 201


@shop_bp.route("/redemptions", methods=["GET"])
@api_login_required
def my_redemptions():
    redemptions = services().shop.redemptions_for(actor())
    return jsonify([redemption_dict(r) for r in redemptions])

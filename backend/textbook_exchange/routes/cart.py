# Overview: Flask API routes for the caller's shopping cart.

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import MarketplaceError, error_response
from ..services import cart_service
from ..validation import coerce_int
from ..decorators import require_auth


cart_bp = Blueprint("cart", __name__, url_prefix="/api/cart")


@cart_bp.get("")
@require_auth
def get_cart_route():
    try:
        return jsonify(cart_service.get_cart(g.current_user.user_id)), 200
    except Exception:
        current_app.logger.exception("Failed to load cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.post("")
@require_auth
def add_to_cart_route():
    """Body: book_id."""
    try:
        data = request.get_json(silent=True) or {}
        if data.get("book_id") is None:
            return jsonify({"error": "book_id required"}), 400

        item = cart_service.add_to_cart(g.current_user.user_id, coerce_int(data["book_id"], "book_id"))
        return jsonify({"cart_item_id": item.id, "book_id": item.book_id}), 201

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add to cart")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.delete("/<int:cart_item_id>")
@require_auth
def remove_from_cart_route(cart_item_id: int):
    try:
        if not cart_service.remove_from_cart(g.current_user.user_id, cart_item_id):
            return jsonify({"error": "Cart item not found"}), 404
        return jsonify({"message": "Removed from cart"}), 200
    except Exception:
        current_app.logger.exception("Failed to remove cart item")
        return jsonify({"error": "Internal server error"}), 500


@cart_bp.delete("")
@require_auth
def clear_cart_route():
    try:
        removed = cart_service.clear_cart(g.current_user.user_id)
        return jsonify({"removed": removed}), 200
    except Exception:
        current_app.logger.exception("Failed to clear cart")
        return jsonify({"error": "Internal server error"}), 500

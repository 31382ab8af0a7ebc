# Overview: Flask API routes for checkout and a customer's order history.

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import MarketplaceError, error_response
from ..services import order_service
from ..validation import optional_int
from ..decorators import require_auth


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
def checkout_route():
    """
    Turn the caller's cart into a paid order.

    Body: optional payment_method_id (omit for a one-time payment).
    """
    try:
        data = request.get_json(silent=True) or {}
        order = order_service.checkout(
            user_id=g.current_user.user_id,
            payment_method_id=optional_int(data.get("payment_method_id"), "payment_method_id"),
        )
        return jsonify({"order": order}), 201

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to check out")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
def list_orders_route():
    try:
        orders = order_service.list_user_orders(g.current_user.user_id, status=request.args.get("status"))
        return jsonify({"orders": orders, "count": len(orders)}), 200
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = order_service.get_order_details(
            order_id, g.current_user.user_id, is_admin=g.current_user.is_admin,
        )
        return jsonify({"order": order}), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500

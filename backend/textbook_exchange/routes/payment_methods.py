# Overview: Flask API routes for a customer's saved cards.

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import MarketplaceError, error_response
from ..services import payment_method_service
from ..decorators import require_auth


payment_methods_bp = Blueprint("payment_methods", __name__, url_prefix="/api/payment-methods")


@payment_methods_bp.get("")
@require_auth
def list_payment_methods_route():
    try:
        methods = payment_method_service.list_payment_methods(g.current_user.user_id)
        return jsonify({"payment_methods": [m.to_dict() for m in methods]}), 200
    except Exception:
        current_app.logger.exception("Failed to list payment methods")
        return jsonify({"error": "Internal server error"}), 500


@payment_methods_bp.post("")
@require_auth
def create_payment_method_route():
    """Body: card_type, last_four_digits, expiration_date (MM/YYYY), optional is_default."""
    try:
        data = request.get_json(silent=True) or {}
        method = payment_method_service.create_payment_method(
            user_id=g.current_user.user_id,
            card_type=data.get("card_type"),
            last_four_digits=data.get("last_four_digits"),
            expiration_date=data.get("expiration_date"),
            is_default=bool(data.get("is_default", False)),
        )
        return jsonify({"payment_method": method.to_dict()}), 201

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to add payment method")
        return jsonify({"error": "Internal server error"}), 500


@payment_methods_bp.put("/<int:payment_method_id>/default")
@require_auth
def set_default_route(payment_method_id: int):
    try:
        method = payment_method_service.set_default_payment_method(g.current_user.user_id, payment_method_id)
        return jsonify({"payment_method": method.to_dict()}), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to set default payment method")
        return jsonify({"error": "Internal server error"}), 500


@payment_methods_bp.delete("/<int:payment_method_id>")
@require_auth
def delete_payment_method_route(payment_method_id: int):
    try:
        payment_method_service.delete_payment_method(g.current_user.user_id, payment_method_id)
        return jsonify({"message": "Payment method deleted"}), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete payment method")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for staff order listing.

from flask import Blueprint, request, jsonify, current_app

from ..errors import MarketplaceError, error_response
from ..services import order_service
from ..validation import page_args
from ..decorators import require_auth, require_admin


admin_orders_bp = Blueprint("admin_orders", __name__, url_prefix="/api/admin/orders")


@admin_orders_bp.get("")
@require_auth
@require_admin
def list_orders_route():
    """Query: status, page, per_page."""
    try:
        page, per_page = page_args(
            request.args.get("page"),
            request.args.get("per_page"),
            default=current_app.config["DEFAULT_PAGE_SIZE"],
            maximum=current_app.config["MAX_PAGE_SIZE"],
        )
        result = order_service.list_orders(status=request.args.get("status"), page=page, per_page=per_page)
        return jsonify(result), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500

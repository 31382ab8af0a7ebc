# Overview: Flask API routes for staff account listing.

from flask import Blueprint, request, jsonify, current_app

from ..errors import MarketplaceError, error_response
from ..services import user_service
from ..validation import page_args
from ..decorators import require_auth, require_admin


admin_users_bp = Blueprint("admin_users", __name__, url_prefix="/api/admin/users")


@admin_users_bp.get("")
@require_auth
@require_admin
def list_users_route():
    """Query: user_type (Customer|Admin), page, per_page."""
    try:
        page, per_page = page_args(
            request.args.get("page"),
            request.args.get("per_page"),
            default=current_app.config["DEFAULT_PAGE_SIZE"],
            maximum=current_app.config["MAX_PAGE_SIZE"],
        )
        result = user_service.list_users(
            user_type=request.args.get("user_type"), page=page, per_page=per_page,
        )
        return jsonify(result), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for staff review of sell submissions.

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import MarketplaceError, error_response
from ..services import negotiation_service, submission_service
from ..models.submissions import SUBMISSION_STATUS_COMPLETED, SUBMISSION_STATUS_REJECTED
from ..validation import page_args
from ..decorators import require_auth, require_admin


admin_submissions_bp = Blueprint(
    "admin_submissions", __name__, url_prefix="/api/admin/sell-submissions"
)


@admin_submissions_bp.get("")
@require_auth
@require_admin
def list_submissions_route():
    """All submissions, newest first. Query: status, page, per_page."""
    try:
        page, per_page = page_args(
            request.args.get("page"),
            request.args.get("per_page"),
            default=current_app.config["DEFAULT_PAGE_SIZE"],
            maximum=current_app.config["MAX_PAGE_SIZE"],
        )
        result = submission_service.list_submissions(
            status=request.args.get("status"), page=page, per_page=per_page,
        )
        return jsonify(result), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list sell submissions")
        return jsonify({"error": "Internal server error"}), 500


@admin_submissions_bp.get("/<int:submission_id>")
@require_auth
@require_admin
def get_submission_route(submission_id: int):
    try:
        details = submission_service.get_submission_details(
            submission_id, g.current_user.user_id, is_admin=True,
        )
        return jsonify({"submission": details}), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load sell submission")
        return jsonify({"error": "Internal server error"}), 500


@admin_submissions_bp.post("/<int:submission_id>/negotiate")
@require_auth
@require_admin
def negotiate_route(submission_id: int):
    """Body: offered_price_cents, optional offer_message."""
    try:
        data = request.get_json(silent=True) or {}
        outcome = negotiation_service.admin_negotiate(
            submission_id=submission_id,
            admin_user_id=g.current_user.user_id,
            offered_price_cents=data.get("offered_price_cents"),
            message=data.get("offer_message"),
        )
        return jsonify(outcome.to_dict()), 201

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to make offer")
        return jsonify({"error": "Internal server error"}), 500


@admin_submissions_bp.put("/<int:submission_id>/approve")
@require_auth
@require_admin
def approve_route(submission_id: int):
    """
    Put the book into inventory.

    Body: selling_price_cents (must exceed the acquisition cost).
    """
    try:
        data = request.get_json(silent=True) or {}
        book = submission_service.approve_submission(
            submission_id=submission_id,
            admin_user_id=g.current_user.user_id,
            selling_price_cents=data.get("selling_price_cents"),
        )
        return jsonify({
            "submission_id": submission_id,
            "book_id": book.id,
            "status": SUBMISSION_STATUS_COMPLETED,
            "book": book.to_dict(),
        }), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to approve sell submission")
        return jsonify({"error": "Internal server error"}), 500


@admin_submissions_bp.put("/<int:submission_id>/reject")
@require_auth
@require_admin
def reject_route(submission_id: int):
    """Body: optional reason."""
    try:
        data = request.get_json(silent=True) or {}
        submission_service.reject_submission(
            submission_id=submission_id,
            admin_user_id=g.current_user.user_id,
            reason=data.get("reason"),
        )
        return jsonify({"submission_id": submission_id, "status": SUBMISSION_STATUS_REJECTED}), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to reject sell submission")
        return jsonify({"error": "Internal server error"}), 500

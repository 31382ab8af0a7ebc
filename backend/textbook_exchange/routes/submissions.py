# Overview: Flask API routes for a customer's own sell submissions and their negotiation.

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import MarketplaceError, error_response
from ..services import negotiation_service, submission_service
from ..validation import optional_int
from ..decorators import require_auth


submissions_bp = Blueprint("submissions", __name__, url_prefix="/api/sell-submissions")


@submissions_bp.post("")
@require_auth
def create_submission_route():
    """
    Offer a book to the store.

    Body: isbn, title, author, edition, physical_condition (New|Good|Fair),
    asking_price_cents, optional course_major.
    """
    try:
        data = request.get_json(silent=True) or {}
        submission = submission_service.create_submission(
            user_id=g.current_user.user_id,
            isbn=data.get("isbn"),
            title=data.get("title"),
            author=data.get("author"),
            edition=data.get("edition"),
            physical_condition=data.get("physical_condition"),
            asking_price_cents=data.get("asking_price_cents"),
            course_major=data.get("course_major"),
        )
        return jsonify({
            "submission_id": submission.id,
            "status": submission.status,
            "submitted_at": submission.to_dict()["submitted_at"],
        }), 201

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create sell submission")
        return jsonify({"error": "Internal server error"}), 500


@submissions_bp.get("")
@require_auth
def list_submissions_route():
    try:
        status = request.args.get("status")
        submissions = submission_service.list_user_submissions(g.current_user.user_id, status=status)
        return jsonify({
            "submissions": [s.to_dict() for s in submissions],
            "count": len(submissions),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list sell submissions")
        return jsonify({"error": "Internal server error"}), 500


@submissions_bp.get("/<int:submission_id>")
@require_auth
def get_submission_route(submission_id: int):
    try:
        details = submission_service.get_submission_details(submission_id, g.current_user.user_id)
        return jsonify({"submission": details}), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load sell submission")
        return jsonify({"error": "Internal server error"}), 500


@submissions_bp.post("/<int:submission_id>/negotiate")
@require_auth
def negotiate_route(submission_id: int):
    """
    Respond to a store offer.

    Body:
    - action: accept | reject | counter
    - negotiation_id: required for accept and reject
    - offered_price_cents: required for counter
    - offer_message: optional
    """
    try:
        data = request.get_json(silent=True) or {}
        outcome = negotiation_service.customer_negotiate(
            submission_id=submission_id,
            user_id=g.current_user.user_id,
            action=data.get("action"),
            negotiation_id=optional_int(data.get("negotiation_id"), "negotiation_id"),
            offered_price_cents=data.get("offered_price_cents"),
            message=data.get("offer_message"),
        )
        return jsonify(outcome.to_dict()), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to apply negotiation action")
        return jsonify({"error": "Internal server error"}), 500

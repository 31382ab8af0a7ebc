# Overview: Flask API routes for browsing the catalog and staff inventory entry.

from flask import Blueprint, request, jsonify, current_app

from ..errors import MarketplaceError, error_response
from ..services import catalog_service
from ..validation import page_args
from ..decorators import require_auth, require_admin


books_bp = Blueprint("books", __name__, url_prefix="/api/books")


@books_bp.get("")
def list_books_route():
    """Public catalog. Query: search, page, per_page."""
    try:
        page, per_page = page_args(
            request.args.get("page"),
            request.args.get("per_page"),
            default=current_app.config["DEFAULT_PAGE_SIZE"],
            maximum=current_app.config["MAX_PAGE_SIZE"],
        )
        result = catalog_service.list_books(search=request.args.get("search"), page=page, per_page=per_page)
        return jsonify(result), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list books")
        return jsonify({"error": "Internal server error"}), 500


@books_bp.get("/<int:book_id>")
def get_book_route(book_id: int):
    try:
        book = catalog_service.get_book(book_id)
        book["stock"] = catalog_service.stock_count(book["isbn"], book["edition"])
        return jsonify({"book": book}), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load book")
        return jsonify({"error": "Internal server error"}), 500


@books_bp.post("")
@require_auth
@require_admin
def create_book_route():
    """
    Add a copy directly to inventory.

    Body: isbn, title, author, edition, book_condition, selling_price_cents,
    acquisition_cost_cents, optional course_major.
    """
    try:
        data = request.get_json(silent=True) or {}
        book = catalog_service.create_book(
            isbn=data.get("isbn"),
            title=data.get("title"),
            author=data.get("author"),
            edition=data.get("edition"),
            book_condition=data.get("book_condition"),
            selling_price_cents=data.get("selling_price_cents"),
            acquisition_cost_cents=data.get("acquisition_cost_cents"),
            course_major=data.get("course_major"),
        )
        return jsonify({"book": book.to_dict()}), 201

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create book")
        return jsonify({"error": "Internal server error"}), 500


@books_bp.post("/<int:book_id>/restock")
@require_auth
@require_admin
def restock_book_route(book_id: int):
    try:
        book = catalog_service.restock_book(book_id)
        return jsonify({"book": book.to_dict()}), 200

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to restock book")
        return jsonify({"error": "Internal server error"}), 500

# Overview: Flask API routes for registration, login and logout.

from flask import Blueprint, request, jsonify, current_app, g

from ..errors import MarketplaceError, error_response
from ..extensions import sessions
from ..services import auth_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Self-registration for customers. Staff accounts are created with
    `flask users create --admin`.
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.register_user(
            username=data.get("username"),
            email=data.get("email"),
            password=data.get("password"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
        )
        return jsonify({"user": user.to_dict()}), 201

    except MarketplaceError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and issue a session token.

    The token must be sent as "Authorization: Bearer <token>" on protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        identifier = data.get("username") or data.get("email") or data.get("identifier")
        password = data.get("password")

        if not all([identifier, password]):
            return jsonify({"error": "username/email and password required"}), 400

        user = auth_service.authenticate(identifier, password)
        if not user:
            current_app.logger.info("Failed login for %s", identifier)
            return jsonify({"error": "Invalid credentials"}), 401

        identity = auth_service.identity_for(user)
        token = sessions.create(identity)

        return jsonify({
            "token": token,
            "user": user.to_dict(),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to log in")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    sessions.revoke(g.token)
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200

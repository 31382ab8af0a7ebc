# Overview: Request decorators for authenticated and staff-only API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import sessions


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a live session token.

    Sets:
    - g.current_user: the caller's Identity (user_id, username, user_type)
    - g.token: the bearer token, so logout can revoke it

    Returns 401 if the header is missing or the token is unknown or expired.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        identity = sessions.resolve(token)
        if identity is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = identity
        g.token = token
        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Staff-only route. Must be stacked under @require_auth."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not hasattr(g, "current_user"):
            return jsonify({"error": "Authentication required"}), 401
        if not g.current_user.is_admin:
            return jsonify({"error": "Admin access required"}), 403
        return f(*args, **kwargs)

    return decorated_function

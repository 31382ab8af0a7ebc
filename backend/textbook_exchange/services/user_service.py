# Overview: Staff-facing account listing.

from __future__ import annotations

from ..errors import InvalidInputError
from ..extensions import db
from ..models import User
from .session_service import USER_TYPE_ADMIN, USER_TYPE_CUSTOMER


def list_users(user_type: str | None = None, page: int = 1, per_page: int = 20) -> dict:
    """
    Accounts ordered by username, optionally limited to one user type.

    Raises:
        InvalidInputError: user_type is not 'Customer' or 'Admin'
    """
    query = db.session.query(User)
    if user_type:
        if user_type not in (USER_TYPE_CUSTOMER, USER_TYPE_ADMIN):
            raise InvalidInputError("user_type must be 'Customer' or 'Admin'")
        query = query.filter(User.user_type == user_type)
    query = query.order_by(User.username.asc(), User.id.asc())

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    users = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [u.to_dict() for u in users],
        "count": len(users),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }

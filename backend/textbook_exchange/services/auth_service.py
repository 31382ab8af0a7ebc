# Overview: Account registration and password authentication.

"""
Authentication Service

Passwords are hashed with bcrypt; the cost factor comes from BCRYPT_ROUNDS so
tests can run with the minimum. Successful authentication returns the User;
session tokens are issued separately (see session_service).
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy import or_

from ..errors import ConflictError, InvalidInputError
from ..extensions import db
from ..models import User
from ..validation import optional_text, required_text
from .concurrency import flush_or_conflict, transaction
from .session_service import Identity, USER_TYPE_ADMIN, USER_TYPE_CUSTOMER


MIN_PASSWORD_LENGTH = 8


def hash_password(password: str) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidInputError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def register_user(
    username: str,
    email: str,
    password: str,
    first_name: str | None = None,
    last_name: str | None = None,
    user_type: str = USER_TYPE_CUSTOMER,
) -> User:
    """
    Raises:
        InvalidInputError: missing fields, short password, unknown user type
        ConflictError: username or email already registered
    """
    username = required_text(username, "username", max_length=64)
    email = required_text(email, "email").lower()
    if "@" not in email:
        raise InvalidInputError("email must be a valid address")
    if user_type not in (USER_TYPE_CUSTOMER, USER_TYPE_ADMIN):
        raise InvalidInputError("user_type must be 'Customer' or 'Admin'")
    password_hash = hash_password(password)

    with transaction():
        taken = (
            db.session.query(User.id)
            .filter(or_(User.username == username, User.email == email))
            .first()
        )
        if taken is not None:
            raise ConflictError("Username or email already registered")

        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            first_name=optional_text(first_name, "first_name", max_length=64),
            last_name=optional_text(last_name, "last_name", max_length=64),
            user_type=user_type,
        )
        db.session.add(user)
        flush_or_conflict("Username or email already registered")
    return user


def authenticate(identifier: str, password: str) -> User | None:
    """Look up by username or email and check the password."""
    if not identifier or not password:
        return None
    user = (
        db.session.query(User)
        .filter(or_(User.username == identifier, User.email == identifier.lower()))
        .first()
    )
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def identity_for(user: User) -> Identity:
    return Identity(user_id=user.id, username=user.username, user_type=user.user_type)

# Overview: Typed business-rule failures shared by services and routes.

"""
Every service operation reports a broken rule by raising one of these.
Routes translate them to HTTP with `error_response`; anything that is not a
MarketplaceError is an operational failure and surfaces as a 500.
"""

from __future__ import annotations

from flask import jsonify


class MarketplaceError(Exception):
    """Base class for typed failures."""
    kind = "InvalidInput"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "kind": self.kind,
            "details": self.details,
        }


class InvalidInputError(MarketplaceError):
    """Malformed, missing or out-of-range request data."""
    kind = "InvalidInput"
    status_code = 400


class NotFoundError(MarketplaceError):
    """Referenced submission, negotiation, order or book does not exist."""
    kind = "NotFound"
    status_code = 404


class ForbiddenError(MarketplaceError):
    """Caller does not own the entity."""
    kind = "Forbidden"
    status_code = 403


class InvalidOperationError(MarketplaceError):
    """Action is not legal for the entity's current state."""
    kind = "InvalidOperation"
    status_code = 400


class ConflictError(MarketplaceError):
    """Stale or duplicate action; the caller should refresh and retry."""
    kind = "Conflict"
    status_code = 409


def error_response(exc: MarketplaceError):
    return jsonify(exc.to_dict()), exc.status_code

from __future__ import annotations

from typing import Any

from .errors import InvalidInputError


# Maximum price: $99,999.99 (9,999,999 cents)
# Textbooks never approach this; it keeps typos like "300000000" out of the catalog
MAX_PRICE_CENTS = 9_999_999


def coerce_int(value: Any, field: str) -> int:
    """
    Strictly coerce an integer request value.

    Rejects bools, floats, decimals and scientific notation so that a price
    sent as 27.5 is an error rather than silently truncated cents.
    """
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise InvalidInputError(f"{field} must be an integer")
        if "e" in stripped.lower():
            raise InvalidInputError(f"{field} must be a plain integer (scientific notation not allowed)")
        if "." in stripped:
            raise InvalidInputError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise InvalidInputError(f"{field} must be an integer")
    if isinstance(value, float):
        raise InvalidInputError(f"{field} must be an integer, not a decimal")
    raise InvalidInputError(f"{field} must be an integer")


def price_cents(value: Any, field: str) -> int:
    """Validate a positive price expressed in cents."""
    if value is None:
        raise InvalidInputError(f"{field} is required")
    cents = coerce_int(value, field)
    if cents <= 0:
        raise InvalidInputError(f"{field} must be greater than 0")
    if cents > MAX_PRICE_CENTS:
        raise InvalidInputError(f"{field} cannot exceed {MAX_PRICE_CENTS} cents")
    return cents


def optional_int(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    return coerce_int(value, field)


def required_text(value: Any, field: str, max_length: int = 255) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(f"{field} is required")
    text = str(value).strip()
    if len(text) > max_length:
        raise InvalidInputError(f"{field} cannot exceed {max_length} characters")
    return text


def optional_text(value: Any, field: str, max_length: int = 255) -> str | None:
    if value is None or not str(value).strip():
        return None
    return required_text(value, field, max_length=max_length)


def page_args(page: Any, per_page: Any, default: int = 20, maximum: int = 100) -> tuple[int, int]:
    """Normalize pagination arguments (page >= 1, 1 <= per_page <= maximum)."""
    page = optional_int(page, "page") or 1
    per_page = optional_int(per_page, "per_page") or default
    return max(page, 1), max(1, min(per_page, maximum))

# Overview: Saved payment methods; card brand, last four digits and expiry only.

from __future__ import annotations

import re

from ..errors import InvalidInputError, InvalidOperationError, NotFoundError
from ..extensions import db
from ..models import Payment, PaymentMethod
from ..validation import required_text
from .concurrency import transaction


EXPIRATION_RE = re.compile(r"^(\d{1,2})/(\d{4})$")


def validate_expiration_date(value: str | None) -> str:
    """Accept MM/YYYY with a real month and a year in 2000-2099."""
    match = EXPIRATION_RE.match((value or "").strip())
    if not match:
        raise InvalidInputError("Invalid expiration date format. Expected MM/YYYY")
    month, year = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or not 2000 <= year <= 2099:
        raise InvalidInputError("Invalid expiration date format. Expected MM/YYYY")
    return f"{month:02d}/{year}"


def list_payment_methods(user_id: int) -> list[PaymentMethod]:
    return (
        db.session.query(PaymentMethod)
        .filter(PaymentMethod.user_id == user_id)
        .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc(), PaymentMethod.id.desc())
        .all()
    )


def _owned(user_id: int, payment_method_id: int) -> PaymentMethod:
    method = (
        db.session.query(PaymentMethod)
        .filter(PaymentMethod.id == payment_method_id, PaymentMethod.user_id == user_id)
        .first()
    )
    if method is None:
        raise NotFoundError("Payment method not found or does not belong to user")
    return method


def _clear_default(user_id: int) -> None:
    (
        db.session.query(PaymentMethod)
        .filter(PaymentMethod.user_id == user_id, PaymentMethod.is_default.is_(True))
        .update({PaymentMethod.is_default: False}, synchronize_session="fetch")
    )


def create_payment_method(
    user_id: int,
    card_type: str,
    last_four_digits: str,
    expiration_date: str,
    is_default: bool = False,
) -> PaymentMethod:
    expiration_date = validate_expiration_date(expiration_date)
    digits = (last_four_digits or "").strip() if isinstance(last_four_digits, str) else ""
    if len(digits) != 4 or not digits.isdigit():
        raise InvalidInputError("Last four digits must be exactly 4 digits")
    card_type = required_text(card_type, "card_type", max_length=32)

    with transaction():
        if is_default:
            _clear_default(user_id)
        method = PaymentMethod(
            user_id=user_id,
            card_type=card_type,
            last_four_digits=digits,
            expiration_date=expiration_date,
            is_default=bool(is_default),
        )
        db.session.add(method)
    return method


def set_default_payment_method(user_id: int, payment_method_id: int) -> PaymentMethod:
    with transaction():
        method = _owned(user_id, payment_method_id)
        _clear_default(user_id)
        method.is_default = True
    return method


def delete_payment_method(user_id: int, payment_method_id: int) -> bool:
    """
    Raises:
        NotFoundError: method missing or owned by someone else
        InvalidOperationError: method already referenced by a payment
    """
    with transaction():
        method = _owned(user_id, payment_method_id)
        used = db.session.query(Payment.id).filter(Payment.payment_method_id == method.id).first()
        if used is not None:
            raise InvalidOperationError("Cannot delete payment method that has been used in orders")
        db.session.delete(method)
    return True

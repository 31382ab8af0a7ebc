# Overview: Per-customer shopping cart of individual book copies.

from __future__ import annotations

from ..errors import InvalidOperationError, NotFoundError
from ..extensions import db
from ..models import Book, CartItem
from ..models.catalog import BOOK_STATUS_AVAILABLE
from .concurrency import flush_or_conflict, transaction


def get_cart(user_id: int) -> dict:
    """Cart contents limited to books that are still for sale, with the running total."""
    rows = (
        db.session.query(CartItem, Book)
        .join(Book, CartItem.book_id == Book.id)
        .filter(CartItem.user_id == user_id, Book.status == BOOK_STATUS_AVAILABLE)
        .order_by(CartItem.added_at.desc(), CartItem.id.desc())
        .all()
    )
    items = []
    for item, book in rows:
        data = book.to_dict()
        data.pop("acquisition_cost_cents", None)
        data["cart_item_id"] = item.id
        data["book_id"] = book.id
        items.append(data)
    return {
        "items": items,
        "count": len(items),
        "total_cents": sum(item["selling_price_cents"] for item in items),
    }


def add_to_cart(user_id: int, book_id: int) -> CartItem:
    """
    Raises:
        NotFoundError: book does not exist
        InvalidOperationError: book sold or already in the cart
    """
    with transaction():
        book = db.session.get(Book, book_id)
        if book is None:
            raise NotFoundError("Book not found")
        if book.status != BOOK_STATUS_AVAILABLE:
            raise InvalidOperationError("Book not available", details={"book_id": book_id})

        existing = (
            db.session.query(CartItem)
            .filter(CartItem.user_id == user_id, CartItem.book_id == book_id)
            .first()
        )
        if existing is not None:
            raise InvalidOperationError("Book already in cart", details={"cart_item_id": existing.id})

        item = CartItem(user_id=user_id, book_id=book_id)
        db.session.add(item)
        flush_or_conflict("Book already in cart", details={"book_id": book_id})
        return item


def remove_from_cart(user_id: int, cart_item_id: int) -> bool:
    with transaction():
        deleted = (
            db.session.query(CartItem)
            .filter(CartItem.id == cart_item_id, CartItem.user_id == user_id)
            .delete(synchronize_session=False)
        )
    return deleted > 0


def clear_cart(user_id: int) -> int:
    with transaction():
        deleted = (
            db.session.query(CartItem)
            .filter(CartItem.user_id == user_id)
            .delete(synchronize_session=False)
        )
    return deleted

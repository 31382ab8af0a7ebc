# Overview: Checkout transaction and order lookup.

"""
Checkout: cart -> order, all or nothing.

ORDER OF WORK (one transaction):
1. Insert PurchaseOrder (NEW, total 0)
2. Insert one OrderLineItem per cart book, snapshotting its selling price
3. Flip every book AVAILABLE -> SOLD
4. Write the order total (sum of line items)
5. Insert a COMPLETED Payment for the total
6. Delete the cart rows that were turned into line items

The cart is first read and checked outside the transaction so an obviously
stale cart fails fast. That check is advisory: the books are read again
under lock inside the transaction and that read is authoritative. The SOLD
flip also goes through the Book version column, so a concurrent checkout
that won the same copy makes this flush fail. Either way the whole
transaction rolls back and the caller gets an InvalidOperation with the cart
untouched.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func
from sqlalchemy.orm.exc import StaleDataError

from ..errors import ForbiddenError, InvalidOperationError, NotFoundError
from ..extensions import db
from ..models import Book, CartItem, OrderLineItem, Payment, PaymentMethod, PurchaseOrder, User
from ..models.catalog import BOOK_STATUS_AVAILABLE, BOOK_STATUS_SOLD
from ..models.orders import ORDER_STATUS_NEW, PAYMENT_STATUS_COMPLETED
from ..time_utils import utcnow
from .concurrency import lock_for_update, transaction


UNAVAILABLE_MESSAGE = "Some items in your cart are no longer available"


@dataclass(frozen=True)
class CartLine:
    """Snapshot of one cart row joined to its book, taken before checkout."""
    cart_item_id: int
    book_id: int
    title: str
    selling_price_cents: int
    status: str


def _read_cart(user_id: int) -> list[CartLine]:
    rows = (
        db.session.query(CartItem, Book)
        .join(Book, CartItem.book_id == Book.id)
        .filter(CartItem.user_id == user_id)
        .order_by(CartItem.id.asc())
        .all()
    )
    return [
        CartLine(
            cart_item_id=item.id,
            book_id=book.id,
            title=book.title,
            selling_price_cents=book.selling_price_cents,
            status=book.status,
        )
        for item, book in rows
    ]


def _require_payment_method(user_id: int, payment_method_id: int) -> None:
    method = (
        db.session.query(PaymentMethod)
        .filter(PaymentMethod.id == payment_method_id, PaymentMethod.user_id == user_id)
        .first()
    )
    if method is None:
        raise InvalidOperationError(
            "Payment method not found",
            details={"payment_method_id": payment_method_id},
        )


def checkout(user_id: int, payment_method_id: int | None = None) -> dict:
    """
    Convert the user's cart into a paid order.

    Raises:
        InvalidOperationError: cart empty, a book is no longer available, or
            the payment method does not belong to the user
    """
    lines = _read_cart(user_id)
    if not lines:
        raise InvalidOperationError("Cart is empty")

    unavailable = [line.book_id for line in lines if line.status != BOOK_STATUS_AVAILABLE]
    if unavailable:
        raise InvalidOperationError(UNAVAILABLE_MESSAGE, details={"book_ids": unavailable})

    if payment_method_id is not None:
        _require_payment_method(user_id, payment_method_id)

    book_ids = [line.book_id for line in lines]

    try:
        with transaction():
            books = (
                lock_for_update(db.session.query(Book).filter(Book.id.in_(book_ids)))
                .order_by(Book.id.asc())
                .populate_existing()
                .all()
            )
            found = {book.id for book in books}
            unavailable = [book.id for book in books if book.status != BOOK_STATUS_AVAILABLE]
            unavailable += [book_id for book_id in book_ids if book_id not in found]
            if unavailable:
                raise InvalidOperationError(UNAVAILABLE_MESSAGE, details={"book_ids": sorted(unavailable)})

            order = PurchaseOrder(
                user_id=user_id,
                status=ORDER_STATUS_NEW,
                total_amount_cents=0,
                order_date=utcnow(),
            )
            db.session.add(order)
            db.session.flush()

            items = []
            for book in books:
                line_item = OrderLineItem(
                    order_id=order.id,
                    book_id=book.id,
                    price_at_sale_cents=book.selling_price_cents,
                )
                db.session.add(line_item)
                book.status = BOOK_STATUS_SOLD
                items.append({
                    "book_id": book.id,
                    "title": book.title,
                    "price_at_sale_cents": book.selling_price_cents,
                })
            db.session.flush()

            order.total_amount_cents = (
                db.session.query(func.coalesce(func.sum(OrderLineItem.price_at_sale_cents), 0))
                .filter(OrderLineItem.order_id == order.id)
                .scalar()
            )

            payment = Payment(
                order_id=order.id,
                payment_method_id=payment_method_id,
                amount_cents=order.total_amount_cents,
                payment_status=PAYMENT_STATUS_COMPLETED,
                payment_date=utcnow(),
            )
            db.session.add(payment)

            # Only the rows that became line items; anything added since the read stays
            cart_item_ids = [line.cart_item_id for line in lines]
            (
                db.session.query(CartItem)
                .filter(CartItem.user_id == user_id, CartItem.id.in_(cart_item_ids))
                .delete(synchronize_session=False)
            )

            result = {
                "order_id": order.id,
                "order_date": order.to_dict()["order_date"],
                "status": order.status,
                "total_amount_cents": order.total_amount_cents,
                "items": items,
            }
    except StaleDataError as exc:
        raise InvalidOperationError(UNAVAILABLE_MESSAGE, details={"book_ids": book_ids}) from exc

    current_app.logger.info(
        "Order %s placed by user %s: %s item(s), %s cents",
        result["order_id"], user_id, len(items), result["total_amount_cents"],
    )
    return result


def get_order_details(order_id: int, user_id: int, is_admin: bool = False) -> dict:
    """
    Order header, line items with book snapshot fields and payment info.

    Raises:
        NotFoundError: order does not exist
        ForbiddenError: order belongs to another customer
    """
    order = db.session.get(PurchaseOrder, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    if not is_admin and order.user_id != user_id:
        raise ForbiddenError("Order does not belong to you")

    rows = (
        db.session.query(OrderLineItem, Book)
        .join(Book, OrderLineItem.book_id == Book.id)
        .filter(OrderLineItem.order_id == order.id)
        .order_by(OrderLineItem.id.asc())
        .all()
    )
    items = []
    for line_item, book in rows:
        items.append({
            "line_item_id": line_item.id,
            "book_id": book.id,
            "isbn": book.isbn,
            "title": book.title,
            "author": book.author,
            "edition": book.edition,
            "price_at_sale_cents": line_item.price_at_sale_cents,
        })

    payment = db.session.query(Payment).filter(Payment.order_id == order.id).first()

    data = order.to_dict()
    data["items"] = items
    data["payment"] = payment.to_dict() if payment else None
    return data


def _order_summaries(query) -> list[dict]:
    summaries = []
    for order, item_count in query.all():
        data = order.to_dict()
        data["item_count"] = item_count
        summaries.append(data)
    return summaries


def _summary_query():
    return (
        db.session.query(PurchaseOrder, func.count(OrderLineItem.id))
        .outerjoin(OrderLineItem, OrderLineItem.order_id == PurchaseOrder.id)
        .group_by(PurchaseOrder.id)
    )


def list_user_orders(user_id: int, status: str | None = None) -> list[dict]:
    query = _summary_query().filter(PurchaseOrder.user_id == user_id)
    if status:
        query = query.filter(PurchaseOrder.status == status)
    query = query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
    return _order_summaries(query)


def list_orders(status: str | None = None, page: int = 1, per_page: int = 20) -> dict:
    """Staff listing of every order, newest first, with the customer's username."""
    count_query = db.session.query(PurchaseOrder)
    if status:
        count_query = count_query.filter(PurchaseOrder.status == status)
    total = count_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    query = (
        db.session.query(PurchaseOrder, func.count(OrderLineItem.id), User.username)
        .join(User, PurchaseOrder.user_id == User.id)
        .outerjoin(OrderLineItem, OrderLineItem.order_id == PurchaseOrder.id)
        .group_by(PurchaseOrder.id, User.username)
    )
    if status:
        query = query.filter(PurchaseOrder.status == status)
    rows = (
        query.order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    items = []
    for order, item_count, username in rows:
        data = order.to_dict()
        data["item_count"] = item_count
        data["username"] = username
        items.append(data)

    return {
        "items": items,
        "count": len(items),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }

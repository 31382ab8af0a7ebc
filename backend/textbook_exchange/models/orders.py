from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ORDER_STATUS_NEW = "NEW"
ORDER_STATUS_PROCESSING = "PROCESSING"
ORDER_STATUS_FULFILLED = "FULFILLED"
ORDER_STATUS_CANCELLED = "CANCELLED"

ORDER_STATUSES = (ORDER_STATUS_NEW, ORDER_STATUS_PROCESSING, ORDER_STATUS_FULFILLED, ORDER_STATUS_CANCELLED)

PAYMENT_STATUS_COMPLETED = "COMPLETED"


class PurchaseOrder(db.Model):
    """
    Customer order created by checkout.

    total_amount_cents is always the sum of the order's line items; it is
    written once, inside the checkout transaction.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_user_status", "user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_NEW, index=True)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    order_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "total_amount_cents": self.total_amount_cents,
            "order_date": to_utc_z(self.order_date),
        }


class OrderLineItem(db.Model):
    """Book sold on an order. price_at_sale_cents is a snapshot, never recomputed."""
    __tablename__ = "order_line_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False, index=True)
    price_at_sale_cents = db.Column(db.Integer, nullable=False)

    order = db.relationship("PurchaseOrder", backref=db.backref("line_items", lazy=True))
    book = db.relationship("Book")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "book_id": self.book_id,
            "price_at_sale_cents": self.price_at_sale_cents,
        }


class Payment(db.Model):
    """
    Payment recorded with the order.

    payment_method_id is NULL for a one-time payment. No gateway is involved;
    the row is written COMPLETED inside the checkout transaction.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.UniqueConstraint("order_id", name="uq_payments_order_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False)
    payment_method_id = db.Column(db.Integer, db.ForeignKey("payment_methods.id"), nullable=True, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    payment_status = db.Column(db.String(16), nullable=False, default=PAYMENT_STATUS_COMPLETED)
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("PurchaseOrder", backref=db.backref("payment", uselist=False))
    payment_method = db.relationship("PaymentMethod")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "payment_method_id": self.payment_method_id,
            "payment_method": self.payment_method.description if self.payment_method else None,
            "amount_cents": self.amount_cents,
            "payment_status": self.payment_status,
            "payment_date": to_utc_z(self.payment_date),
        }

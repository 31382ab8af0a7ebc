# Overview: Pytest coverage for checkout atomicity and order lookups.

"""
Checkout Tests

The checkout either produces a complete order (line items, SOLD books,
payment, empty cart) or leaves every row as it was.
"""

import pytest
from sqlalchemy import text

from textbook_exchange.errors import ForbiddenError, InvalidOperationError, NotFoundError
from textbook_exchange.extensions import db
from textbook_exchange.models import Book, CartItem, OrderLineItem, Payment, PaymentMethod, PurchaseOrder
from textbook_exchange.models.catalog import BOOK_STATUS_AVAILABLE, BOOK_STATUS_SOLD
from textbook_exchange.models.orders import ORDER_STATUS_NEW, PAYMENT_STATUS_COMPLETED
from textbook_exchange.services import order_service


class TestCheckout:

    def test_checkout_creates_paid_order(self, customer, visa, make_book, add_to_cart):
        first = make_book(title="Organic Chemistry", selling_price_cents=4000)
        second = make_book(title="Linear Algebra", selling_price_cents=2550)
        add_to_cart(customer, first)
        add_to_cart(customer, second)

        order = order_service.checkout(customer.id, payment_method_id=visa.id)

        assert order["status"] == ORDER_STATUS_NEW
        assert order["total_amount_cents"] == 6550
        assert sorted(item["book_id"] for item in order["items"]) == sorted([first.id, second.id])

        lines = db.session.query(OrderLineItem).filter_by(order_id=order["order_id"]).all()
        assert sum(line.price_at_sale_cents for line in lines) == 6550
        assert db.session.get(Book, first.id).status == BOOK_STATUS_SOLD
        assert db.session.get(Book, second.id).status == BOOK_STATUS_SOLD
        assert db.session.query(CartItem).filter_by(user_id=customer.id).count() == 0

        payment = db.session.query(Payment).filter_by(order_id=order["order_id"]).one()
        assert payment.amount_cents == 6550
        assert payment.payment_status == PAYMENT_STATUS_COMPLETED
        assert payment.payment_method_id == visa.id

    def test_one_time_payment(self, customer, make_book, add_to_cart):
        add_to_cart(customer, make_book())

        order = order_service.checkout(customer.id)

        payment = db.session.query(Payment).filter_by(order_id=order["order_id"]).one()
        assert payment.payment_method_id is None

    def test_price_snapshot_survives_repricing(self, customer, make_book, add_to_cart):
        book = make_book(selling_price_cents=4000)
        add_to_cart(customer, book)
        order = order_service.checkout(customer.id)

        book = db.session.get(Book, book.id)
        book.selling_price_cents = 9000
        db.session.commit()

        details = order_service.get_order_details(order["order_id"], customer.id)
        assert details["items"][0]["price_at_sale_cents"] == 4000
        assert details["total_amount_cents"] == 4000

    def test_empty_cart(self, customer):
        with pytest.raises(InvalidOperationError) as exc:
            order_service.checkout(customer.id)

        assert str(exc.value) == "Cart is empty"

    def test_sold_book_in_cart(self, customer, make_book, add_to_cart):
        sold = make_book(status=BOOK_STATUS_SOLD)
        available = make_book()
        add_to_cart(customer, sold)
        add_to_cart(customer, available)

        with pytest.raises(InvalidOperationError):
            order_service.checkout(customer.id)

        assert db.session.query(PurchaseOrder).count() == 0
        assert db.session.query(CartItem).filter_by(user_id=customer.id).count() == 2
        assert db.session.get(Book, available.id).status == BOOK_STATUS_AVAILABLE

    def test_book_sold_between_check_and_commit(self, monkeypatch, customer, make_book, add_to_cart):
        """A concurrent sale after the pre-check must roll the whole checkout back."""
        first = make_book()
        contested = make_book()
        add_to_cart(customer, first)
        add_to_cart(customer, contested)
        contested_id = contested.id

        original_read_cart = order_service._read_cart

        def read_cart_then_lose_race(user_id):
            lines = original_read_cart(user_id)
            book = db.session.get(Book, contested_id)
            book.status = BOOK_STATUS_SOLD
            db.session.commit()
            return lines

        monkeypatch.setattr(order_service, "_read_cart", read_cart_then_lose_race)

        with pytest.raises(InvalidOperationError) as exc:
            order_service.checkout(customer.id)

        assert exc.value.details["book_ids"] == [contested_id]
        assert db.session.query(PurchaseOrder).count() == 0
        assert db.session.query(OrderLineItem).count() == 0
        assert db.session.query(Payment).count() == 0
        assert db.session.get(Book, first.id).status == BOOK_STATUS_AVAILABLE
        assert db.session.query(CartItem).filter_by(user_id=customer.id).count() == 2

    def test_version_bump_after_locked_read(self, monkeypatch, customer, make_book, add_to_cart):
        """A row rewritten between the locked read and the flush aborts the checkout."""
        book = make_book()
        add_to_cart(customer, book)
        book_id = book.id

        original_utcnow = order_service.utcnow
        bumped = []

        def utcnow_after_concurrent_write():
            if not bumped:
                db.session.execute(
                    text("UPDATE books SET version_id = version_id + 1 WHERE id = :id"), {"id": book_id}
                )
                bumped.append(book_id)
            return original_utcnow()

        monkeypatch.setattr(order_service, "utcnow", utcnow_after_concurrent_write)

        with pytest.raises(InvalidOperationError) as exc:
            order_service.checkout(customer.id)

        assert bumped == [book_id]
        assert str(exc.value) == order_service.UNAVAILABLE_MESSAGE
        assert db.session.query(PurchaseOrder).count() == 0
        assert db.session.query(Payment).count() == 0
        assert db.session.query(CartItem).filter_by(user_id=customer.id).count() == 1
        assert db.session.get(Book, book_id).status == BOOK_STATUS_AVAILABLE

    def test_book_added_during_checkout_stays_in_cart(self, monkeypatch, customer, make_book, add_to_cart):
        """A cart row added after the cart was read is neither ordered nor removed."""
        ordered = make_book(title="Discrete Mathematics")
        late = make_book(title="Abstract Algebra")
        add_to_cart(customer, ordered)
        late_id = late.id

        original_read_cart = order_service._read_cart

        def read_cart_then_add(user_id):
            lines = original_read_cart(user_id)
            db.session.add(CartItem(user_id=user_id, book_id=late_id))
            db.session.commit()
            return lines

        monkeypatch.setattr(order_service, "_read_cart", read_cart_then_add)

        order = order_service.checkout(customer.id)

        assert [item["book_id"] for item in order["items"]] == [ordered.id]
        remaining = db.session.query(CartItem).filter_by(user_id=customer.id).all()
        assert [item.book_id for item in remaining] == [late_id]
        assert db.session.get(Book, late_id).status == BOOK_STATUS_AVAILABLE

    def test_foreign_payment_method(self, customer, other_customer, make_book, add_to_cart):
        method = PaymentMethod(
            user_id=other_customer.id, card_type="Visa", last_four_digits="9999", expiration_date="01/2030",
        )
        db.session.add(method)
        db.session.commit()
        add_to_cart(customer, make_book())

        with pytest.raises(InvalidOperationError):
            order_service.checkout(customer.id, payment_method_id=method.id)

        assert db.session.query(PurchaseOrder).count() == 0

    def test_other_customers_cart_untouched(self, customer, other_customer, make_book, add_to_cart):
        add_to_cart(customer, make_book())
        add_to_cart(other_customer, make_book())

        order_service.checkout(customer.id)

        assert db.session.query(CartItem).filter_by(user_id=other_customer.id).count() == 1


class TestOrderQueries:

    def test_details_include_payment_description(self, customer, visa, make_book, add_to_cart):
        book = make_book(title="Genetics")
        add_to_cart(customer, book)
        order = order_service.checkout(customer.id, payment_method_id=visa.id)

        details = order_service.get_order_details(order["order_id"], customer.id)

        assert details["items"][0]["title"] == "Genetics"
        assert details["items"][0]["isbn"] == book.isbn
        assert details["payment"]["payment_method"] == "Visa ending in 1234"

    def test_details_for_other_customer_is_forbidden(self, customer, other_customer, make_book, add_to_cart):
        add_to_cart(customer, make_book())
        order = order_service.checkout(customer.id)

        with pytest.raises(ForbiddenError):
            order_service.get_order_details(order["order_id"], other_customer.id)

    def test_staff_can_view_any_order(self, customer, admin, make_book, add_to_cart):
        add_to_cart(customer, make_book())
        order = order_service.checkout(customer.id)

        details = order_service.get_order_details(order["order_id"], admin.id, is_admin=True)
        assert details["id"] == order["order_id"]

    def test_details_unknown_order(self, customer):
        with pytest.raises(NotFoundError):
            order_service.get_order_details(987654, customer.id)

    def test_listings(self, customer, other_customer, make_book, add_to_cart):
        add_to_cart(customer, make_book())
        add_to_cart(customer, make_book())
        order_service.checkout(customer.id)
        add_to_cart(other_customer, make_book())
        order_service.checkout(other_customer.id)

        mine = order_service.list_user_orders(customer.id)
        assert len(mine) == 1
        assert mine[0]["item_count"] == 2

        everything = order_service.list_orders(page=1, per_page=10)
        assert everything["pagination"]["total"] == 2
        assert {o["username"] for o in everything["items"]} == {"alice", "bob"}

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


BOOK_STATUS_AVAILABLE = "AVAILABLE"
BOOK_STATUS_SOLD = "SOLD"


class Book(db.Model):
    """
    One physical copy offered for sale.

    Books come from staff entry or from an approved sell submission; in the
    latter case submission_id points back to it and is unique, so a
    submission can never produce two copies.

    version_id guards the AVAILABLE -> SOLD flip: two checkouts racing for the
    same copy cannot both flush their update.
    """
    __tablename__ = "books"
    __table_args__ = (
        db.UniqueConstraint("submission_id", name="uq_books_submission_id"),
        db.CheckConstraint("selling_price_cents > acquisition_cost_cents", name="ck_books_price_margin"),
        db.Index("ix_books_isbn_edition", "isbn", "edition"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.Integer, db.ForeignKey("sell_submissions.id"), nullable=True)

    isbn = db.Column(db.String(32), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    author = db.Column(db.String(255), nullable=False)
    edition = db.Column(db.String(64), nullable=False)
    book_condition = db.Column(db.String(16), nullable=False)
    course_major = db.Column(db.String(128), nullable=True)

    selling_price_cents = db.Column(db.Integer, nullable=False)
    acquisition_cost_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=BOOK_STATUS_AVAILABLE, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "submission_id": self.submission_id,
            "isbn": self.isbn,
            "title": self.title,
            "author": self.author,
            "edition": self.edition,
            "book_condition": self.book_condition,
            "course_major": self.course_major,
            "selling_price_cents": self.selling_price_cents,
            "acquisition_cost_cents": self.acquisition_cost_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class CartItem(db.Model):
    """A book a customer intends to buy. Deleted on checkout or removal."""
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("user_id", "book_id", name="uq_cart_items_user_book"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    book_id = db.Column(db.Integer, db.ForeignKey("books.id"), nullable=False)
    added_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    book = db.relationship("Book")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "book_id": self.book_id,
            "added_at": to_utc_z(self.added_at),
        }

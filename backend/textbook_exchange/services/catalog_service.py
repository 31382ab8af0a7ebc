# Overview: Book catalog reads plus staff-only inventory writes.

from __future__ import annotations

from sqlalchemy import or_

from ..errors import InvalidInputError, InvalidOperationError, NotFoundError
from ..extensions import db
from ..models import Book
from ..models.catalog import BOOK_STATUS_AVAILABLE, BOOK_STATUS_SOLD
from ..models.submissions import PHYSICAL_CONDITIONS
from ..validation import optional_text, price_cents, required_text
from .concurrency import lock_for_update, transaction


def list_books(search: str | None = None, page: int = 1, per_page: int = 20) -> dict:
    """
    Books currently for sale, optionally filtered by a case-insensitive match
    on title, author, ISBN or course.
    """
    query = db.session.query(Book).filter(Book.status == BOOK_STATUS_AVAILABLE)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Book.title.ilike(pattern),
            Book.author.ilike(pattern),
            Book.isbn.ilike(pattern),
            Book.course_major.ilike(pattern),
        ))
    query = query.order_by(Book.title.asc(), Book.id.asc())

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    books = query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [_public_dict(b) for b in books],
        "count": len(books),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def _public_dict(book: Book) -> dict:
    data = book.to_dict()
    data.pop("acquisition_cost_cents", None)
    return data


def get_book(book_id: int, include_cost: bool = False) -> dict:
    book = db.session.get(Book, book_id)
    if book is None:
        raise NotFoundError("Book not found")
    return book.to_dict() if include_cost else _public_dict(book)


def stock_count(isbn: str, edition: str) -> int:
    """Available copies of one ISBN/edition."""
    return (
        db.session.query(Book)
        .filter(
            Book.isbn == isbn,
            Book.edition == edition,
            Book.status == BOOK_STATUS_AVAILABLE,
        )
        .count()
    )


def create_book(
    isbn: str,
    title: str,
    author: str,
    edition: str,
    book_condition: str,
    selling_price_cents: int,
    acquisition_cost_cents: int,
    course_major: str | None = None,
) -> Book:
    """Staff entry of a copy that did not come through a sell submission."""
    book_condition = required_text(book_condition, "book_condition", max_length=16)
    if book_condition not in PHYSICAL_CONDITIONS:
        raise InvalidInputError("book_condition must be 'New', 'Good', or 'Fair'")

    selling = price_cents(selling_price_cents, "selling_price_cents")
    cost = price_cents(acquisition_cost_cents, "acquisition_cost_cents")
    if selling <= cost:
        raise InvalidInputError(
            "selling_price_cents must be greater than acquisition_cost_cents",
            details={"selling_price_cents": selling, "acquisition_cost_cents": cost},
        )

    book = Book(
        isbn=required_text(isbn, "isbn", max_length=32),
        title=required_text(title, "title"),
        author=required_text(author, "author"),
        edition=required_text(edition, "edition", max_length=64),
        book_condition=book_condition,
        course_major=optional_text(course_major, "course_major", max_length=128),
        selling_price_cents=selling,
        acquisition_cost_cents=cost,
        status=BOOK_STATUS_AVAILABLE,
    )
    with transaction():
        db.session.add(book)
    return book


def restock_book(book_id: int) -> Book:
    """Manual SOLD -> AVAILABLE, e.g. after a returned order. Never automatic."""
    with transaction():
        book = lock_for_update(db.session.query(Book).filter(Book.id == book_id)).first()
        if book is None:
            raise NotFoundError("Book not found")
        if book.status != BOOK_STATUS_SOLD:
            raise InvalidOperationError("Only sold books can be restocked", details={"status": book.status})
        book.status = BOOK_STATUS_AVAILABLE
    return book

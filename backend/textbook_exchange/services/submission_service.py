# Overview: Sell-submission lifecycle; creation, staff approval into inventory and rejection.

"""
Sell Submission Service

LIFECYCLE:
1. Customer creates a submission (PENDING_REVIEW)
2. Optional price negotiation (see negotiation_service)
3. Staff approval creates the Book and completes the submission, or staff
   rejects it

The acquisition cost of an approved book is the price the customer accepted
in negotiation, or the asking price when staff approve without negotiating.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConflictError, ForbiddenError, InvalidInputError, InvalidOperationError, NotFoundError
from ..extensions import db
from ..models import Book, PriceNegotiation, SellSubmission, User
from ..models.catalog import BOOK_STATUS_AVAILABLE
from ..models.submissions import (
    OFFER_STATUS_ACCEPTED,
    OFFER_STATUS_REJECTED,
    PHYSICAL_CONDITIONS,
    SUBMISSION_STATUS_APPROVED,
    SUBMISSION_STATUS_COMPLETED,
    SUBMISSION_STATUS_PENDING_REVIEW,
    SUBMISSION_STATUS_REJECTED,
)
from ..time_utils import utcnow
from ..validation import optional_text, price_cents, required_text
from .concurrency import flush_or_conflict, lock_for_update, transaction
from .negotiation_service import latest_round, list_rounds, pending_admin_rounds


def create_submission(
    user_id: int,
    isbn: str,
    title: str,
    author: str,
    edition: str,
    physical_condition: str,
    asking_price_cents: int,
    course_major: str | None = None,
) -> SellSubmission:
    """
    Create a new submission in PENDING_REVIEW with no staff member assigned.

    Raises:
        InvalidInputError: a field is missing, the condition is unknown or the
            asking price is not positive
    """
    isbn = required_text(isbn, "isbn", max_length=32)
    title = required_text(title, "title")
    author = required_text(author, "author")
    edition = required_text(edition, "edition", max_length=64)
    physical_condition = required_text(physical_condition, "physical_condition", max_length=16)
    if physical_condition not in PHYSICAL_CONDITIONS:
        raise InvalidInputError("physical_condition must be 'New', 'Good', or 'Fair'")
    asking = price_cents(asking_price_cents, "asking_price_cents")
    course_major = optional_text(course_major, "course_major", max_length=128)

    submission = SellSubmission(
        user_id=user_id,
        isbn=isbn,
        title=title,
        author=author,
        edition=edition,
        physical_condition=physical_condition,
        course_major=course_major,
        asking_price_cents=asking,
        status=SUBMISSION_STATUS_PENDING_REVIEW,
        submitted_at=utcnow(),
    )
    with transaction():
        db.session.add(submission)
    return submission


def list_user_submissions(user_id: int, status: str | None = None) -> list[SellSubmission]:
    query = db.session.query(SellSubmission).filter(SellSubmission.user_id == user_id)
    if status:
        query = query.filter(SellSubmission.status == status)
    return query.order_by(SellSubmission.submitted_at.desc(), SellSubmission.id.desc()).all()


def list_submissions(status: str | None = None, page: int = 1, per_page: int = 20) -> dict:
    """Staff listing across all customers, newest first, with submitter username."""
    query = (
        db.session.query(SellSubmission, User.username)
        .join(User, SellSubmission.user_id == User.id)
    )
    if status:
        query = query.filter(SellSubmission.status == status)
    query = query.order_by(SellSubmission.submitted_at.desc(), SellSubmission.id.desc())

    total = query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1
    rows = query.offset((page - 1) * per_page).limit(per_page).all()

    items = []
    for submission, username in rows:
        data = submission.to_dict()
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


def get_submission_details(submission_id: int, caller_user_id: int, is_admin: bool = False) -> dict:
    """
    Submission plus its negotiation history in round order.

    Customers may only see their own submissions; staff may see any.
    """
    submission = db.session.get(SellSubmission, submission_id)
    if submission is None:
        raise NotFoundError("Submission not found")
    if not is_admin and submission.user_id != caller_user_id:
        raise ForbiddenError("Submission does not belong to you")

    data = submission.to_dict()
    data["negotiations"] = [n.to_dict() for n in list_rounds(submission.id)]
    return data


def approve_submission(submission_id: int, admin_user_id: int, selling_price_cents: int) -> Book:
    """
    Complete a submission and put the book into inventory.

    Acquisition cost:
    - latest ACCEPTED round's price, submission must be APPROVED
    - otherwise, with no rounds at all, the asking price; submission must be
      PENDING_REVIEW
    Any other combination is an InvalidOperation.

    Raises:
        NotFoundError: submission does not exist
        ConflictError: already approved (a Book exists) or in a terminal state
        InvalidOperationError: status does not match the acquisition-cost source
        InvalidInputError: selling price missing or not above acquisition cost
    """
    selling = price_cents(selling_price_cents, "selling_price_cents")

    with transaction():
        submission = lock_for_update(
            db.session.query(SellSubmission).filter(SellSubmission.id == submission_id)
        ).first()
        if submission is None:
            raise NotFoundError("Submission not found")

        existing_book = db.session.query(Book.id).filter(Book.submission_id == submission.id).first()
        if existing_book is not None:
            raise ConflictError(
                "A book has already been created for this submission",
                details={"submission_id": submission.id, "book_id": existing_book.id},
            )

        if submission.is_terminal:
            raise ConflictError(
                f"Submission is already {submission.status}",
                details={"submission_id": submission.id, "status": submission.status},
            )

        accepted = latest_round(submission.id, offer_status=OFFER_STATUS_ACCEPTED)
        if accepted is not None:
            if submission.status != SUBMISSION_STATUS_APPROVED:
                raise InvalidOperationError(
                    "Submission must be in Approved status with an accepted negotiation before approval",
                    details={"status": submission.status},
                )
            acquisition_cost = accepted.offered_price_cents
        else:
            has_rounds = (
                db.session.query(PriceNegotiation.id)
                .filter(PriceNegotiation.submission_id == submission.id)
                .first()
                is not None
            )
            if submission.status != SUBMISSION_STATUS_PENDING_REVIEW or has_rounds:
                raise InvalidOperationError(
                    "Submission can only be approved directly while Pending Review with no negotiation, "
                    "or after the customer accepts an offer",
                    details={"status": submission.status, "has_negotiation": has_rounds},
                )
            acquisition_cost = submission.asking_price_cents

        if selling <= acquisition_cost:
            raise InvalidInputError(
                "selling_price_cents must be greater than the acquisition cost",
                details={"selling_price_cents": selling, "acquisition_cost_cents": acquisition_cost},
            )

        submission.status = SUBMISSION_STATUS_COMPLETED
        submission.admin_user_id = admin_user_id

        book = Book(
            submission_id=submission.id,
            isbn=submission.isbn,
            title=submission.title,
            author=submission.author,
            edition=submission.edition,
            book_condition=submission.physical_condition,
            course_major=submission.course_major,
            selling_price_cents=selling,
            acquisition_cost_cents=acquisition_cost,
            status=BOOK_STATUS_AVAILABLE,
        )
        db.session.add(book)
        flush_or_conflict(
            "A book has already been created for this submission",
            details={"submission_id": submission.id},
        )

        current_app.logger.info(
            "Submission %s approved by user %s: book %s (cost %s, price %s cents)",
            submission.id, admin_user_id, book.id, acquisition_cost, selling,
        )
        return book


def reject_submission(submission_id: int, admin_user_id: int, reason: str | None = None) -> bool:
    """
    Staff rejection of a submission that is still open.

    Raises:
        NotFoundError: submission does not exist
        ConflictError: submission is already Rejected, Approved or Completed
    """
    reason = optional_text(reason, "reason")

    with transaction():
        submission = lock_for_update(
            db.session.query(SellSubmission).filter(SellSubmission.id == submission_id)
        ).first()
        if submission is None:
            raise NotFoundError("Submission not found")

        if submission.status in (
            SUBMISSION_STATUS_REJECTED,
            SUBMISSION_STATUS_APPROVED,
            SUBMISSION_STATUS_COMPLETED,
        ):
            raise ConflictError(
                f"Submission is already {submission.status}",
                details={"submission_id": submission.id, "status": submission.status},
            )

        # Open staff offers close with the submission
        for offer in pending_admin_rounds(submission.id):
            offer.offer_status = OFFER_STATUS_REJECTED

        submission.status = SUBMISSION_STATUS_REJECTED
        submission.admin_user_id = admin_user_id
        submission.rejection_reason = reason

    current_app.logger.info(
        "Submission %s rejected by user %s: %s", submission_id, admin_user_id, reason or "no reason given",
    )
    return True

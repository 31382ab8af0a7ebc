# Overview: Price negotiation rounds between a submitting customer and staff.

"""
Sell-Submission Price Negotiation

Staff and the customer take turns making offers on a PENDING_REVIEW
submission. Each offer is a PriceNegotiation round; rounds are numbered
1, 2, 3, ... per submission regardless of who made them.

RULES:
- "Latest row wins": every decision looks at the highest-numbered round
  matching a predicate (see latest_round), read fresh inside the
  transaction. Client-supplied state is never trusted.
- Turn alternation: staff may not offer while their own offer is still
  pending; the customer may only counter a pending staff offer.
- At most one ADMIN/PENDING round per submission. A new staff offer
  supersedes (rejects) any older pending staff offer in the same
  transaction that inserts it.
- Only the latest pending staff offer can be accepted; accepting anything
  else is a Conflict and the customer must refresh.

Each public operation locks the submission row first, so two requests acting
on the same submission are serialized on databases that honor FOR UPDATE; the
unique (submission_id, round_number) constraint covers the rest.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import func

from ..errors import ConflictError, ForbiddenError, InvalidInputError, InvalidOperationError, NotFoundError
from ..extensions import db
from ..models import PriceNegotiation, SellSubmission
from ..models.submissions import (
    OFFER_STATUS_ACCEPTED,
    OFFER_STATUS_PENDING,
    OFFER_STATUS_REJECTED,
    OFFERED_BY_ADMIN,
    OFFERED_BY_USER,
    SUBMISSION_STATUS_APPROVED,
    SUBMISSION_STATUS_PENDING_REVIEW,
    SUBMISSION_STATUS_REJECTED,
)
from ..time_utils import utcnow
from ..validation import optional_text, price_cents
from .concurrency import flush_or_conflict, lock_for_update, transaction


ACTION_ACCEPT = "accept"
ACTION_REJECT = "reject"
ACTION_COUNTER = "counter"

CUSTOMER_ACTIONS = (ACTION_ACCEPT, ACTION_REJECT, ACTION_COUNTER)


@dataclass
class NegotiationOutcome:
    """Result of one negotiation action."""
    negotiation: PriceNegotiation
    submission_status: str
    message: str

    def to_dict(self) -> dict:
        return {
            "negotiation_id": self.negotiation.id,
            "round_number": self.negotiation.round_number,
            "offered_by": self.negotiation.offered_by,
            "offered_price_cents": self.negotiation.offered_price_cents,
            "offer_status": self.negotiation.offer_status,
            "offer_message": self.negotiation.offer_message,
            "submission_status": self.submission_status,
            "message": self.message,
        }


# =============================================================================
# ROUND QUERIES
# =============================================================================

def latest_round(
    submission_id: int,
    offered_by: str | None = None,
    offer_status: str | None = None,
) -> PriceNegotiation | None:
    """Highest-numbered round for the submission matching the given predicate."""
    query = db.session.query(PriceNegotiation).filter(PriceNegotiation.submission_id == submission_id)
    if offered_by is not None:
        query = query.filter(PriceNegotiation.offered_by == offered_by)
    if offer_status is not None:
        query = query.filter(PriceNegotiation.offer_status == offer_status)
    return query.order_by(PriceNegotiation.round_number.desc()).first()


def next_round_number(submission_id: int) -> int:
    current = (
        db.session.query(func.max(PriceNegotiation.round_number))
        .filter(PriceNegotiation.submission_id == submission_id)
        .scalar()
    )
    return (current or 0) + 1


def list_rounds(submission_id: int) -> list[PriceNegotiation]:
    return (
        db.session.query(PriceNegotiation)
        .filter(PriceNegotiation.submission_id == submission_id)
        .order_by(PriceNegotiation.round_number.asc())
        .all()
    )


def pending_admin_rounds(submission_id: int) -> list[PriceNegotiation]:
    return (
        db.session.query(PriceNegotiation)
        .filter(
            PriceNegotiation.submission_id == submission_id,
            PriceNegotiation.offered_by == OFFERED_BY_ADMIN,
            PriceNegotiation.offer_status == OFFER_STATUS_PENDING,
        )
        .all()
    )


def _lock_open_submission(submission_id: int) -> SellSubmission:
    submission = lock_for_update(
        db.session.query(SellSubmission).filter(SellSubmission.id == submission_id)
    ).first()
    if submission is None:
        raise NotFoundError("Submission not found")
    return submission


def _require_pending_review(submission: SellSubmission) -> None:
    if submission.status != SUBMISSION_STATUS_PENDING_REVIEW:
        raise ConflictError(
            "Submission is not in Pending Review status",
            details={"submission_id": submission.id, "status": submission.status},
        )


def _load_round(submission_id: int, negotiation_id: int) -> PriceNegotiation:
    negotiation = (
        db.session.query(PriceNegotiation)
        .filter(
            PriceNegotiation.id == negotiation_id,
            PriceNegotiation.submission_id == submission_id,
        )
        .first()
    )
    if negotiation is None:
        raise NotFoundError("Negotiation not found")
    return negotiation


def _insert_round(submission_id: int, offered_by: str, price: int, message: str | None) -> PriceNegotiation:
    negotiation = PriceNegotiation(
        submission_id=submission_id,
        offered_by=offered_by,
        offered_price_cents=price,
        offer_message=message,
        offer_status=OFFER_STATUS_PENDING,
        round_number=next_round_number(submission_id),
        offered_at=utcnow(),
    )
    db.session.add(negotiation)
    flush_or_conflict(
        "Another offer was made at the same time, please refresh",
        details={"submission_id": submission_id},
    )
    return negotiation


# =============================================================================
# CUSTOMER ACTIONS
# =============================================================================

def customer_negotiate(
    submission_id: int,
    user_id: int,
    action: str,
    negotiation_id: int | None = None,
    offered_price_cents: int | None = None,
    message: str | None = None,
) -> NegotiationOutcome:
    """
    Accept, reject or counter a staff offer on the caller's own submission.

    Raises:
        InvalidInputError: unknown action, missing negotiation id, bad price
        NotFoundError: submission or negotiation does not exist
        ForbiddenError: submission belongs to someone else
        ConflictError: submission closed, or the offer is stale
        InvalidOperationError: the action is not the customer's turn
    """
    if not isinstance(action, str):
        raise InvalidInputError("Action must be 'accept', 'reject', or 'counter'")
    action = action.strip().lower()
    if action not in CUSTOMER_ACTIONS:
        raise InvalidInputError("Action must be 'accept', 'reject', or 'counter'")

    if action in (ACTION_ACCEPT, ACTION_REJECT) and negotiation_id is None:
        raise InvalidInputError(f"negotiation_id is required for {action} action")

    price = None
    if action == ACTION_COUNTER:
        price = price_cents(offered_price_cents, "offered_price_cents")
    message = optional_text(message, "offer_message", max_length=500)

    with transaction():
        submission = _lock_open_submission(submission_id)
        if submission.user_id != user_id:
            raise ForbiddenError("Submission does not belong to you")
        _require_pending_review(submission)

        if action == ACTION_ACCEPT:
            return _accept(submission, negotiation_id)
        if action == ACTION_REJECT:
            return _reject(submission, negotiation_id)
        return _counter(submission, price, message)


def _accept(submission: SellSubmission, negotiation_id: int) -> NegotiationOutcome:
    negotiation = _load_round(submission.id, negotiation_id)
    if negotiation.offered_by != OFFERED_BY_ADMIN:
        raise InvalidOperationError("Only offers made by the store can be accepted")

    if negotiation.offer_status != OFFER_STATUS_PENDING:
        raise ConflictError(
            "This offer is no longer pending, please refresh",
            details={"negotiation_id": negotiation.id, "offer_status": negotiation.offer_status},
        )

    latest = latest_round(submission.id, offered_by=OFFERED_BY_ADMIN, offer_status=OFFER_STATUS_PENDING)
    if latest is None or latest.id != negotiation.id:
        raise ConflictError(
            "A newer offer has been made, please refresh",
            details={
                "negotiation_id": negotiation.id,
                "latest_negotiation_id": latest.id if latest else None,
            },
        )

    negotiation.offer_status = OFFER_STATUS_ACCEPTED
    submission.status = SUBMISSION_STATUS_APPROVED
    db.session.flush()

    current_app.logger.info(
        "Submission %s: customer accepted round %s at %s cents",
        submission.id, negotiation.round_number, negotiation.offered_price_cents,
    )
    return NegotiationOutcome(
        negotiation=negotiation,
        submission_status=submission.status,
        message="Price accepted. Book will be added to inventory.",
    )


def _reject(submission: SellSubmission, negotiation_id: int) -> NegotiationOutcome:
    negotiation = _load_round(submission.id, negotiation_id)
    if negotiation.offered_by != OFFERED_BY_ADMIN:
        raise InvalidOperationError("Only offers made by the store can be rejected")

    if negotiation.offer_status != OFFER_STATUS_PENDING:
        raise ConflictError(
            "This offer is no longer pending, please refresh",
            details={"negotiation_id": negotiation.id, "offer_status": negotiation.offer_status},
        )

    negotiation.offer_status = OFFER_STATUS_REJECTED
    db.session.flush()

    if not pending_admin_rounds(submission.id):
        submission.status = SUBMISSION_STATUS_REJECTED
        db.session.flush()

    current_app.logger.info(
        "Submission %s: customer rejected round %s (submission now %s)",
        submission.id, negotiation.round_number, submission.status,
    )
    return NegotiationOutcome(
        negotiation=negotiation,
        submission_status=submission.status,
        message="Price rejected.",
    )


def _counter(submission: SellSubmission, price: int, message: str | None) -> NegotiationOutcome:
    latest = latest_round(submission.id)
    if latest is None:
        raise InvalidOperationError("The store has not made an offer yet")
    if latest.offered_by != OFFERED_BY_ADMIN or latest.offer_status != OFFER_STATUS_PENDING:
        raise InvalidOperationError(
            "A counter-offer can only answer a pending offer from the store",
            details={"latest_round": latest.round_number},
        )

    negotiation = _insert_round(submission.id, OFFERED_BY_USER, price, message)
    current_app.logger.info(
        "Submission %s: customer countered with %s cents (round %s)",
        submission.id, price, negotiation.round_number,
    )
    return NegotiationOutcome(
        negotiation=negotiation,
        submission_status=submission.status,
        message="Counter-offer submitted.",
    )


# =============================================================================
# STAFF ACTIONS
# =============================================================================

def admin_negotiate(
    submission_id: int,
    admin_user_id: int,
    offered_price_cents: int,
    message: str | None = None,
) -> NegotiationOutcome:
    """
    Make a staff offer on a PENDING_REVIEW submission.

    Older pending staff offers are rejected in the same transaction, which
    restores the single-pending-offer invariant even if an earlier failure
    left stale rows behind.

    Raises:
        InvalidInputError: price missing or not positive
        NotFoundError: submission does not exist
        ConflictError: submission closed, or a staff offer is still pending
        InvalidOperationError: negotiation already closed
    """
    price = price_cents(offered_price_cents, "offered_price_cents")
    message = optional_text(message, "offer_message", max_length=500)

    with transaction():
        submission = _lock_open_submission(submission_id)
        _require_pending_review(submission)

        latest = latest_round(submission.id)
        if latest is not None:
            if latest.offered_by == OFFERED_BY_ADMIN and latest.offer_status == OFFER_STATUS_PENDING:
                raise ConflictError(
                    "An offer from the store is already pending; wait for the customer to respond",
                    details={"negotiation_id": latest.id, "round_number": latest.round_number},
                )
            if latest.offer_status in (OFFER_STATUS_ACCEPTED, OFFER_STATUS_REJECTED):
                raise InvalidOperationError(
                    "Negotiation is closed",
                    details={"round_number": latest.round_number, "offer_status": latest.offer_status},
                )

        for stale in pending_admin_rounds(submission.id):
            stale.offer_status = OFFER_STATUS_REJECTED

        submission.admin_user_id = admin_user_id
        negotiation = _insert_round(submission.id, OFFERED_BY_ADMIN, price, message)
        current_app.logger.info(
            "Submission %s: staff user %s offered %s cents (round %s)",
            submission.id, admin_user_id, price, negotiation.round_number,
        )

        return NegotiationOutcome(
            negotiation=negotiation,
            submission_status=submission.status,
            message="Offer sent to customer.",
        )

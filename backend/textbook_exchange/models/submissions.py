from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


SUBMISSION_STATUS_PENDING_REVIEW = "PENDING_REVIEW"
SUBMISSION_STATUS_APPROVED = "APPROVED"
SUBMISSION_STATUS_REJECTED = "REJECTED"
SUBMISSION_STATUS_COMPLETED = "COMPLETED"

TERMINAL_SUBMISSION_STATUSES = {SUBMISSION_STATUS_REJECTED, SUBMISSION_STATUS_COMPLETED}

OFFERED_BY_USER = "USER"
OFFERED_BY_ADMIN = "ADMIN"

OFFER_STATUS_PENDING = "PENDING"
OFFER_STATUS_ACCEPTED = "ACCEPTED"
OFFER_STATUS_REJECTED = "REJECTED"

PHYSICAL_CONDITIONS = ("New", "Good", "Fair")


class SellSubmission(db.Model):
    """
    A customer's offer to sell a used book to the store.

    LIFECYCLE:
    PENDING_REVIEW -> APPROVED (customer accepted a staff offer)
    PENDING_REVIEW -> REJECTED (customer declined, or staff rejected)
    APPROVED / PENDING_REVIEW -> COMPLETED (staff approval created the Book)

    REJECTED and COMPLETED are terminal.
    """
    __tablename__ = "sell_submissions"
    __table_args__ = (
        db.Index("ix_sell_submissions_user_status", "user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    admin_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    isbn = db.Column(db.String(32), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    author = db.Column(db.String(255), nullable=False)
    edition = db.Column(db.String(64), nullable=False)
    physical_condition = db.Column(db.String(16), nullable=False)
    course_major = db.Column(db.String(128), nullable=True)

    asking_price_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, default=SUBMISSION_STATUS_PENDING_REVIEW, index=True)
    rejection_reason = db.Column(db.String(255), nullable=True)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=utcnow)

    user = db.relationship("User", foreign_keys=[user_id])
    admin_user = db.relationship("User", foreign_keys=[admin_user_id])

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_SUBMISSION_STATUSES

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "admin_user_id": self.admin_user_id,
            "isbn": self.isbn,
            "title": self.title,
            "author": self.author,
            "edition": self.edition,
            "physical_condition": self.physical_condition,
            "course_major": self.course_major,
            "asking_price_cents": self.asking_price_cents,
            "status": self.status,
            "rejection_reason": self.rejection_reason,
            "submitted_at": to_utc_z(self.submitted_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PriceNegotiation(db.Model):
    """
    One price offer within a submission's negotiation.

    Rounds are append-only: after insert only offer_status may move, and only
    from PENDING. (submission_id, round_number) is unique, which turns two
    concurrent offers computing the same next round into an integrity error
    instead of a duplicate round.
    """
    __tablename__ = "price_negotiations"
    __table_args__ = (
        db.UniqueConstraint("submission_id", "round_number", name="uq_price_negotiations_round"),
        db.Index("ix_price_negotiations_submission_status", "submission_id", "offered_by", "offer_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.Integer, db.ForeignKey("sell_submissions.id"), nullable=False, index=True)

    offered_by = db.Column(db.String(8), nullable=False)
    offered_price_cents = db.Column(db.Integer, nullable=False)
    offer_message = db.Column(db.String(500), nullable=True)
    offer_status = db.Column(db.String(16), nullable=False, default=OFFER_STATUS_PENDING)
    round_number = db.Column(db.Integer, nullable=False)

    offered_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    submission = db.relationship("SellSubmission", backref=db.backref("negotiations", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "submission_id": self.submission_id,
            "offered_by": self.offered_by,
            "offered_price_cents": self.offered_price_cents,
            "offer_message": self.offer_message,
            "offer_status": self.offer_status,
            "round_number": self.round_number,
            "offered_at": to_utc_z(self.offered_at),
        }

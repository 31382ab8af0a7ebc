# Overview: Pytest coverage for sell submission creation, approval and rejection.

import pytest

from textbook_exchange.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidOperationError,
    NotFoundError,
)
from textbook_exchange.extensions import db
from textbook_exchange.models import Book, PriceNegotiation, SellSubmission
from textbook_exchange.models.catalog import BOOK_STATUS_AVAILABLE
from textbook_exchange.models.submissions import (
    OFFER_STATUS_REJECTED,
    SUBMISSION_STATUS_APPROVED,
    SUBMISSION_STATUS_COMPLETED,
    SUBMISSION_STATUS_PENDING_REVIEW,
    SUBMISSION_STATUS_REJECTED,
)
from textbook_exchange.services import submission_service
from textbook_exchange.services.negotiation_service import admin_negotiate, customer_negotiate


SUBMISSION_FIELDS = dict(
    isbn="9780262033848",
    title="Introduction to Algorithms",
    author="Cormen",
    edition="3rd",
    physical_condition="Good",
)


class TestCreateSubmission:

    def test_creates_pending_review_without_staff(self, customer):
        submission = submission_service.create_submission(
            user_id=customer.id, asking_price_cents=3000, **SUBMISSION_FIELDS,
        )

        assert submission.status == SUBMISSION_STATUS_PENDING_REVIEW
        assert submission.admin_user_id is None
        assert submission.submitted_at is not None

    def test_unknown_condition(self, customer):
        fields = dict(SUBMISSION_FIELDS, physical_condition="Mint")

        with pytest.raises(InvalidInputError):
            submission_service.create_submission(user_id=customer.id, asking_price_cents=3000, **fields)

    @pytest.mark.parametrize("price", [0, -1, "27.5", "1e3", None])
    def test_bad_asking_price(self, customer, price):
        with pytest.raises(InvalidInputError):
            submission_service.create_submission(user_id=customer.id, asking_price_cents=price, **SUBMISSION_FIELDS)

    def test_blank_title(self, customer):
        fields = dict(SUBMISSION_FIELDS, title="   ")

        with pytest.raises(InvalidInputError):
            submission_service.create_submission(user_id=customer.id, asking_price_cents=3000, **fields)

        assert db.session.query(SellSubmission).count() == 0


class TestApproveSubmission:

    def test_direct_approval_uses_asking_price(self, customer, admin, make_submission):
        submission = make_submission(customer, asking_price_cents=3000)

        book = submission_service.approve_submission(submission.id, admin.id, 4500)

        assert book.acquisition_cost_cents == 3000
        assert book.selling_price_cents == 4500
        assert book.status == BOOK_STATUS_AVAILABLE
        assert book.submission_id == submission.id
        refreshed = db.session.get(SellSubmission, submission.id)
        assert refreshed.status == SUBMISSION_STATUS_COMPLETED
        assert refreshed.admin_user_id == admin.id

    def test_selling_price_must_exceed_cost(self, customer, admin, make_submission):
        submission = make_submission(customer, asking_price_cents=3000)

        with pytest.raises(InvalidInputError):
            submission_service.approve_submission(submission.id, admin.id, 3000)

        assert db.session.query(Book).count() == 0
        assert db.session.get(SellSubmission, submission.id).status == SUBMISSION_STATUS_PENDING_REVIEW

    def test_double_approval_is_conflict(self, customer, admin, make_submission):
        submission = make_submission(customer)
        submission_service.approve_submission(submission.id, admin.id, 4500)

        with pytest.raises(ConflictError):
            submission_service.approve_submission(submission.id, admin.id, 5000)

        assert db.session.query(Book).filter_by(submission_id=submission.id).count() == 1

    def test_open_negotiation_without_acceptance(self, customer, admin, make_submission):
        """Rounds exist but none was accepted: no approval from Pending Review."""
        submission = make_submission(customer)
        admin_negotiate(submission.id, admin.id, 2500)

        with pytest.raises(InvalidOperationError):
            submission_service.approve_submission(submission.id, admin.id, 4500)

    def test_approved_status_without_accepted_round(self, customer, admin, make_submission):
        submission = make_submission(customer, status=SUBMISSION_STATUS_APPROVED)

        with pytest.raises(InvalidOperationError):
            submission_service.approve_submission(submission.id, admin.id, 4500)

    def test_rejected_submission_is_conflict(self, customer, admin, make_submission):
        submission = make_submission(customer, status=SUBMISSION_STATUS_REJECTED)

        with pytest.raises(ConflictError):
            submission_service.approve_submission(submission.id, admin.id, 4500)

    def test_unknown_submission(self, admin):
        with pytest.raises(NotFoundError):
            submission_service.approve_submission(987654, admin.id, 4500)

    def test_negotiated_sale_end_to_end(self, customer, admin, make_submission):
        """Ask $30, offer $25, counter $28, offer $27, accept, sell at $40."""
        submission = make_submission(customer, asking_price_cents=3000)

        admin_negotiate(submission.id, admin.id, 2500)
        customer_negotiate(submission.id, customer.id, "counter", offered_price_cents=2800)
        final_offer = admin_negotiate(submission.id, admin.id, 2700).negotiation
        accepted = customer_negotiate(submission.id, customer.id, "accept", negotiation_id=final_offer.id)
        assert accepted.submission_status == SUBMISSION_STATUS_APPROVED

        book = submission_service.approve_submission(submission.id, admin.id, 4000)

        assert book.acquisition_cost_cents == 2700
        assert book.selling_price_cents == 4000
        assert db.session.get(SellSubmission, submission.id).status == SUBMISSION_STATUS_COMPLETED

        details = submission_service.get_submission_details(submission.id, customer.id)
        assert [n["round_number"] for n in details["negotiations"]] == [1, 2, 3]
        assert [n["offer_status"] for n in details["negotiations"]] == ["REJECTED", "PENDING", "ACCEPTED"]

    def test_negotiated_price_floor(self, customer, admin, make_submission):
        submission = make_submission(customer, asking_price_cents=3000)
        offer = admin_negotiate(submission.id, admin.id, 2700).negotiation
        customer_negotiate(submission.id, customer.id, "accept", negotiation_id=offer.id)

        with pytest.raises(InvalidInputError):
            submission_service.approve_submission(submission.id, admin.id, 2700)

        book = submission_service.approve_submission(submission.id, admin.id, 2701)
        assert book.acquisition_cost_cents == 2700


class TestRejectSubmission:

    def test_reject_stores_reason(self, customer, admin, make_submission):
        submission = make_submission(customer)

        assert submission_service.reject_submission(submission.id, admin.id, reason="Water damage") is True

        refreshed = db.session.get(SellSubmission, submission.id)
        assert refreshed.status == SUBMISSION_STATUS_REJECTED
        assert refreshed.rejection_reason == "Water damage"
        assert refreshed.admin_user_id == admin.id

    @pytest.mark.parametrize("status", [
        SUBMISSION_STATUS_REJECTED,
        SUBMISSION_STATUS_APPROVED,
        SUBMISSION_STATUS_COMPLETED,
    ])
    def test_reject_closed_submission_is_conflict(self, customer, admin, make_submission, status):
        submission = make_submission(customer, status=status)

        with pytest.raises(ConflictError):
            submission_service.reject_submission(submission.id, admin.id)

        assert db.session.get(SellSubmission, submission.id).status == status

    def test_reject_twice(self, customer, admin, other_admin, make_submission):
        submission = make_submission(customer)
        submission_service.reject_submission(submission.id, admin.id)

        with pytest.raises(ConflictError):
            submission_service.reject_submission(submission.id, other_admin.id)

        stored = db.session.get(SellSubmission, submission.id)
        assert stored.status == SUBMISSION_STATUS_REJECTED
        assert stored.admin_user_id == admin.id

    def test_reject_with_open_negotiation(self, customer, admin, make_submission):
        submission = make_submission(customer)
        offer = admin_negotiate(submission.id, admin.id, 2500).negotiation
        offer_id = offer.id

        submission_service.reject_submission(submission.id, admin.id)

        assert db.session.get(SellSubmission, submission.id).status == SUBMISSION_STATUS_REJECTED
        assert db.session.get(PriceNegotiation, offer_id).offer_status == OFFER_STATUS_REJECTED


class TestSubmissionQueries:

    def test_details_for_owner_and_staff(self, customer, admin, make_submission):
        submission = make_submission(customer)

        assert submission_service.get_submission_details(submission.id, customer.id)["id"] == submission.id
        assert submission_service.get_submission_details(submission.id, admin.id, is_admin=True)["negotiations"] == []

    def test_details_for_other_customer_is_forbidden(self, customer, other_customer, make_submission):
        submission = make_submission(customer)

        with pytest.raises(ForbiddenError):
            submission_service.get_submission_details(submission.id, other_customer.id)

    def test_details_unknown(self, customer):
        with pytest.raises(NotFoundError):
            submission_service.get_submission_details(987654, customer.id)

    def test_user_listing_filters_by_owner_and_status(self, customer, other_customer, make_submission):
        make_submission(customer)
        make_submission(customer, status=SUBMISSION_STATUS_REJECTED)
        make_submission(other_customer)

        assert len(submission_service.list_user_submissions(customer.id)) == 2
        pending = submission_service.list_user_submissions(customer.id, status=SUBMISSION_STATUS_PENDING_REVIEW)
        assert [s.status for s in pending] == [SUBMISSION_STATUS_PENDING_REVIEW]

    def test_staff_listing_is_paginated(self, customer, other_customer, make_submission):
        for _ in range(3):
            make_submission(customer)
        make_submission(other_customer)

        result = submission_service.list_submissions(page=1, per_page=3)

        assert result["count"] == 3
        assert result["pagination"]["total"] == 4
        assert result["pagination"]["total_pages"] == 2
        assert result["pagination"]["has_next"] is True
        assert {item["username"] for item in result["items"]} <= {"alice", "bob"}

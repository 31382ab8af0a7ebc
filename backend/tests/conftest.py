"""
Pytest fixtures for the textbook exchange backend tests.

Provides the application on in-memory SQLite, a fresh database per test,
account fixtures and small factories for books and sell submissions.
"""

import pytest
from textbook_exchange import create_app
from textbook_exchange.extensions import db, sessions
from textbook_exchange.models import Book, CartItem, PaymentMethod, SellSubmission, User
from textbook_exchange.models.catalog import BOOK_STATUS_AVAILABLE
from textbook_exchange.models.submissions import SUBMISSION_STATUS_PENDING_REVIEW
from textbook_exchange.services.auth_service import hash_password, identity_for
from textbook_exchange.time_utils import utcnow


PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before each test."""
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


def _make_user(username: str, user_type: str = "Customer") -> User:
    user = User(
        username=username,
        email=f"{username}@example.edu",
        password_hash=hash_password(PASSWORD),
        user_type=user_type,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def customer(db_session):
    """Customer who sells and buys books."""
    return _make_user("alice")


@pytest.fixture(scope='function')
def other_customer(db_session):
    return _make_user("bob")


@pytest.fixture(scope='function')
def admin(db_session):
    """Staff account."""
    return _make_user("staff", user_type="Admin")


@pytest.fixture(scope='function')
def other_admin(db_session):
    return _make_user("staff2", user_type="Admin")


@pytest.fixture(scope='function')
def make_book(db_session):
    """Factory for AVAILABLE inventory copies."""
    counter = {"n": 0}

    def _make(title=None, selling_price_cents=4000, acquisition_cost_cents=2500, status=BOOK_STATUS_AVAILABLE):
        counter["n"] += 1
        book = Book(
            isbn=f"978000000{counter['n']:04d}",
            title=title or f"Textbook {counter['n']}",
            author="A. Author",
            edition="2nd",
            book_condition="Good",
            course_major="Physics",
            selling_price_cents=selling_price_cents,
            acquisition_cost_cents=acquisition_cost_cents,
            status=status,
        )
        db.session.add(book)
        db.session.commit()
        return book

    return _make


@pytest.fixture(scope='function')
def make_submission(db_session):
    """Factory for PENDING_REVIEW submissions owned by the given user."""
    def _make(user, asking_price_cents=3000, status=SUBMISSION_STATUS_PENDING_REVIEW):
        submission = SellSubmission(
            user_id=user.id,
            isbn="9780131103627",
            title="The C Programming Language",
            author="Kernighan and Ritchie",
            edition="2nd",
            physical_condition="Good",
            course_major="Computer Science",
            asking_price_cents=asking_price_cents,
            status=status,
            submitted_at=utcnow(),
        )
        db.session.add(submission)
        db.session.commit()
        return submission

    return _make


@pytest.fixture(scope='function')
def add_to_cart(db_session):
    def _add(user, book):
        item = CartItem(user_id=user.id, book_id=book.id)
        db.session.add(item)
        db.session.commit()
        return item

    return _add


@pytest.fixture(scope='function')
def visa(db_session, customer):
    """Saved card for the customer fixture."""
    method = PaymentMethod(
        user_id=customer.id,
        card_type="Visa",
        last_four_digits="1234",
        expiration_date="09/2029",
        is_default=True,
    )
    db.session.add(method)
    db.session.commit()
    return method


@pytest.fixture(scope='function')
def auth_headers(app):
    """Build a bearer header for a user by opening a session directly."""
    def _headers(user):
        token = sessions.create(identity_for(user))
        return {"Authorization": f"Bearer {token}"}

    return _headers

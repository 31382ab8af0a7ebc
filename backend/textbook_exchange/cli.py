# Overview: Flask CLI command groups for database bootstrap, users and demo data.

# backend/textbook_exchange/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent). Use `flask db upgrade` when migrating.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Staff and customer accounts, a few books for sale and one open submission.
#
# Users:
# - python -m flask users create --username alice --email alice@example.com --password "Password123!"
#   Create a customer (prompts if options are omitted). Add --admin for staff.
# - python -m flask users list
#   List all users.

import click
from flask.cli import with_appcontext

from .errors import MarketplaceError
from .extensions import db
from .models import Book, SellSubmission, User
from .services import auth_service, catalog_service, submission_service
from .services.session_service import USER_TYPE_ADMIN, USER_TYPE_CUSTOMER


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system seed-demo' for sample data.")


DEMO_BOOKS = [
    ("9780134685991", "Effective Java", "Joshua Bloch", "3rd", "Good", "Computer Science", 4500, 3000),
    ("9780262033848", "Introduction to Algorithms", "Cormen et al.", "3rd", "Fair", "Computer Science", 6000, 4200),
    ("9781319050740", "Calculus: Early Transcendentals", "Stewart", "8th", "New", "Mathematics", 9000, 6500),
]


@system_group.command('seed-demo')
@click.option('--password', default='Password123!', show_default=True, help='Password for the demo accounts')
@with_appcontext
def seed_demo(password):
    """
    Idempotent demo data.

    Creates:
    - admin/admin@textbooks.local (Admin)
    - student/student@textbooks.local (Customer)
    - three books for sale, one open sell submission from the student
    """
    def ensure_user(username: str, email: str, user_type: str) -> User:
        user = db.session.query(User).filter_by(username=username).first()
        if user:
            click.echo(f"SKIP User exists: {username}")
            return user
        user = auth_service.register_user(username, email, password, user_type=user_type)
        click.echo(f"PASS Created {user_type.lower()}: {username} ({email})")
        return user

    ensure_user("admin", "admin@textbooks.local", USER_TYPE_ADMIN)
    student = ensure_user("student", "student@textbooks.local", USER_TYPE_CUSTOMER)

    if db.session.query(Book).count() == 0:
        for isbn, title, author, edition, condition, major, price, cost in DEMO_BOOKS:
            catalog_service.create_book(
                isbn=isbn, title=title, author=author, edition=edition, book_condition=condition,
                selling_price_cents=price, acquisition_cost_cents=cost, course_major=major,
            )
        click.echo(f"PASS Added {len(DEMO_BOOKS)} books to inventory")

    if db.session.query(SellSubmission).filter_by(user_id=student.id).count() == 0:
        submission = submission_service.create_submission(
            user_id=student.id,
            isbn="9780321573513",
            title="Algorithms",
            author="Sedgewick and Wayne",
            edition="4th",
            physical_condition="Good",
            asking_price_cents=3000,
            course_major="Computer Science",
        )
        click.echo(f"PASS Created sell submission #{submission.id} (asking 3000 cents)")

    click.echo("PASS Demo data ready.")


@click.group('users')
def users_group():
    """User management commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', default=None, help='First name')
@click.option('--last-name', default=None, help='Last name')
@click.option('--admin', 'is_admin', is_flag=True, help='Create a staff (Admin) account')
@with_appcontext
def create_user_cli(username, email, password, first_name, last_name, is_admin):
    """
    Create a user account.

    Staff accounts can only be created here; the register endpoint always
    creates customers.
    """
    try:
        user = auth_service.register_user(
            username=username,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            user_type=USER_TYPE_ADMIN if is_admin else USER_TYPE_CUSTOMER,
        )
        click.echo(f"PASS Created user: {user.username} ({user.email}) as {user.user_type}")
        click.echo("SECURITY Password securely hashed with bcrypt")
    except MarketplaceError as e:
        click.echo(f"FAIL Failed to create user: {e}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo(f"\n{'ID':<5} {'Username':<20} {'Email':<32} {'Type':<10}")
    click.echo("-" * 70)
    for user in users:
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<32} {user.user_type:<10}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)

from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class User(db.Model):
    """
    Customer and staff accounts.

    user_type is "Customer" or "Admin"; staff act on submissions and see every
    order, customers only their own.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        db.UniqueConstraint("email", name="uq_users_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    first_name = db.Column(db.String(64), nullable=True)
    last_name = db.Column(db.String(64), nullable=True)
    user_type = db.Column(db.String(16), nullable=False, default="Customer")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    @property
    def is_admin(self) -> bool:
        return self.user_type == "Admin"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "user_type": self.user_type,
            "created_at": to_utc_z(self.created_at),
        }


class PaymentMethod(db.Model):
    """
    Saved card reference. Only the brand and last four digits are kept;
    nothing here is ever sent to a gateway.
    """
    __tablename__ = "payment_methods"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    card_type = db.Column(db.String(32), nullable=False)
    last_four_digits = db.Column(db.String(4), nullable=False)
    expiration_date = db.Column(db.String(7), nullable=False)  # MM/YYYY
    is_default = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("payment_methods", lazy=True))

    @property
    def description(self) -> str:
        return f"{self.card_type} ending in {self.last_four_digits}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "card_type": self.card_type,
            "last_four_digits": self.last_four_digits,
            "expiration_date": self.expiration_date,
            "is_default": self.is_default,
            "created_at": to_utc_z(self.created_at),
        }

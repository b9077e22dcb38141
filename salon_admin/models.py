"""Database models for the salon admin backend."""
from __future__ import annotations

from datetime import datetime, timezone

from .extensions import db


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Return the salon's local wall-clock time.

    Completion dates and period boundaries are derived from this, so tests
    patch it to pin "today".
    """
    return datetime.now()


def cents_to_amount(cents: int | None) -> float | None:
    return cents / 100.0 if cents is not None else None


class User(db.Model):
    """Admin account used to sign in to the dashboard."""

    __tablename__ = "users"

    user_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.user_id,
            "name": self.name,
            "email": self.email,
        }


class Service(db.Model):
    """Catalog entry that can be booked into an appointment."""

    __tablename__ = "services"

    service_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(150), unique=True, nullable=False)
    price_cents = db.Column(db.Integer, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def snapshot(self) -> dict[str, object]:
        """Capture name, price and duration as they are at booking time."""
        return {
            "id": self.service_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "duration_minutes": self.duration_minutes,
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.service_id,
            "name": self.name,
            "price_cents": self.price_cents,
            "price": cents_to_amount(self.price_cents),
            "duration_minutes": self.duration_minutes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Appointment(db.Model):
    """A booked, not yet paid visit with one or more embedded service snapshots."""

    __tablename__ = "appointments"

    appointment_id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(150), nullable=False)
    phone_number = db.Column(db.String(30))
    staff = db.Column(db.String(100))
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.Time, nullable=False)
    services = db.Column(db.JSON, nullable=False, default=list)
    total_duration = db.Column(db.Integer, nullable=False, default=0)
    total_price_cents = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def set_services(self, snapshots: list[dict[str, object]]) -> None:
        """Replace the embedded services and recompute both totals."""
        # A fresh list so the JSON column registers the change.
        self.services = [dict(snapshot) for snapshot in snapshots]
        self.total_duration = sum(int(s["duration_minutes"]) for s in self.services)
        self.total_price_cents = sum(int(s["price_cents"]) for s in self.services)

    def service_names(self) -> list[str]:
        return [s["name"] for s in (self.services or [])]

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.appointment_id,
            "customer_name": self.customer_name,
            "phone_number": self.phone_number,
            "staff": self.staff,
            "date": self.date.isoformat() if self.date else None,
            "time": self.time.strftime("%H:%M") if self.time else None,
            "services": [
                {**s, "price": cents_to_amount(s.get("price_cents"))}
                for s in (self.services or [])
            ],
            "total_duration": self.total_duration,
            "total_price_cents": self.total_price_cents,
            "total_price": cents_to_amount(self.total_price_cents),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class Sale(db.Model):
    """A completed, paid transaction."""

    __tablename__ = "sales"

    sale_id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(150), nullable=False)
    service = db.Column(db.String(500))  # free text, e.g. "Haircut, Manicure"
    amount_cents = db.Column(db.Integer, nullable=False)
    date = db.Column(db.Date, nullable=False)
    staff = db.Column(db.String(100))
    # Not a foreign key: the appointment row is deleted on completion.
    appointment_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.sale_id,
            "customer_name": self.customer_name,
            "service": self.service,
            "amount_cents": self.amount_cents,
            "amount": cents_to_amount(self.amount_cents),
            "date": self.date.isoformat() if self.date else None,
            "staff": self.staff,
            "appointment_id": self.appointment_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

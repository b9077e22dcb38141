"""pytest configuration and shared fixtures."""
from __future__ import annotations

import sys
from datetime import date, time
from pathlib import Path

import pytest

# Ensure the project root is available on sys.path so tests can import the salon_admin package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salon_admin import create_app  # noqa: E402
from salon_admin.extensions import db  # noqa: E402
from salon_admin.models import Appointment, Service  # noqa: E402

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    "SECRET_KEY": "test-secret",
    "LOGIN_REQUIRED": False,
}


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def catalog(app) -> dict[str, int]:
    """Haircut RM30/30min and Manicure RM45/45min."""
    haircut = Service(name="Haircut", price_cents=3000, duration_minutes=30)
    manicure = Service(name="Manicure", price_cents=4500, duration_minutes=45)
    db.session.add_all([haircut, manicure])
    db.session.commit()
    return {"Haircut": haircut.service_id, "Manicure": manicure.service_id}


def _create_appointment(*service_names: str, customer_name: str = "Aisyah", staff: str | None = "Mei",
                        day: date = date(2024, 2, 28), at: time = time(10, 0)) -> Appointment:
    services = [Service.query.filter_by(name=name).one() for name in service_names]
    appointment = Appointment(customer_name=customer_name, staff=staff, date=day, time=at)
    appointment.set_services([service.snapshot() for service in services])
    db.session.add(appointment)
    db.session.commit()
    return appointment


@pytest.fixture
def make_appointment(app):
    return _create_appointment

#!/usr/bin/env python3
"""Seed the service catalog with a starter menu."""
import sys
from pathlib import Path

# Add the parent directory to the path so we can import the app
sys.path.insert(0, str(Path(__file__).parent.parent))

from salon_admin import create_app
from salon_admin.extensions import db
from salon_admin.models import Service

STARTER_MENU = [
    {"name": "Haircut", "price_cents": 3000, "duration_minutes": 30},      # RM30.00
    {"name": "Hair Wash & Blow", "price_cents": 2500, "duration_minutes": 30},
    {"name": "Hair Colouring", "price_cents": 12000, "duration_minutes": 120},
    {"name": "Manicure", "price_cents": 4500, "duration_minutes": 45},
    {"name": "Pedicure", "price_cents": 5500, "duration_minutes": 60},
    {"name": "Facial", "price_cents": 8000, "duration_minutes": 60},
]


def seed_services():
    """Add the starter menu, skipping names that already exist."""
    app = create_app()

    with app.app_context():
        existing = {name for (name,) in db.session.query(Service.name).all()}
        added = 0

        for service_data in STARTER_MENU:
            if service_data["name"] in existing:
                print(f"⏭️  {service_data['name']} already in catalog. Skipping...")
                continue

            db.session.add(Service(**service_data))
            added += 1
            print(f"  ✓ Added: {service_data['name']} (RM{service_data['price_cents']/100:.2f})")

        db.session.commit()
        print(f"\n✅ Added {added} services")
        print(f"📊 Total services in catalog: {Service.query.count()}")


if __name__ == "__main__":
    seed_services()

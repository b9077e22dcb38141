#!/usr/bin/env python3
"""Create the salon admin tables (services, appointments, sales, users)."""
import argparse
import sys
from pathlib import Path

# Add the parent directory to the path so we can import the app
sys.path.insert(0, str(Path(__file__).parent.parent))

from salon_admin import create_app
from salon_admin.extensions import db


def init_database(reset: bool = False) -> None:
    app = create_app()
    with app.app_context():
        if reset:
            db.drop_all()
            print("🗑️  Dropped existing salon admin tables")
        db.create_all()
        tables = ", ".join(sorted(db.metadata.tables))
        print(f"✅ Salon admin tables ready: {tables}")
        print(f"📦 Database: {db.engine.url.render_as_string(hide_password=True)}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create the salon admin database tables.")
    parser.add_argument("--reset", action="store_true", help="Drop every table first (deletes all bookings and sales)")
    return parser.parse_args()


if __name__ == "__main__":
    init_database(parse_args().reset)

"""Create the dashboard admin account or reset its password."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

# Ensure the project root is on sys.path so ``salon_admin`` can be imported when the script is executed directly.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from salon_admin import create_app
from salon_admin.extensions import db
from salon_admin.models import User


def set_admin_password(email: str, password: str, name: str = "Salon Admin") -> None:
    app = create_app()
    email = email.strip().lower()

    with app.app_context():
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(name=name, email=email, password_hash=generate_password_hash(password))
            db.session.add(user)
            print(f"Created admin account: {email}")
        else:
            user.password_hash = generate_password_hash(password)
            print(f"Updated password for: {email}")

        db.session.commit()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create or update the dashboard admin account.")
    parser.add_argument("email", help="Admin email address")
    parser.add_argument("password", help="Plain-text password to hash and store")
    parser.add_argument("--name", default="Salon Admin", help="Display name (default: Salon Admin)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    set_admin_password(args.email, args.password, args.name)


if __name__ == "__main__":
    main()

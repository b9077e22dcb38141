"""Default configuration, overridable through environment variables."""
from __future__ import annotations

import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default) in {"1", "true", "True"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///salon_admin.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Every endpoint except the health checks needs a bearer token when enabled.
    LOGIN_REQUIRED = _env_flag("LOGIN_REQUIRED", "1")
    TOKEN_MAX_AGE = int(os.environ.get("TOKEN_MAX_AGE", 86400))

    # Python weekday numbering: 0=Monday ... 6=Sunday.
    WEEK_START_DAY = int(os.environ.get("WEEK_START_DAY", 6))

    # Insert the sale and delete the appointment in a single transaction.
    ATOMIC_COMPLETION = _env_flag("ATOMIC_COMPLETION", "1")

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

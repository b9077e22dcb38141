"""Shared Flask extensions for the salon admin backend."""
from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

# SQLAlchemy database instance shared by the models, routes and scripts.
db = SQLAlchemy()

"""
Maturity Tracker
SQLAlchemy extension instance shared by every model module.

Usage:
    from maturity_tracker.models import db
"""

from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    """Timezone-aware UTC timestamp used for created_at / updated_at defaults."""
    return datetime.now(UTC)


def iso(value):
    """Serialise a date/datetime for JSON output (None stays None)."""
    return value.isoformat() if value else None

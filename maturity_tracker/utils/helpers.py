"""Shared utility functions.

parse_date:      lenient date parsing (None on bad input)
parse_date_input: strict date parsing (ValueError on bad input)
UNSET / changes_from: explicit partial-update structures for services
"""
import dataclasses
import logging
from datetime import date, datetime

logger = logging.getLogger(__name__)


class _Unset:
    """Marker for a partial-update field the caller did not supply."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET = _Unset()


def is_set(value) -> bool:
    """True when a partial-update field was supplied (None counts as supplied)."""
    return value is not UNSET


def changes_from(cls, data: dict):
    """Build a partial-update dataclass from a JSON payload.

    Keys absent from *data* stay UNSET; unknown keys are ignored.

    Usage::

        changes = changes_from(TeamChanges, request.get_json() or {})
    """
    names = {f.name for f in dataclasses.fields(cls)}
    return cls(**{k: v for k, v in data.items() if k in names})


def parse_date(value):
    """Parse a date string (ISO date or ISO datetime) to a date object.

    Returns None for empty/invalid input.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (ValueError, TypeError):
        pass
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except (ValueError, TypeError):
        return None


def parse_date_input(value):
    """Parse a date string, raising ValueError on bad input.

    Same as parse_date() but raises instead of returning None so services can
    turn a malformed date into a 400. Empty input is None.
    """
    if not value:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError("Invalid date format. Use YYYY-MM-DD.")
    return parsed

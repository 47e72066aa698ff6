"""Transaction boundary for multi-statement mutations.

Every service operation that writes more than one row runs inside
``transaction()``: commit on success, rollback on any exception.

Storage failures (SQLAlchemyError) are logged and re-raised as
InternalError so callers never see a driver exception; any other exception
(including the service's own validation errors) is re-raised unchanged
after the rollback.

Usage::

    with transaction():
        db.session.add(participant)
        db.session.flush()
        db.session.add_all(evaluations)
"""

import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from maturity_tracker.core.exceptions import InternalError
from maturity_tracker.models import db

logger = logging.getLogger(__name__)


@contextmanager
def transaction():
    """Run the enclosed block as one all-or-nothing unit of work."""
    session = db.session
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Transaction rolled back after storage error")
        raise InternalError("Database error") from exc
    except Exception:
        session.rollback()
        raise

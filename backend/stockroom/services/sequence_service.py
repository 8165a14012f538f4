# Overview: Monotonic request-number allocation.

from __future__ import annotations

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import RequestSequence, StockRequest


REQUEST_SEQUENCE_NAME = "stock_request"


def _current_next_number() -> int:
    return (
        db.session.query(RequestSequence.next_number)
        .filter_by(name=REQUEST_SEQUENCE_NAME)
        .scalar()
    )


def next_request_number() -> int:
    """
    Atomically allocate the next request number.

    The counter row is bumped with a single UPDATE ... SET next_number =
    next_number + 1, so two concurrent creators can never read the same value.
    Numbers are never reused, even when the request holding the highest number
    is deleted.

    Call this before any other write in the surrounding transaction: the
    first-row race below rolls the session back.
    """
    stmt = (
        update(RequestSequence)
        .where(RequestSequence.name == REQUEST_SEQUENCE_NAME)
        .values(next_number=RequestSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        db.session.flush()
        return _current_next_number() - 1

    # First allocation: continue after any numbers already in the table
    highest = db.session.query(func.max(StockRequest.request_number)).scalar()
    first = (highest or 0) + 1

    seq = RequestSequence(name=REQUEST_SEQUENCE_NAME, next_number=first + 1)
    db.session.add(seq)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        result = db.session.execute(stmt)
        if not result.rowcount:
            raise
        db.session.flush()
        return _current_next_number() - 1
    return first

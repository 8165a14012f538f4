# Overview: Transaction, locking and retry helpers shared by the services.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def atomic():
    """
    Run a block as one database transaction.

    Commits when the block finishes, rolls back everything on any exception.
    Multi-step mutations (item replace + ledger decrement, cascading deletes)
    go through here so a failure part way leaves no partial state behind.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts via version_id columns). The session is
    rolled back before each retry so func sees fresh rows.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))


def run_atomic(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """Run func inside atomic() with retry; the commit is part of each attempt."""
    def _op():
        with atomic():
            return func()
    return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)

# Overview: Transaction and row-locking helpers shared by the negotiation and checkout services.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError
from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def transaction():
    """
    Run the enclosed block as one unit of work.

    Commits when the block finishes, rolls back on any exception and
    re-raises it. There is no retry: a failed unit of work is reported to the
    caller, who decides whether to resubmit.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def flush_or_conflict(message: str, details: dict | None = None) -> None:
    """
    Flush pending writes, reporting a uniqueness violation as a Conflict.

    Used where a unique constraint is the last line of defence against a
    concurrent request doing the same thing (duplicate round, double approval).
    """
    try:
        db.session.flush()
    except IntegrityError as exc:
        raise ConflictError(message, details=details) from exc

"""
services/unit_of_work.py — Transaction scope for multi-step operations.

Services only flush; the route owns the transaction. Routes that call a
multi-step service (leave group, delete user) wrap the call in
unit_of_work() so that every flushed step is committed together or rolled
back together:

    with unit_of_work(db.session):
        user_service.delete_user(target_user_id, admin_id, session=db.session)

The session already has a transaction open (SQLAlchemy autobegin), so the
precondition reads done by the service belong to the same transaction as
its writes.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session


@contextmanager
def unit_of_work(session: Session) -> Iterator[Session]:
    """Commits on normal exit; rolls back and re-raises on any exception."""
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    session.commit()

# Overview: Transaction scoping and row-locking helpers shared by the write paths.

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session


logger = logging.getLogger(__name__)


def lock_for_update(query, of=None):
    """
    Apply row-level locking for critical operations.

    `of` restricts the lock to one entity when the query joins others
    (FOR UPDATE OF variants), so tenant-scoping joins leave parent rows unlocked.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; transaction_scope takes the
    database write lock up front there instead (BEGIN IMMEDIATE).
    """
    if of is not None:
        return query.with_for_update(of=of)
    return query.with_for_update()


def _begin_immediate(session: Session) -> None:
    conn = session.connection()
    if conn.dialect.name != "sqlite":
        return
    # Already inside a driver-level transaction (caller flushed writes): join it.
    if conn.connection.dbapi_connection.in_transaction:
        return
    conn.exec_driver_sql("BEGIN IMMEDIATE")


@contextmanager
def transaction_scope(session: Session) -> Iterator[Session]:
    """
    Run a unit of work: commit when the block exits normally, roll back on
    every other exit path (domain errors, store errors, KeyboardInterrupt,
    request cancellation).

    Row locks taken inside the block are held until commit/rollback.
    """
    _begin_immediate(session)
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        logger.debug("transaction rolled back")
        raise

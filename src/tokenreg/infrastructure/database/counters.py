"""Atomic sequential list-id generation.

Uses the ``id_counters`` table so ids are dense, start at 1, and are
never reused. The number of lists ever created is ``next_value - 1``.

The caller owns the transaction: pass a ``Connection`` obtained from
``engine.begin()`` so the counter increment participates in the same
atomic transaction as the list insert.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select, update

from tokenreg.infrastructure.database.engine import LIST_COUNTER
from tokenreg.infrastructure.database.schema import id_counters

if TYPE_CHECKING:
    from sqlalchemy import Connection


def _next_value(conn: Connection, counter: str) -> int:
    row = conn.execute(
        select(id_counters.c.next_value).where(id_counters.c.counter == counter)
    ).first()
    if row is None:
        msg = f"Unknown counter: {counter!r}. Was the database initialized?"
        raise ValueError(msg)
    return int(row.next_value)


def current_list_count(conn: Connection) -> int:
    """Number of lists created so far."""
    return _next_value(conn, LIST_COUNTER) - 1


def next_list_id(conn: Connection) -> int:
    """Claim the next list id (current count + 1).

    The caller must provide a ``Connection`` within an active transaction.
    Commit or rollback is the caller's responsibility.
    """
    value = _next_value(conn, LIST_COUNTER)
    conn.execute(
        update(id_counters)
        .where(id_counters.c.counter == LIST_COUNTER)
        .values(next_value=value + 1)
    )
    return value

"""Database engine setup for SQLite with WAL mode.

The DB is stored at ``{root}/.tokenreg/registry.db`` unless the store is
configured in-memory. SQLAlchemy Core (not ORM) is used; the registry's
state is a handful of narrow tables with no object graph to map.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from tokenreg.infrastructure.database.schema import id_counters, metadata

DATA_DIRNAME = ".tokenreg"
DEFAULT_DB_FILENAME = "registry.db"
LIST_COUNTER = "token_lists"


def create_db_engine(db_path: Path | None) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    ``db_path=None`` creates an in-memory database shared through a
    single static connection.
    """
    if db_path is None:
        engine = create_engine(
            "sqlite://",
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        if db_path is not None:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(root: Path | None, *, filename: str = DEFAULT_DB_FILENAME) -> Engine:
    """Initialize the registry database under ``{root}/.tokenreg/``.

    Creates the data directory (including ``plugins/``), all tables from
    :data:`schema.metadata`, and seeds the list-id counter. Pass
    ``root=None`` for an in-memory database.

    Safe to call on an existing store.
    """
    db_path: Path | None = None
    if root is not None:
        data_dir = root / DATA_DIRNAME
        data_dir.mkdir(parents=True, exist_ok=True)
        (data_dir / "plugins").mkdir(exist_ok=True)
        db_path = data_dir / filename

    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    _seed_counters(engine)
    return engine


def _seed_counters(engine: Engine) -> None:
    """Insert the list-id counter row if it doesn't exist."""
    with engine.begin() as conn:
        row = conn.execute(
            select(id_counters.c.counter).where(id_counters.c.counter == LIST_COUNTER)
        ).first()
        if row is None:
            conn.execute(insert(id_counters).values(counter=LIST_COUNTER, next_value=1))

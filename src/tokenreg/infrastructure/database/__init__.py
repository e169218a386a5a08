"""SQLite database engine, schema, and list-id counter via SQLAlchemy Core."""

from tokenreg.infrastructure.database.counters import current_list_count, next_list_id
from tokenreg.infrastructure.database.engine import create_db_engine, init_database
from tokenreg.infrastructure.database.schema import (
    id_counters,
    metadata,
    registry_events,
    registry_owner,
    token_lists,
    token_memberships,
)

__all__ = [
    "create_db_engine",
    "current_list_count",
    "id_counters",
    "init_database",
    "metadata",
    "next_list_id",
    "registry_events",
    "registry_owner",
    "token_lists",
    "token_memberships",
]

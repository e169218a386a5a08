"""SQLAlchemy Core table definitions for the registry database."""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

registry_owner = Table(
    "registry_owner",
    metadata,
    Column("id", Integer, primary_key=True),  # always 1
    Column("owner", Text, nullable=False),
    Column("updated", Text, nullable=False),
    CheckConstraint("id = 1", name="single_owner_row"),
)

id_counters = Table(
    "id_counters",
    metadata,
    Column("counter", Text, primary_key=True),
    Column("next_value", Integer, nullable=False, default=1, server_default="1"),
)

token_lists = Table(
    "token_lists",
    metadata,
    Column("list_id", Integer, primary_key=True, autoincrement=False),
    Column("name", Text, nullable=False),
    Column("active_token_count", Integer, nullable=False, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    CheckConstraint("list_id >= 1", name="positive_list_id"),
    CheckConstraint("active_token_count >= 0", name="non_negative_active_count"),
)

token_memberships = Table(
    "token_memberships",
    metadata,
    Column("list_id", Integer, ForeignKey("token_lists.list_id"), nullable=False),
    Column("token", Text, nullable=False),
    Column("active", Integer, nullable=False, default=0, server_default="0"),
    Column("position", Integer, nullable=False),  # first-added order within the list
    Column("updated", Text, nullable=False),
    UniqueConstraint("list_id", "token"),
    UniqueConstraint("list_id", "position"),
)

# Append-only event log. Rows are written in the same transaction as the
# state change; status tracks plugin delivery afterwards.
registry_events = Table(
    "registry_events",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("kind", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

Index("ix_memberships_active", token_memberships.c.list_id, token_memberships.c.active)
Index("ix_events_status", registry_events.c.status)

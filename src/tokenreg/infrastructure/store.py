"""RegistryStore — repository pattern with serialized transactions.

The store is the single dependency injected into every service. It owns
the database engine and the plugin event bus. Every operation runs under
one re-entrant lock, so calls appear atomic and totally ordered:

- **Writes**: :meth:`RegistryStore.transaction` wraps ``engine.begin()``
  (auto-commit on success, auto-rollback on exception).
- **Reads**: :meth:`RegistryStore.snapshot` wraps ``engine.connect()``.
- **Events**: appended to ``registry_events`` inside the write
  transaction, so the log never disagrees with the state it describes.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, insert, select, update

from tokenreg.domain.events import RegistryEvent
from tokenreg.domain.lists import TokenList
from tokenreg.domain.membership import TokenStatus
from tokenreg.infrastructure.database.counters import current_list_count, next_list_id
from tokenreg.infrastructure.database.engine import DATA_DIRNAME, init_database
from tokenreg.infrastructure.database.schema import (
    registry_events,
    registry_owner,
    token_lists,
    token_memberships,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from tokenreg.config.settings import RegistrySettings
    from tokenreg.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)

_OWNER_ROW_ID = 1


# ---------------------------------------------------------------------------
# StoreTransaction — yielded to callers within transaction() / snapshot()
# ---------------------------------------------------------------------------


@dataclass
class StoreTransaction:
    """Active connection plus the data-access patterns services share.

    Events appended through :meth:`append_event` are collected on
    :attr:`events` so the caller can publish them once the transaction
    has committed.
    """

    conn: Connection
    _store: RegistryStore
    events: list[RegistryEvent] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Owner
    # ------------------------------------------------------------------

    def owner(self) -> str | None:
        """The current owner, or None before the registry is initialized."""
        row = self.conn.execute(
            select(registry_owner.c.owner).where(registry_owner.c.id == _OWNER_ROW_ID)
        ).first()
        return None if row is None else str(row.owner)

    def set_owner(self, owner: str, now: str) -> None:
        """Insert or replace the single owner row."""
        if self.owner() is None:
            self.conn.execute(
                insert(registry_owner).values(id=_OWNER_ROW_ID, owner=owner, updated=now)
            )
        else:
            self.conn.execute(
                update(registry_owner)
                .where(registry_owner.c.id == _OWNER_ROW_ID)
                .values(owner=owner, updated=now)
            )

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def list_count(self) -> int:
        return current_list_count(self.conn)

    def create_list(self, name: str, now: str) -> int:
        """Claim the next list id and insert an empty list. Returns the id."""
        list_id = next_list_id(self.conn)
        self.conn.execute(
            insert(token_lists).values(
                list_id=list_id,
                name=name,
                active_token_count=0,
                created=now,
            )
        )
        return list_id

    def get_list(self, list_id: int) -> TokenList | None:
        row = self.conn.execute(
            select(token_lists.c.list_id, token_lists.c.name, token_lists.c.active_token_count)
            .where(token_lists.c.list_id == list_id)
        ).first()
        if row is None:
            return None
        return TokenList(
            list_id=row.list_id,
            name=row.name,
            active_token_count=row.active_token_count,
        )

    def adjust_active_count(self, list_id: int, delta: int) -> None:
        self.conn.execute(
            update(token_lists)
            .where(token_lists.c.list_id == list_id)
            .values(active_token_count=token_lists.c.active_token_count + delta)
        )

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    def token_statuses(self, list_id: int, tokens: Iterable[str]) -> dict[str, TokenStatus]:
        """Stored status for each of *tokens* that has a membership record."""
        wanted = set(tokens)
        if not wanted:
            return {}
        rows = self.conn.execute(
            select(token_memberships.c.token, token_memberships.c.active).where(
                token_memberships.c.list_id == list_id,
                token_memberships.c.token.in_(wanted),
            )
        ).fetchall()
        return {
            row.token: TokenStatus.ACTIVE if row.active else TokenStatus.INACTIVE for row in rows
        }

    def is_active(self, list_id: int, token: str) -> bool:
        row = self.conn.execute(
            select(token_memberships.c.active).where(
                token_memberships.c.list_id == list_id,
                token_memberships.c.token == token,
            )
        ).first()
        return bool(row is not None and row.active)

    def set_status(self, list_id: int, token: str, status: TokenStatus, now: str) -> None:
        """Write a token's status, creating the record at the next position if new."""
        active = 1 if status is TokenStatus.ACTIVE else 0
        result = self.conn.execute(
            update(token_memberships)
            .where(
                token_memberships.c.list_id == list_id,
                token_memberships.c.token == token,
            )
            .values(active=active, updated=now)
        )
        if result.rowcount:
            return

        position = self.conn.execute(
            select(func.coalesce(func.max(token_memberships.c.position), 0)).where(
                token_memberships.c.list_id == list_id
            )
        ).scalar_one()
        self.conn.execute(
            insert(token_memberships).values(
                list_id=list_id,
                token=token,
                active=active,
                position=position + 1,
                updated=now,
            )
        )

    def list_tokens(self, list_id: int, *, active_only: bool = False) -> list[str]:
        """Tokens ever added to *list_id*, in first-added order."""
        stmt = (
            select(token_memberships.c.token)
            .where(token_memberships.c.list_id == list_id)
            .order_by(token_memberships.c.position)
        )
        if active_only:
            stmt = stmt.where(token_memberships.c.active == 1)
        return [str(row.token) for row in self.conn.execute(stmt)]

    # ------------------------------------------------------------------
    # Event log
    # ------------------------------------------------------------------

    def append_event(self, event: RegistryEvent, now: str) -> RegistryEvent:
        """Persist *event* as a pending log row. Returns it with ``seq`` set."""
        result = self.conn.execute(
            insert(registry_events).values(
                kind=str(event.kind),
                payload=json.dumps(event.payload()),
                status="pending",
                retries=0,
                created=now,
            )
        )
        assert result.lastrowid is not None
        stored = event.model_copy(update={"seq": result.lastrowid})
        self.events.append(stored)
        return stored

    def read_events(self, *, after: int = 0, limit: int | None = None) -> list[RegistryEvent]:
        """Logged events with ``seq > after``, oldest first."""
        stmt = (
            select(registry_events.c.id, registry_events.c.kind, registry_events.c.payload)
            .where(registry_events.c.id > after)
            .order_by(registry_events.c.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [
            RegistryEvent.from_payload(row.kind, json.loads(row.payload), seq=row.id)
            for row in self.conn.execute(stmt)
        ]


# ---------------------------------------------------------------------------
# RegistryStore — the repository
# ---------------------------------------------------------------------------


class RegistryStore:
    """Repository encapsulating database access and event delivery.

    Constructed once from :class:`RegistrySettings`. Services receive
    the store via their :class:`BaseService` constructor.
    """

    def __init__(self, settings: RegistrySettings) -> None:
        self._settings = settings
        db_root = None if settings.store.in_memory else settings.root
        self._engine: Engine = init_database(db_root, filename=settings.store.filename)
        self._lock = threading.RLock()
        self._event_bus: EventBus | None = None

    @property
    def root(self) -> Path:
        """The registry root directory."""
        return self._settings.root

    @property
    def data_dir(self) -> Path:
        return self.root / DATA_DIRNAME

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def lock(self) -> threading.RLock:
        """The lock serializing every store operation."""
        return self._lock

    @property
    def settings(self) -> RegistrySettings:
        return self._settings

    @property
    def event_bus(self) -> EventBus | None:
        """The plugin event bus (None if not initialized)."""
        return self._event_bus

    def init_event_bus(self, *, plugins: Iterable[Any] = ()) -> EventBus:
        """Initialize the plugin event bus.

        Creates a PluginManager, discovers entry-point and local plugins,
        registers the built-in audit plugin plus any *plugins* given, and
        wires up the EventBus.
        """
        from tokenreg.plugins.builtins.audit import AuditLogPlugin
        from tokenreg.plugins.event_bus import EventBus
        from tokenreg.plugins.manager import PluginManager

        events_config = self._settings.events
        local_dir = None
        if events_config.local_plugins and not self._settings.store.in_memory:
            local_dir = self.data_dir / "plugins"

        pm = PluginManager()
        pm.discover_and_load(local_dir=local_dir)
        pm.register_plugin(AuditLogPlugin(), name="audit-builtin")
        for plugin in plugins:
            pm.register_plugin(plugin)

        self._event_bus = EventBus(
            self._engine,
            pm,
            sync=events_config.sync,
            max_retries=events_config.max_retries,
            max_workers=events_config.max_workers,
            lock=self._lock,
        )
        return self._event_bus

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """Serialized write transaction.

        Commits when the block exits normally; any exception rolls back
        every write made in the block, including appended events.

        Usage::

            with store.transaction() as txn:
                list_id = txn.create_list("Stablecoins", now)
                txn.append_event(RegistryEvent.add_list(list_id, "Stablecoins"), now)
        """
        with self._lock, self._engine.begin() as conn:
            yield StoreTransaction(conn=conn, _store=self)

    @contextmanager
    def snapshot(self) -> Iterator[StoreTransaction]:
        """Serialized read-only view of committed state."""
        with self._lock, self._engine.connect() as conn:
            yield StoreTransaction(conn=conn, _store=self)

    def close(self) -> None:
        """Stop event delivery and release database connections."""
        if self._event_bus is not None:
            self._event_bus.shutdown()
            self._event_bus = None
        self._engine.dispose()

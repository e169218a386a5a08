"""Outbox-backed event delivery via pluggy + ThreadPoolExecutor.

Events are appended to ``registry_events`` in the same transaction as
the state change, so none are lost if the process exits before
delivery. ``publish()`` delivers freshly committed events; ``drain()``
retries anything still pending or failed.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update

from tokenreg.domain.events import RegistryEvent
from tokenreg.infrastructure.database.schema import registry_events
from tokenreg.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from tokenreg.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

RETRYABLE = ("pending", "failed")


class EventBus:
    """Deliver logged registry events to plugin hooks.

    Parameters:
        engine: SQLAlchemy engine with the ``registry_events`` table.
        plugin_manager: Loaded PluginManager for hook dispatch.
        sync: Deliver on the calling thread (default) instead of a pool.
        max_retries: Attempts before an event is marked ``dead_letter``.
        max_workers: ThreadPoolExecutor worker count when async.
        lock: Lock guarding database access, shared with the store.
    """

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        sync: bool = True,
        max_retries: int = 3,
        max_workers: int = 1,
        lock: threading.RLock | None = None,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._max_retries = max_retries
        self._lock = lock
        # Hook order across events holds only with a single worker.
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=max_workers)
        )
        self._in_flight: set[Future[bool]] = set()
        self._in_flight_lock = threading.Lock()

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    @property
    def in_flight(self) -> int:
        """Async deliveries submitted but not yet finished."""
        with self._in_flight_lock:
            return len(self._in_flight)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def publish(self, events: Iterable[RegistryEvent]) -> list[str]:
        """Deliver committed *events* in order.

        Returns a warning per failed delivery in sync mode. Async failures
        surface through :meth:`drain`.
        """
        warnings: list[str] = []
        for event in events:
            if event.seq is None:
                msg = f"Cannot publish unlogged event {event.kind}"
                raise ValueError(msg)
            if self._executor is not None:
                self._track(self._executor.submit(self._deliver, event))
            elif not self._deliver(event):
                warnings.append(f"Event delivery failed for {event.hook_name} #{event.seq}")
        return warnings

    def drain(self) -> list[dict[str, Any]]:
        """Synchronously retry every pending or failed event, oldest first.

        Returns ``{id, hook_name, status}`` for each event retried.
        """
        self._wait_futures()
        with self._guard(), self._engine.connect() as conn:
            rows = conn.execute(
                select(registry_events.c.id, registry_events.c.kind, registry_events.c.payload)
                .where(registry_events.c.status.in_(RETRYABLE))
                .order_by(registry_events.c.id)
            ).fetchall()

        summary: list[dict[str, Any]] = []
        for row in rows:
            event = RegistryEvent.from_payload(row.kind, json.loads(row.payload), seq=row.id)
            self._deliver(event)
            summary.append(
                {"id": row.id, "hook_name": event.hook_name, "status": self._status(row.id)}
            )
        return summary

    def shutdown(self) -> None:
        """Wait for in-flight deliveries and stop the worker pool."""
        self._wait_futures()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _guard(self) -> Any:
        return self._lock if self._lock is not None else nullcontext()

    def _deliver(self, event: RegistryEvent) -> bool:
        """Run the event's hook and record the outcome on its log row."""
        assert event.seq is not None
        try:
            getattr(self._pm.hook, event.hook_name)(**event.payload())
        except Exception as exc:
            logger.debug("Hook %s failed for event %d: %s", event.hook_name, event.seq, exc)
            self._record(event.seq, error=str(exc))
            return False
        self._record(event.seq)
        return True

    def _record(self, event_id: int, *, error: str | None = None) -> None:
        """Mark *event_id* completed, or failed (dead_letter once retries run out)."""
        with self._guard(), self._engine.begin() as conn:
            if error is None:
                values: dict[str, Any] = {
                    "status": "completed",
                    "error": None,
                    "completed": now_iso(),
                }
            else:
                retries = conn.execute(
                    select(registry_events.c.retries).where(registry_events.c.id == event_id)
                ).scalar_one() + 1
                exhausted = retries >= self._max_retries
                values = {
                    "status": "dead_letter" if exhausted else "failed",
                    "error": error,
                    "retries": retries,
                    "completed": now_iso() if exhausted else None,
                }
            conn.execute(
                update(registry_events).where(registry_events.c.id == event_id).values(**values)
            )

    def _status(self, event_id: int) -> str:
        with self._guard(), self._engine.connect() as conn:
            return str(
                conn.execute(
                    select(registry_events.c.status).where(registry_events.c.id == event_id)
                ).scalar_one()
            )

    def _track(self, future: Future[bool]) -> None:
        with self._in_flight_lock:
            self._in_flight.add(future)
        future.add_done_callback(self._settle)

    def _settle(self, future: Future[bool]) -> None:
        """Forget a finished delivery, logging anything it raised."""
        with self._in_flight_lock:
            self._in_flight.discard(future)
        if not future.cancelled() and future.exception() is not None:
            logger.debug("Async event delivery raised", exc_info=future.exception())

    def _wait_futures(self) -> None:
        with self._in_flight_lock:
            waiting = list(self._in_flight)
        _, not_done = wait(waiting, timeout=30)
        if not_done:
            logger.warning("%d event deliveries still running after 30s", len(not_done))

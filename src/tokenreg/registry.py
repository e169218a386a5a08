"""Registry — the public face of tokenreg.

Composes the store with the access, list, token, and query services.
Mutating operations take the caller identity explicitly and return a
:class:`ServiceResult`; read-only queries return plain values.

Usage::

    registry = Registry.open(RegistrySettings.load(root=path), creator=OWNER)
    result = registry.add_list(OWNER, "Stablecoins")
    registry.add_tokens(OWNER, result.data["list_id"], [DAI, USDC])
    registry.is_token_active(1, DAI)  # True
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from tokenreg.config.logging import configure_logging
from tokenreg.config.settings import RegistrySettings
from tokenreg.domain.events import RegistryEvent
from tokenreg.domain.lists import TokenList
from tokenreg.infrastructure.store import RegistryStore
from tokenreg.services.access import AccessService
from tokenreg.services.lists import ListService
from tokenreg.services.query import QueryService
from tokenreg.services.result import ServiceResult
from tokenreg.services.telemetry import enable_telemetry
from tokenreg.services.tokens import TokenService

if TYPE_CHECKING:
    from tokenreg.plugins.event_bus import EventBus


class Registry:
    """Owner-controlled registry of named token lists."""

    def __init__(self, store: RegistryStore) -> None:
        self._store = store
        self._access = AccessService(store)
        self._lists = ListService(store)
        self._tokens = TokenService(store)
        self._query = QueryService(store)

    @classmethod
    def open(
        cls,
        settings: RegistrySettings | None = None,
        *,
        creator: str | None = None,
        plugins: Iterable[Any] = (),
    ) -> Registry:
        """Open (creating if needed) the registry described by *settings*.

        *creator* becomes the owner of a new registry; it defaults to
        ``[registry] owner`` from configuration and is ignored when the
        store already has an owner. *plugins* are registered on the event
        bus alongside discovered ones.

        Raises:
            ValueError: If the store is new and no non-null creator is known.
        """
        settings = settings or RegistrySettings.load()
        if settings.setup_logging:
            configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        if settings.verbose:
            enable_telemetry()

        store = RegistryStore(settings)
        if settings.events.enabled:
            store.init_event_bus(plugins=plugins)

        registry = cls(store)
        try:
            registry._access.initialize(creator or settings.registry.owner)
        except BaseException:
            store.close()
            raise
        return registry

    @property
    def store(self) -> RegistryStore:
        return self._store

    @property
    def event_bus(self) -> EventBus | None:
        return self._store.event_bus

    def close(self) -> None:
        self._store.close()

    def __enter__(self) -> Registry:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Access control
    # ------------------------------------------------------------------

    def current_owner(self) -> str:
        return str(self._access.current_owner().data["owner"])

    def require_owner(self, caller: str) -> ServiceResult:
        return self._access.require_owner(caller)

    def transfer_ownership(self, caller: str, new_owner: str | None) -> ServiceResult:
        return self._access.transfer_ownership(caller, new_owner)

    # ------------------------------------------------------------------
    # Lists and tokens
    # ------------------------------------------------------------------

    def add_list(self, caller: str, name: str) -> ServiceResult:
        return self._lists.add_list(caller, name)

    def list_count(self) -> int:
        return int(self._lists.list_count().data["count"])

    def add_tokens(self, caller: str, list_id: int, tokens: Sequence[str]) -> ServiceResult:
        return self._tokens.add_tokens(caller, list_id, tokens)

    def remove_tokens(self, caller: str, list_id: int, tokens: Sequence[str]) -> ServiceResult:
        return self._tokens.remove_tokens(caller, list_id, tokens)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_token_active(self, list_id: int, token: str) -> bool:
        return bool(self._query.is_token_active(list_id, token).data["active"])

    def tcrs(self, list_id: int) -> TokenList:
        """List metadata; the zero-valued record for an unknown id."""
        return TokenList.model_validate(self._query.tcrs(list_id).data)

    def get_tokens(self, list_id: int) -> list[str]:
        return list(self._query.get_tokens(list_id).data["tokens"])

    def get_active_tokens(self, list_id: int) -> list[str]:
        return list(self._query.get_active_tokens(list_id).data["tokens"])

    def get_active_tokens_range(self, list_id: int, start: int, end: int) -> list[str]:
        result = self._query.get_active_tokens(list_id, start=start, end=end)
        return list(result.data["tokens"])

    def events(self, *, after: int = 0, limit: int | None = None) -> list[RegistryEvent]:
        """The persisted event log, oldest first."""
        result = self._query.events(after=after, limit=limit)
        return [RegistryEvent.model_validate(e) for e in result.data["events"]]

    def drain_events(self) -> list[dict[str, Any]]:
        """Retry plugin delivery of pending/failed events."""
        bus = self._store.event_bus
        return [] if bus is None else bus.drain()

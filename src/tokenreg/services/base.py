"""BaseService — foundation for all registry services.

Every service receives a :class:`RegistryStore` at construction time.
Services own their transaction boundaries via ``self._store.transaction()``
and publish the events a transaction appended once it has committed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from tokenreg.domain.errors import ErrorCode
from tokenreg.services.result import ServiceResult

if TYPE_CHECKING:
    from tokenreg.domain.events import RegistryEvent
    from tokenreg.infrastructure.store import RegistryStore, StoreTransaction

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class ListService(BaseService):
            def add_list(self, caller: str, name: str) -> ServiceResult:
                with self._store.transaction() as txn:
                    denied = self._check_owner(txn, caller, "add_list")
                    ...
    """

    def __init__(self, store: RegistryStore) -> None:
        self._store = store

    def _check_owner(self, txn: StoreTransaction, caller: str, op: str) -> ServiceResult | None:
        """Return an UNAUTHORIZED result unless *caller* is the current owner."""
        owner = txn.owner()
        if owner is not None and caller == owner:
            return None
        logger.debug("Rejected %s from non-owner %s", op, caller)
        return ServiceResult.failure(
            op,
            ErrorCode.UNAUTHORIZED,
            "Caller is not the owner",
            caller=caller,
        )

    def _publish(self, events: list[RegistryEvent], warnings: list[str]) -> None:
        """Deliver committed events to plugins. No-op if event bus not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._store.event_bus
        if bus is None or not events:
            return
        try:
            warnings.extend(bus.publish(events))
        except Exception:
            logger.debug("Event publish failed", exc_info=True)
            warnings.append(f"Event publish failed for {len(events)} event(s)")

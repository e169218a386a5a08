"""ListService — list creation and counting.

List ids come from a counter, never from callers: the k-th list created
has id k, so "is this a list" is a bounds check against the count.
"""

from __future__ import annotations

from tokenreg.domain.events import RegistryEvent
from tokenreg.services._helpers import now_iso
from tokenreg.services.base import BaseService
from tokenreg.services.result import ServiceResult
from tokenreg.services.telemetry import traced


class ListService(BaseService):
    """Creates lists and reports how many exist."""

    @traced
    def add_list(self, caller: str, name: str) -> ServiceResult:
        """Create an empty list named *name*. Names need not be unique."""
        op = "add_list"
        warnings: list[str] = []

        with self._store.transaction() as txn:
            denied = self._check_owner(txn, caller, op)
            if denied is not None:
                return denied

            now = now_iso()
            list_id = txn.create_list(name, now)
            event = txn.append_event(RegistryEvent.add_list(list_id, name), now)

        self._publish([event], warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"list_id": list_id, "name": name, "events": [event.to_dict()]},
            warnings=warnings,
        )

    def list_count(self) -> ServiceResult:
        with self._store.snapshot() as txn:
            count = txn.list_count()
        return ServiceResult(ok=True, op="list_count", data={"count": count})

"""QueryService — read-only views of lists, memberships, and the event log.

Queries never fail on out-of-range input: an unknown list reads as an
empty one.
"""

from __future__ import annotations

from tokenreg.domain.lists import TokenList
from tokenreg.services.base import BaseService
from tokenreg.services.result import ServiceResult


class QueryService(BaseService):
    """Side-effect-free queries, callable by any identity."""

    def is_token_active(self, list_id: int, token: str) -> ServiceResult:
        with self._store.snapshot() as txn:
            active = txn.is_active(list_id, token)
        return ServiceResult(
            ok=True,
            op="is_token_active",
            data={"list_id": list_id, "token": token, "active": active},
        )

    def tcrs(self, list_id: int) -> ServiceResult:
        """Name and active-token count of a list.

        Unknown ids return the zero-valued record with a warning.
        """
        warnings: list[str] = []
        with self._store.snapshot() as txn:
            record = txn.get_list(list_id)
        if record is None:
            record = TokenList.empty(list_id)
            warnings.append(f"List {list_id} does not exist")
        return ServiceResult(ok=True, op="tcrs", data=record.model_dump(), warnings=warnings)

    def get_tokens(self, list_id: int) -> ServiceResult:
        """Every token ever added to the list, active or not, in first-added order."""
        with self._store.snapshot() as txn:
            tokens = txn.list_tokens(list_id)
        return ServiceResult(ok=True, op="get_tokens", data={"list_id": list_id, "tokens": tokens})

    def get_active_tokens(
        self,
        list_id: int,
        *,
        start: int | None = None,
        end: int | None = None,
    ) -> ServiceResult:
        """Currently active tokens in first-added order.

        *start*/*end* select the half-open range ``[start, end)``, clamped
        to the available tokens. Negative bounds count as 0.
        """
        with self._store.snapshot() as txn:
            tokens = txn.list_tokens(list_id, active_only=True)
        lo = max(start or 0, 0)
        hi = len(tokens) if end is None else max(end, 0)
        return ServiceResult(
            ok=True,
            op="get_active_tokens",
            data={"list_id": list_id, "tokens": tokens[lo:hi]},
        )

    def events(self, *, after: int = 0, limit: int | None = None) -> ServiceResult:
        """Logged events with sequence number greater than *after*."""
        with self._store.snapshot() as txn:
            events = txn.read_events(after=after, limit=limit)
        return ServiceResult(
            ok=True,
            op="events",
            data={"events": [e.to_dict() for e in events]},
        )

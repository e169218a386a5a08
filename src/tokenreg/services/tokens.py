"""TokenService — batch activation and deactivation of tokens in a list.

Pipeline: AUTHORIZE → VALIDATE LIST → PLAN → APPLY → EVENT → RESPOND

PLAN runs the whole batch against a staged copy of current statuses and
writes nothing; APPLY only runs on a clean plan. A rejected batch
therefore leaves no trace, not even for tokens that preceded the
offending one.
"""

from __future__ import annotations

from collections.abc import Sequence

from tokenreg.domain.errors import ErrorCode
from tokenreg.domain.events import RegistryEvent
from tokenreg.domain.lists import is_valid_list_id
from tokenreg.domain.membership import TokenStatus, plan_transitions
from tokenreg.services._helpers import now_iso
from tokenreg.services.base import BaseService
from tokenreg.services.result import ServiceResult
from tokenreg.services.telemetry import trace_span, traced


class TokenService(BaseService):
    """Activates and deactivates tokens within lists."""

    @traced
    def add_tokens(self, caller: str, list_id: int, tokens: Sequence[str]) -> ServiceResult:
        """Activate every token in *tokens*, all or nothing."""
        return self._apply_batch("add_tokens", caller, list_id, tokens, TokenStatus.ACTIVE)

    @traced
    def remove_tokens(self, caller: str, list_id: int, tokens: Sequence[str]) -> ServiceResult:
        """Deactivate every token in *tokens*, all or nothing."""
        return self._apply_batch("remove_tokens", caller, list_id, tokens, TokenStatus.INACTIVE)

    def _apply_batch(
        self,
        op: str,
        caller: str,
        list_id: int,
        tokens: Sequence[str],
        target: TokenStatus,
    ) -> ServiceResult:
        if isinstance(tokens, str):
            msg = f"{op} expects a sequence of tokens, not a single string"
            raise TypeError(msg)
        warnings: list[str] = []
        batch = list(tokens)
        activating = target is TokenStatus.ACTIVE

        with self._store.transaction() as txn:
            # ── AUTHORIZE ─────────────────────────────────────────
            denied = self._check_owner(txn, caller, op)
            if denied is not None:
                return denied

            # ── VALIDATE LIST ─────────────────────────────────────
            if not is_valid_list_id(list_id, txn.list_count()):
                return ServiceResult.failure(
                    op,
                    ErrorCode.INVALID_LIST,
                    f"List {list_id} does not exist",
                    list_id=list_id,
                )

            # ── PLAN ──────────────────────────────────────────────
            with trace_span("plan") as span:
                violation = plan_transitions(batch, txn.token_statuses(list_id, batch), target)
                if span is not None:
                    span.annotate("batch_size", len(batch))
            if violation is not None:
                code = ErrorCode.DUPLICATE_TOKEN if activating else ErrorCode.INACTIVE_TOKEN
                state = "already active" if activating else "not active"
                return ServiceResult.failure(
                    op,
                    code,
                    f"Token {violation.token} is {state} in list {list_id}",
                    list_id=list_id,
                    token=violation.token,
                    index=violation.index,
                )

            # ── APPLY + EVENT ─────────────────────────────────────
            with trace_span("apply"):
                now = now_iso()
                make_event = RegistryEvent.add_token if activating else RegistryEvent.remove_token
                for token in batch:
                    txn.set_status(list_id, token, target, now)
                    txn.append_event(make_event(list_id, token), now)
                if batch:
                    txn.adjust_active_count(list_id, len(batch) if activating else -len(batch))
                events = list(txn.events)

        # ── RESPOND ───────────────────────────────────────────────
        self._publish(events, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "list_id": list_id,
                "tokens": batch,
                "events": [e.to_dict() for e in events],
            },
            warnings=warnings,
        )

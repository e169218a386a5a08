"""Token membership lifecycle.

Each ``(list_id, token)`` pair is a two-state machine::

    inactive ──add──▶ active ──remove──▶ inactive

A batch of transitions is planned against a staged copy of the current
statuses before anything is written, so a batch either applies in full
or not at all.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum


class TokenStatus(StrEnum):
    """Membership status of a token within one list."""

    INACTIVE = "inactive"
    ACTIVE = "active"


TOKEN_TRANSITIONS: dict[str, list[str]] = {
    "inactive": ["active"],
    "active": ["inactive"],
}


def is_valid_transition(current: str, target: str) -> bool:
    """Check if moving a token from *current* to *target* is allowed."""
    return target in TOKEN_TRANSITIONS.get(current, [])


@dataclass(frozen=True)
class BatchViolation:
    """First token in a batch whose transition is not allowed."""

    index: int
    token: str
    status: TokenStatus


def plan_transitions(
    tokens: Sequence[str],
    current: Mapping[str, TokenStatus],
    target: TokenStatus,
) -> BatchViolation | None:
    """Validate moving every token in *tokens* to *target*.

    *current* maps tokens to their stored status; missing tokens are
    inactive. Tokens are staged in input order, so a token repeated
    within the batch sees the status its earlier occurrence produced.

    Returns the first violation, or None when the whole batch is valid.
    """
    staged: dict[str, TokenStatus] = dict(current)
    for index, token in enumerate(tokens):
        status = staged.get(token, TokenStatus.INACTIVE)
        if not is_valid_transition(status, target):
            return BatchViolation(index=index, token=token, status=status)
        staged[token] = target
    return None

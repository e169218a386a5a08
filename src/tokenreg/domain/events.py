"""Registry notifications.

Four shapes are emitted on state changes: ``AddList``, ``AddToken``,
``RemoveToken`` and ``OwnershipTransferred``. Each maps to a pluggy hook
of the same meaning (see :mod:`tokenreg.plugins.hookspecs`).
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class EventKind(StrEnum):
    """Notification names, as observed by audit consumers."""

    ADD_LIST = "AddList"
    ADD_TOKEN = "AddToken"
    REMOVE_TOKEN = "RemoveToken"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"


HOOK_NAMES: dict[EventKind, str] = {
    EventKind.ADD_LIST: "post_add_list",
    EventKind.ADD_TOKEN: "post_add_token",
    EventKind.REMOVE_TOKEN: "post_remove_token",
    EventKind.OWNERSHIP_TRANSFERRED: "post_transfer_ownership",
}

_PAYLOAD_FIELDS: dict[EventKind, tuple[str, ...]] = {
    EventKind.ADD_LIST: ("list_id", "name"),
    EventKind.ADD_TOKEN: ("list_id", "token"),
    EventKind.REMOVE_TOKEN: ("list_id", "token"),
    EventKind.OWNERSHIP_TRANSFERRED: ("previous_owner", "new_owner"),
}


class RegistryEvent(BaseModel):
    """A single emitted notification.

    Attributes:
        kind: Which of the four shapes this is.
        seq: Position in the persisted event log (None until stored).
        list_id, name, token: List/token fields, per shape.
        previous_owner, new_owner: Ownership fields.
    """

    model_config = {"frozen": True}

    kind: EventKind
    seq: int | None = None
    list_id: int | None = None
    name: str | None = None
    token: str | None = None
    previous_owner: str | None = None
    new_owner: str | None = None

    @classmethod
    def add_list(cls, list_id: int, name: str) -> RegistryEvent:
        return cls(kind=EventKind.ADD_LIST, list_id=list_id, name=name)

    @classmethod
    def add_token(cls, list_id: int, token: str) -> RegistryEvent:
        return cls(kind=EventKind.ADD_TOKEN, list_id=list_id, token=token)

    @classmethod
    def remove_token(cls, list_id: int, token: str) -> RegistryEvent:
        return cls(kind=EventKind.REMOVE_TOKEN, list_id=list_id, token=token)

    @classmethod
    def ownership_transferred(cls, previous_owner: str, new_owner: str) -> RegistryEvent:
        return cls(
            kind=EventKind.OWNERSHIP_TRANSFERRED,
            previous_owner=previous_owner,
            new_owner=new_owner,
        )

    @classmethod
    def from_payload(cls, kind: str, payload: dict[str, Any], *, seq: int) -> RegistryEvent:
        """Rebuild an event from its stored kind and hook payload."""
        return cls(kind=EventKind(kind), seq=seq, **payload)

    @property
    def hook_name(self) -> str:
        return HOOK_NAMES[self.kind]

    def payload(self) -> dict[str, Any]:
        """Keyword arguments for this event's hook."""
        return {field: getattr(self, field) for field in _PAYLOAD_FIELDS[self.kind]}

    def to_dict(self) -> dict[str, Any]:
        """Compact dict for ServiceResult payloads: kind, seq, shape fields."""
        return {"kind": str(self.kind), "seq": self.seq, **self.payload()}

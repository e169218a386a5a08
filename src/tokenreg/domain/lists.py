"""Token list records and list-id validity."""

from __future__ import annotations

from pydantic import BaseModel, Field


class TokenList(BaseModel):
    """Read-only snapshot of a list's metadata.

    An out-of-range id yields the zero-valued record from :meth:`empty`.
    """

    model_config = {"frozen": True}

    list_id: int
    name: str = ""
    active_token_count: int = Field(default=0, ge=0)

    @classmethod
    def empty(cls, list_id: int) -> TokenList:
        return cls(list_id=list_id)


def is_valid_list_id(list_id: int, list_count: int) -> bool:
    """Ids are dense from 1; 0 and anything past the count are invalid."""
    return 1 <= list_id <= list_count

"""Error codes carried by failed registry operations.

Every code describes a rejection that leaves registry state unchanged.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    """Machine-readable rejection reasons."""

    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_OWNER = "INVALID_OWNER"
    INVALID_LIST = "INVALID_LIST"
    DUPLICATE_TOKEN = "DUPLICATE_TOKEN"
    INACTIVE_TOKEN = "INACTIVE_TOKEN"

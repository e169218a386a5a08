"""Pluggy hook specifications for registry notifications.

One hook per event shape, dispatched after the state change commits.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("tokenreg")


class TokenregHookSpec:
    """Hook specifications for the tokenreg plugin system."""

    @hookspec
    def post_add_list(self, list_id: int, name: str) -> None:
        """Called after a list is created."""

    @hookspec
    def post_add_token(self, list_id: int, token: str) -> None:
        """Called once per token activated in a list, in batch order."""

    @hookspec
    def post_remove_token(self, list_id: int, token: str) -> None:
        """Called once per token deactivated in a list, in batch order."""

    @hookspec
    def post_transfer_ownership(self, previous_owner: str, new_owner: str) -> None:
        """Called after the owner changes (including initial assignment)."""

"""Audit plugin — writes every delivered registry event to the log."""

from __future__ import annotations

import pluggy
import structlog

hookimpl = pluggy.HookimplMarker("tokenreg")


class AuditLogPlugin:
    """Emit one structured ``registry.event`` log record per notification."""

    def __init__(self) -> None:
        self._log = structlog.get_logger("tokenreg.audit")

    @hookimpl
    def post_add_list(self, list_id: int, name: str) -> None:
        self._log.info("registry.event", kind="AddList", list_id=list_id, name=name)

    @hookimpl
    def post_add_token(self, list_id: int, token: str) -> None:
        self._log.info("registry.event", kind="AddToken", list_id=list_id, token=token)

    @hookimpl
    def post_remove_token(self, list_id: int, token: str) -> None:
        self._log.info("registry.event", kind="RemoveToken", list_id=list_id, token=token)

    @hookimpl
    def post_transfer_ownership(self, previous_owner: str, new_owner: str) -> None:
        self._log.info(
            "registry.event",
            kind="OwnershipTransferred",
            previous_owner=previous_owner,
            new_owner=new_owner,
        )

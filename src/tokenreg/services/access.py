"""AccessService — single-owner access control.

Exactly one owner exists at all times. Every mutating operation checks
the caller against it first; only the owner may hand it on, and never
to the null identity.
"""

from __future__ import annotations

import logging

from tokenreg.domain.errors import ErrorCode
from tokenreg.domain.events import RegistryEvent
from tokenreg.domain.identity import NULL_ADDRESS, is_null_identity
from tokenreg.services._helpers import now_iso
from tokenreg.services.base import BaseService
from tokenreg.services.result import ServiceResult
from tokenreg.services.telemetry import traced

logger = logging.getLogger(__name__)


class AccessService(BaseService):
    """Owner identity queries, checks, and transfer."""

    def initialize(self, creator: str | None) -> ServiceResult:
        """Record *creator* as owner of an empty store.

        An already-initialized store keeps its stored owner.

        Raises:
            ValueError: If the store has no owner and *creator* is null.
        """
        warnings: list[str] = []
        with self._store.transaction() as txn:
            owner = txn.owner()
            if owner is not None:
                if creator is not None and creator != owner:
                    logger.warning("Ignoring creator %s; registry owned by %s", creator, owner)
                    warnings.append(f"Registry already owned by {owner}")
                return ServiceResult(
                    ok=True,
                    op="initialize",
                    data={"owner": owner, "created": False},
                    warnings=warnings,
                )

            if is_null_identity(creator):
                msg = "A new registry needs a non-null creator identity"
                raise ValueError(msg)
            assert creator is not None

            now = now_iso()
            txn.set_owner(creator, now)
            event = txn.append_event(
                RegistryEvent.ownership_transferred(NULL_ADDRESS, creator), now
            )

        self._publish([event], warnings)
        return ServiceResult(
            ok=True,
            op="initialize",
            data={"owner": creator, "created": True, "events": [event.to_dict()]},
            warnings=warnings,
        )

    def current_owner(self) -> ServiceResult:
        with self._store.snapshot() as txn:
            owner = txn.owner()
        return ServiceResult(ok=True, op="current_owner", data={"owner": owner})

    def require_owner(self, caller: str) -> ServiceResult:
        """Succeed only when *caller* is the current owner. No side effects."""
        with self._store.snapshot() as txn:
            denied = self._check_owner(txn, caller, "require_owner")
        return denied or ServiceResult(ok=True, op="require_owner", data={"owner": caller})

    @traced
    def transfer_ownership(self, caller: str, new_owner: str | None) -> ServiceResult:
        """Hand ownership to *new_owner*, effective for the very next call."""
        op = "transfer_ownership"
        warnings: list[str] = []

        with self._store.transaction() as txn:
            denied = self._check_owner(txn, caller, op)
            if denied is not None:
                return denied
            if is_null_identity(new_owner):
                return ServiceResult.failure(
                    op,
                    ErrorCode.INVALID_OWNER,
                    "New owner is the null identity",
                    new_owner=new_owner,
                )
            assert new_owner is not None

            now = now_iso()
            txn.set_owner(new_owner, now)
            event = txn.append_event(RegistryEvent.ownership_transferred(caller, new_owner), now)

        logger.info("Ownership transferred from %s to %s", caller, new_owner)
        self._publish([event], warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "previous_owner": caller,
                "owner": new_owner,
                "events": [event.to_dict()],
            },
            warnings=warnings,
        )

"""Tests for RegistryStore and StoreTransaction."""

from __future__ import annotations

from pathlib import Path

import pytest

from tokenreg.config.settings import RegistrySettings
from tokenreg.domain.events import EventKind, RegistryEvent
from tokenreg.domain.membership import TokenStatus
from tokenreg.infrastructure.store import RegistryStore
from tokenreg.plugins.event_bus import EventBus

NOW = "2026-01-01T00:00:00+00:00"


class TestRegistryStore:
    def test_root_and_data_dir(self, store: RegistryStore, tmp_path: Path) -> None:
        assert store.root == tmp_path
        assert store.data_dir == tmp_path / ".tokenreg"
        assert (store.data_dir / "registry.db").exists()

    def test_in_memory_writes_nothing(self, tmp_path: Path) -> None:
        settings = RegistrySettings.load(
            root=tmp_path, setup_logging=False, store={"in_memory": True}
        )
        s = RegistryStore(settings)
        try:
            with s.transaction() as txn:
                txn.set_owner("0xA", NOW)
            with s.snapshot() as txn:
                assert txn.owner() == "0xA"
        finally:
            s.close()
        assert not (tmp_path / ".tokenreg").exists()

    def test_event_bus_none_until_initialized(self, store: RegistryStore) -> None:
        assert store.event_bus is None
        bus = store.init_event_bus()
        assert isinstance(bus, EventBus)
        assert store.event_bus is bus

    def test_builtin_audit_plugin_registered(self, store: RegistryStore) -> None:
        bus = store.init_event_bus()
        assert "audit-builtin" in bus.plugin_manager.plugin_names()


class TestTransaction:
    def test_commit_on_success(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            txn.set_owner("0xA", NOW)
        with store.snapshot() as txn:
            assert txn.owner() == "0xA"

    def test_rollback_on_exception(self, store: RegistryStore) -> None:
        with pytest.raises(RuntimeError):
            with store.transaction() as txn:
                txn.set_owner("0xA", NOW)
                txn.create_list("x", NOW)
                txn.append_event(RegistryEvent.add_list(1, "x"), NOW)
                raise RuntimeError("boom")
        with store.snapshot() as txn:
            assert txn.owner() is None
            assert txn.list_count() == 0
            assert txn.read_events() == []

    def test_set_owner_replaces(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            txn.set_owner("0xA", NOW)
            txn.set_owner("0xB", NOW)
            assert txn.owner() == "0xB"


class TestListsAndMemberships:
    def test_create_list_assigns_sequential_ids(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            assert txn.create_list("a", NOW) == 1
            assert txn.create_list("a", NOW) == 2
            assert txn.list_count() == 2

    def test_get_list(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            txn.create_list("Stablecoins", NOW)
            record = txn.get_list(1)
            assert record is not None
            assert record.name == "Stablecoins"
            assert record.active_token_count == 0
            assert txn.get_list(2) is None

    def test_set_status_keeps_first_position(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            txn.create_list("x", NOW)
            txn.set_status(1, "0xA", TokenStatus.ACTIVE, NOW)
            txn.set_status(1, "0xB", TokenStatus.ACTIVE, NOW)
            txn.set_status(1, "0xA", TokenStatus.INACTIVE, NOW)
            txn.set_status(1, "0xA", TokenStatus.ACTIVE, NOW)
            assert txn.list_tokens(1) == ["0xA", "0xB"]

    def test_token_statuses(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            txn.create_list("x", NOW)
            txn.set_status(1, "0xA", TokenStatus.ACTIVE, NOW)
            txn.set_status(1, "0xB", TokenStatus.INACTIVE, NOW)
            statuses = txn.token_statuses(1, ["0xA", "0xB", "0xC"])
        assert statuses == {"0xA": TokenStatus.ACTIVE, "0xB": TokenStatus.INACTIVE}

    def test_list_tokens_active_only(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            txn.create_list("x", NOW)
            txn.set_status(1, "0xA", TokenStatus.ACTIVE, NOW)
            txn.set_status(1, "0xB", TokenStatus.ACTIVE, NOW)
            txn.set_status(1, "0xA", TokenStatus.INACTIVE, NOW)
            assert txn.list_tokens(1, active_only=True) == ["0xB"]
            assert txn.is_active(1, "0xB") is True
            assert txn.is_active(1, "0xA") is False

    def test_memberships_are_per_list(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            txn.create_list("x", NOW)
            txn.create_list("y", NOW)
            txn.set_status(1, "0xA", TokenStatus.ACTIVE, NOW)
            assert txn.is_active(1, "0xA") is True
            assert txn.is_active(2, "0xA") is False


class TestEventLog:
    def test_append_assigns_increasing_seq(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            first = txn.append_event(RegistryEvent.add_list(1, "x"), NOW)
            second = txn.append_event(RegistryEvent.add_token(1, "0xA"), NOW)
            assert txn.events == [first, second]
        assert first.seq is not None
        assert second.seq is not None
        assert second.seq > first.seq

    def test_read_events_after_and_limit(self, store: RegistryStore) -> None:
        with store.transaction() as txn:
            for token in ("0xA", "0xB", "0xC"):
                txn.append_event(RegistryEvent.add_token(1, token), NOW)
        with store.snapshot() as txn:
            events = txn.read_events(after=1, limit=1)
        assert len(events) == 1
        assert events[0].kind == EventKind.ADD_TOKEN
        assert events[0].token == "0xB"

"""Tests for TokenService — batch activation and deactivation."""

from __future__ import annotations

import pytest

from tests.conftest import OWNER, TOKEN_A, TOKEN_B, TOKEN_C, USER1, add_list, add_tokens
from tokenreg.infrastructure.store import RegistryStore
from tokenreg.services.tokens import TokenService


def _active_count(store: RegistryStore, list_id: int) -> int:
    with store.snapshot() as txn:
        record = txn.get_list(list_id)
    assert record is not None
    return record.active_token_count


def _event_count(store: RegistryStore) -> int:
    with store.snapshot() as txn:
        return len(txn.read_events())


@pytest.fixture
def list_id(owned_store: RegistryStore) -> int:
    return add_list(owned_store)


class TestAddTokens:
    def test_activates_tokens(self, owned_store: RegistryStore, list_id: int) -> None:
        result = TokenService(owned_store).add_tokens(OWNER, list_id, [TOKEN_A, TOKEN_B])
        assert result.ok
        with owned_store.snapshot() as txn:
            assert txn.is_active(list_id, TOKEN_A)
            assert txn.is_active(list_id, TOKEN_B)
        assert _active_count(owned_store, list_id) == 2

    def test_events_in_input_order(self, owned_store: RegistryStore, list_id: int) -> None:
        result = TokenService(owned_store).add_tokens(OWNER, list_id, [TOKEN_B, TOKEN_A])
        events = result.data["events"]
        assert [e["kind"] for e in events] == ["AddToken", "AddToken"]
        assert [e["token"] for e in events] == [TOKEN_B, TOKEN_A]
        assert all(e["list_id"] == list_id for e in events)
        assert events[0]["seq"] < events[1]["seq"]

    def test_single_token_increments_by_one(
        self, owned_store: RegistryStore, list_id: int
    ) -> None:
        add_tokens(owned_store, list_id, [TOKEN_A])
        before = _active_count(owned_store, list_id)
        add_tokens(owned_store, list_id, [TOKEN_B])
        assert _active_count(owned_store, list_id) == before + 1

    def test_duplicate_rejected(self, owned_store: RegistryStore, list_id: int) -> None:
        add_tokens(owned_store, list_id, [TOKEN_C])
        result = TokenService(owned_store).add_tokens(OWNER, list_id, [TOKEN_C])
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "DUPLICATE_TOKEN"
        assert result.error.detail == {"list_id": list_id, "token": TOKEN_C, "index": 0}
        assert _active_count(owned_store, list_id) == 1

    def test_duplicate_aborts_whole_batch(
        self, owned_store: RegistryStore, list_id: int
    ) -> None:
        add_tokens(owned_store, list_id, [TOKEN_C])
        events_before = _event_count(owned_store)
        result = TokenService(owned_store).add_tokens(
            OWNER, list_id, [TOKEN_A, TOKEN_B, TOKEN_C]
        )
        assert result.error is not None
        assert result.error.detail["index"] == 2
        with owned_store.snapshot() as txn:
            assert not txn.is_active(list_id, TOKEN_A)
            assert not txn.is_active(list_id, TOKEN_B)
            assert txn.list_tokens(list_id) == [TOKEN_C]
        assert _active_count(owned_store, list_id) == 1
        assert _event_count(owned_store) == events_before

    def test_duplicate_within_batch(self, owned_store: RegistryStore, list_id: int) -> None:
        result = TokenService(owned_store).add_tokens(OWNER, list_id, [TOKEN_A, TOKEN_A])
        assert result.error is not None
        assert result.error.code == "DUPLICATE_TOKEN"
        with owned_store.snapshot() as txn:
            assert not txn.is_active(list_id, TOKEN_A)
        assert _active_count(owned_store, list_id) == 0

    @pytest.mark.parametrize("bad_id", [0, 2, 50])
    def test_invalid_list(self, owned_store: RegistryStore, list_id: int, bad_id: int) -> None:
        result = TokenService(owned_store).add_tokens(OWNER, bad_id, [TOKEN_A])
        assert result.error is not None
        assert result.error.code == "INVALID_LIST"
        assert result.error.detail == {"list_id": bad_id}

    def test_non_owner_rejected(self, owned_store: RegistryStore, list_id: int) -> None:
        result = TokenService(owned_store).add_tokens(USER1, list_id, [TOKEN_A])
        assert result.error is not None
        assert result.error.code == "UNAUTHORIZED"
        with owned_store.snapshot() as txn:
            assert not txn.is_active(list_id, TOKEN_A)

    def test_unauthorized_before_invalid_list(self, owned_store: RegistryStore) -> None:
        result = TokenService(owned_store).add_tokens(USER1, 0, [TOKEN_A])
        assert result.error is not None
        assert result.error.code == "UNAUTHORIZED"

    def test_invalid_list_before_duplicate(self, owned_store: RegistryStore) -> None:
        result = TokenService(owned_store).add_tokens(OWNER, 1, [TOKEN_A, TOKEN_A])
        assert result.error is not None
        assert result.error.code == "INVALID_LIST"

    def test_empty_batch(self, owned_store: RegistryStore, list_id: int) -> None:
        events_before = _event_count(owned_store)
        result = TokenService(owned_store).add_tokens(OWNER, list_id, [])
        assert result.ok
        assert result.data["events"] == []
        assert _event_count(owned_store) == events_before

    def test_same_token_in_two_lists(self, owned_store: RegistryStore, list_id: int) -> None:
        other = add_list(owned_store, "other")
        add_tokens(owned_store, list_id, [TOKEN_A])
        add_tokens(owned_store, other, [TOKEN_A])
        assert _active_count(owned_store, list_id) == 1
        assert _active_count(owned_store, other) == 1

    def test_reactivation_after_removal(self, owned_store: RegistryStore, list_id: int) -> None:
        svc = TokenService(owned_store)
        add_tokens(owned_store, list_id, [TOKEN_A, TOKEN_B])
        assert svc.remove_tokens(OWNER, list_id, [TOKEN_A]).ok
        assert svc.add_tokens(OWNER, list_id, [TOKEN_A]).ok
        assert _active_count(owned_store, list_id) == 2
        with owned_store.snapshot() as txn:
            assert txn.list_tokens(list_id) == [TOKEN_A, TOKEN_B]


class TestRemoveTokens:
    def test_deactivates(self, owned_store: RegistryStore, list_id: int) -> None:
        add_tokens(owned_store, list_id, [TOKEN_A, TOKEN_B])
        result = TokenService(owned_store).remove_tokens(OWNER, list_id, [TOKEN_B])
        assert result.ok
        (event,) = result.data["events"]
        assert event["kind"] == "RemoveToken"
        assert event["token"] == TOKEN_B
        with owned_store.snapshot() as txn:
            assert not txn.is_active(list_id, TOKEN_B)
            assert txn.is_active(list_id, TOKEN_A)
        assert _active_count(owned_store, list_id) == 1

    def test_inactive_rejected(self, owned_store: RegistryStore, list_id: int) -> None:
        add_tokens(owned_store, list_id, [TOKEN_A])
        svc = TokenService(owned_store)
        svc.remove_tokens(OWNER, list_id, [TOKEN_A])
        result = svc.remove_tokens(OWNER, list_id, [TOKEN_A])
        assert result.error is not None
        assert result.error.code == "INACTIVE_TOKEN"
        assert result.error.detail["token"] == TOKEN_A

    def test_never_added_rejected(self, owned_store: RegistryStore, list_id: int) -> None:
        result = TokenService(owned_store).remove_tokens(OWNER, list_id, [TOKEN_C])
        assert result.error is not None
        assert result.error.code == "INACTIVE_TOKEN"

    def test_inactive_aborts_whole_batch(
        self, owned_store: RegistryStore, list_id: int
    ) -> None:
        add_tokens(owned_store, list_id, [TOKEN_A, TOKEN_B])
        result = TokenService(owned_store).remove_tokens(
            OWNER, list_id, [TOKEN_A, TOKEN_C, TOKEN_B]
        )
        assert result.error is not None
        assert result.error.detail["index"] == 1
        with owned_store.snapshot() as txn:
            assert txn.is_active(list_id, TOKEN_A)
            assert txn.is_active(list_id, TOKEN_B)
        assert _active_count(owned_store, list_id) == 2

    def test_repeat_within_batch(self, owned_store: RegistryStore, list_id: int) -> None:
        add_tokens(owned_store, list_id, [TOKEN_A])
        result = TokenService(owned_store).remove_tokens(OWNER, list_id, [TOKEN_A, TOKEN_A])
        assert result.error is not None
        assert result.error.code == "INACTIVE_TOKEN"
        assert _active_count(owned_store, list_id) == 1

    @pytest.mark.parametrize("bad_id", [0, 2])
    def test_invalid_list(self, owned_store: RegistryStore, list_id: int, bad_id: int) -> None:
        result = TokenService(owned_store).remove_tokens(OWNER, bad_id, [TOKEN_A])
        assert result.error is not None
        assert result.error.code == "INVALID_LIST"

    def test_non_owner_rejected(self, owned_store: RegistryStore, list_id: int) -> None:
        add_tokens(owned_store, list_id, [TOKEN_A])
        result = TokenService(owned_store).remove_tokens(USER1, list_id, [TOKEN_A])
        assert result.error is not None
        assert result.error.code == "UNAUTHORIZED"
        assert _active_count(owned_store, list_id) == 1


class TestBatchArgument:
    @pytest.mark.parametrize("method", ["add_tokens", "remove_tokens"])
    def test_bare_string_rejected(
        self, owned_store: RegistryStore, list_id: int, method: str
    ) -> None:
        with pytest.raises(TypeError, match="single string"):
            getattr(TokenService(owned_store), method)(OWNER, list_id, TOKEN_A)
        with owned_store.snapshot() as txn:
            assert txn.list_tokens(list_id) == []
            assert txn.read_events()[-1].kind == "AddList"
        assert _active_count(owned_store, list_id) == 0

    def test_tuple_accepted(self, owned_store: RegistryStore, list_id: int) -> None:
        result = TokenService(owned_store).add_tokens(OWNER, list_id, (TOKEN_A, TOKEN_B))
        assert result.ok
        assert result.data["tokens"] == [TOKEN_A, TOKEN_B]

"""Shared pytest fixtures and test helpers for tokenreg tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy.engine import Engine

from tokenreg.config.settings import RegistrySettings
from tokenreg.infrastructure.database.engine import init_database
from tokenreg.infrastructure.store import RegistryStore
from tokenreg.registry import Registry

OWNER = "0x90F8bf6A479f320ead074411a4B0e7944Ea8c9C1"
USER1 = "0xFFcf8FDEE72ac11b5c542428B35EEF5769C409f0"

TOKEN_A = "0x5eF09cc3e4E63F9d37F1dc57b3FC6e6180178794"
TOKEN_B = "0x47769354ACC9efac989dc5B93e652960aF534bb7"
TOKEN_C = "0x0500f8C8AAD954936b86c06AFBa5D4e27b806352"


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's TOKENREG_* environment out of the tests."""
    monkeypatch.delenv("TOKENREG_CONFIG", raising=False)
    monkeypatch.delenv("TOKENREG_ROOT", raising=False)


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def settings(tmp_path: Path) -> RegistrySettings:
    """Settings rooted at a temp directory, leaving global logging alone."""
    return RegistrySettings.load(root=tmp_path, setup_logging=False)


@pytest.fixture
def store(settings: RegistrySettings) -> Iterator[RegistryStore]:
    """Bare store with no owner and no event bus."""
    s = RegistryStore(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def owned_store(store: RegistryStore) -> RegistryStore:
    """Store initialized with OWNER as owner."""
    from tokenreg.services.access import AccessService

    AccessService(store).initialize(OWNER)
    return store


@pytest.fixture
def registry(settings: RegistrySettings) -> Iterator[Registry]:
    """Registry owned by OWNER with a sync event bus."""
    r = Registry.open(settings, creator=OWNER)
    try:
        yield r
    finally:
        r.close()


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def add_list(store: RegistryStore, name: str = "testList") -> int:
    """Create a list as OWNER via ListService, asserting success."""
    from tokenreg.services.lists import ListService

    result = ListService(store).add_list(OWNER, name)
    assert result.ok, result.error
    return int(result.data["list_id"])


def add_tokens(store: RegistryStore, list_id: int, tokens: list[str]) -> dict[str, Any]:
    """Activate tokens as OWNER via TokenService, asserting success."""
    from tokenreg.services.tokens import TokenService

    result = TokenService(store).add_tokens(OWNER, list_id, tokens)
    assert result.ok, result.error
    return result.data

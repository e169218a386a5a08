"""Tests for configuration section models."""

import pytest
from pydantic import ValidationError

from tokenreg.config.models import EventsConfig, RegistryConfig, StoreConfig


class TestDefaults:
    def test_root_defaults(self) -> None:
        cfg = RegistryConfig()
        assert cfg.registry.name == "token-registry"
        assert cfg.registry.owner is None
        assert cfg.store == StoreConfig()
        assert cfg.events.sync is True
        assert cfg.events.max_retries == 3
        assert cfg.events.max_workers == 1

    def test_frozen(self) -> None:
        cfg = RegistryConfig()
        with pytest.raises(ValidationError):
            cfg.store = StoreConfig(in_memory=True)  # type: ignore[misc]


class TestValidation:
    def test_sparse_sections(self) -> None:
        cfg = RegistryConfig.model_validate({"store": {"in_memory": True}})
        assert cfg.store.in_memory is True
        assert cfg.store.filename == "registry.db"

    @pytest.mark.parametrize("field", ["max_retries", "max_workers"])
    def test_positive_event_limits(self, field: str) -> None:
        with pytest.raises(ValueError):
            EventsConfig.model_validate({field: 0})

"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, tokenreg.toml only contains
overrides. A fresh registry needs at most ``[registry] owner``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegistrySection(BaseModel):
    """[registry] section."""

    model_config = {"frozen": True}

    name: str = "token-registry"
    owner: str | None = None  # creator used when opening an empty store


class StoreConfig(BaseModel):
    """[store] section."""

    model_config = {"frozen": True}

    in_memory: bool = False
    filename: str = "registry.db"


class EventsConfig(BaseModel):
    """[events] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    sync: bool = True
    max_retries: int = Field(default=3, ge=1)
    max_workers: int = Field(default=1, ge=1)
    local_plugins: bool = True


class RegistryConfig(BaseModel):
    """Root configuration composing all tokenreg.toml sections."""

    model_config = {"frozen": True}

    registry: RegistrySection = Field(default_factory=RegistrySection)
    store: StoreConfig = Field(default_factory=StoreConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)

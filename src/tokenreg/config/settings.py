"""RegistrySettings: keyword overrides, env vars and TOML in one object.

Highest priority first:

1. keyword overrides given to :meth:`RegistrySettings.load`
2. ``TOKENREG_*`` environment variables (``__`` separates sections,
   e.g. ``TOKENREG_EVENTS__SYNC=false``)
3. the discovered ``tokenreg.toml``
4. defaults from :mod:`tokenreg.config.models`
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from tokenreg.config.discovery import find_config
from tokenreg.config.models import EventsConfig, RegistrySection, StoreConfig

# File chosen by load(), read by settings_customise_sources().
_toml_path: ContextVar[Path | None] = ContextVar("_toml_path", default=None)


class ConfigError(ValueError):
    """A tokenreg.toml that is not valid TOML."""


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by one TOML file (or nothing)."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data = self._read(toml_path) if toml_path is not None else {}

    @staticmethod
    def _read(path: Path) -> dict[str, Any]:
        if not path.is_file():
            return {}
        try:
            with path.open("rb") as fh:
                return tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Invalid TOML in {path}: {exc}"
            raise ConfigError(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


class RegistrySettings(BaseSettings):
    """Everything needed to open a registry.

    Attributes:
        root: Directory holding ``.tokenreg/`` (the config file's directory,
            else the working directory).
        config_path: The TOML file that was read, if any.
        setup_logging: Let ``Registry.open`` install the stderr handler from
            :func:`~tokenreg.config.logging.configure_logging`. Off by
            default; the embedding application owns the root logger.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "TOKENREG_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    verbose: bool = False
    log_json: bool = False
    setup_logging: bool = False

    registry: RegistrySection = Field(default_factory=RegistrySection)
    store: StoreConfig = Field(default_factory=StoreConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, _toml_path.get()),
        )

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        root: Path | None = None,
        **overrides: Any,
    ) -> RegistrySettings:
        """Build settings for the registry at *root*.

        Without *config_path*, the config file is looked up from *root*
        (or the working directory). Without *root*, the config file's
        directory is the root.
        """
        if config_path:
            toml_path: Path | None = Path(config_path)
            if not toml_path.is_file():
                toml_path = None
        else:
            toml_path = find_config(root)

        if root is None:
            root = toml_path.parent if toml_path is not None else Path.cwd()

        reset = _toml_path.set(toml_path)
        try:
            return cls(root=root, config_path=toml_path, **overrides)
        finally:
            _toml_path.reset(reset)

"""Plugin discovery for registry observers.

Two sources feed the same pluggy manager: distributions advertising the
``tokenreg.plugins`` entry-point group, and single-file plugins dropped
into ``{root}/.tokenreg/plugins/``. A plugin that fails to load is
logged and skipped; the registry opens regardless.
"""

from __future__ import annotations

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from types import ModuleType

import pluggy

from tokenreg.plugins.hookspecs import TokenregHookSpec

PROJECT_NAME = "tokenreg"
ENTRY_POINT_GROUP = "tokenreg.plugins"
LOCAL_MODULE_PREFIX = "tokenreg_local_plugin_"

logger = logging.getLogger(__name__)


def declares_hooks(cls: type) -> bool:
    """True if *cls* has a public method marked with ``@hookimpl``."""
    marker = f"{PROJECT_NAME}_impl"
    return any(
        getattr(getattr(cls, attr, None), marker, None)
        for attr in dir(cls)
        if not attr.startswith("_")
    )


class PluginManager:
    """Hook registry for the four registry notifications."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(TokenregHookSpec)

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def discover_and_load(self, *, local_dir: Path | None = None) -> list[str]:
        """Load entry-point plugins, then local ones from *local_dir*.

        Returns the names of all registered plugins.
        """
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        for candidate in list(self._pm.get_plugins()):
            # Entry points may name a class; hooks need a bound instance.
            if inspect.isclass(candidate) and declares_hooks(candidate):
                name = self._pm.get_name(candidate) or candidate.__name__
                self._pm.unregister(candidate)
                self._instantiate(candidate, name)

        if local_dir is not None and local_dir.is_dir():
            for path in sorted(local_dir.glob("[!_]*.py")):
                module = self._load_module(path)
                if module is None:
                    continue
                for _, cls in inspect.getmembers(module, inspect.isclass):
                    if cls.__module__ == module.__name__ and declares_hooks(cls):
                        self._instantiate(cls, f"{module.__name__}.{cls.__name__}")
        return self.plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        resolved = name or type(plugin).__name__
        self._pm.register(plugin, name=resolved)
        logger.debug("Registered plugin: %s", resolved)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def _instantiate(self, cls: type, name: str) -> None:
        try:
            instance = cls()
        except Exception:
            logger.warning("Failed to instantiate plugin %s", name, exc_info=True)
            return
        self.register_plugin(instance, name=name)

    @staticmethod
    def _load_module(path: Path) -> ModuleType | None:
        module_name = f"{LOCAL_MODULE_PREFIX}{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            logger.warning("Not a loadable plugin file: %s", path)
            return None
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            logger.warning("Failed to load local plugin %s", path, exc_info=True)
            sys.modules.pop(module_name, None)
            return None
        return module

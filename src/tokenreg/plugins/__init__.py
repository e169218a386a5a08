"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints,
plus single-file plugins from ``.tokenreg/plugins/``.
INVARIANT: Plugin failures are warnings, never errors.
"""

from tokenreg.plugins.event_bus import EventBus
from tokenreg.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]

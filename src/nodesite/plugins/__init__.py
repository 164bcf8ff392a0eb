"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Plugin loading failures are warnings, never errors.
"""

from nodesite.plugins.manager import PluginManager

__all__ = ["PluginManager"]

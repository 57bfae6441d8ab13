"""
Plugin loading and hook dispatch.

A plugin is any module or object exposing a `hooks` mapping of hook
name → callable(book). It is found through the "folio.plugins" entry
point group, or as an importable "folio_plugin_<name>" module.
Hook callables may be plain functions or coroutines.
"""

import importlib
import inspect
from importlib.metadata import entry_points

from loguru import logger

from folio.errors import PluginError


ENTRY_POINT_GROUP = "folio.plugins"
MODULE_PREFIX = "folio_plugin_"


def _load_entry_point(name):
    for entry_point in entry_points(group=ENTRY_POINT_GROUP):
        if entry_point.name == name:
            return entry_point.load()
    return None


def _load_module(name):
    module_name = MODULE_PREFIX + name.replace("-", "_")
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as e:
        if e.name != module_name:
            raise
        return None


class Plugin:
    """A declared plugin, resolved at construction."""

    def __init__(self, book, name):
        self.book = book
        self.name = name
        self.error = None
        try:
            self.module = _load_entry_point(name) or _load_module(name)
        except Exception as e:
            logger.warning(f"Plugin '{name}' failed to import: {e}")
            self.error = e
            self.module = None

    @property
    def hooks(self):
        return getattr(self.module, "hooks", None)

    def is_valid(self):
        return self.module is not None and isinstance(self.hooks, dict)

    async def call_hook(self, name):
        hook = (self.hooks or {}).get(name)
        if hook is None:
            return None
        logger.debug(f"Plugin '{self.name}': hook {name}")
        result = hook(self.book)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self):
        return f"<Plugin {self.name}{'' if self.is_valid() else ' (invalid)'}>"


def load_plugins(book, names):
    """
    Load every named plugin for a book.

    Raises PluginError naming all plugins that failed, not just the first.
    """
    plugins = [Plugin(book, name) for name in names]
    failed = [plugin.name for plugin in plugins if not plugin.is_valid()]
    if failed:
        raise PluginError(
            f"Error loading plugins: {', '.join(failed)}. "
            f"Install them as '{MODULE_PREFIX}<name>' modules or "
            f"'{ENTRY_POINT_GROUP}' entry points."
        )
    return plugins

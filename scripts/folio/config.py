"""
Book configuration: load, validate, and provide defaults for book.yaml.

A BookConfig is an immutable snapshot. Stages that need different values
(README-derived title, per-language output) get a new snapshot through
with_defaults() / with_overrides() instead of mutating the shared one.
"""

import copy
import json
import os

import yaml

from folio import fs
from folio.errors import ConfigError


# Looked up in the book root, first match wins
CONFIG_FILES = ["book.yaml", "book.yml", "book.json"]

# Defaults applied if missing
DEFAULTS = {
    "title": None,
    "description": None,
    "author": None,
    "output": None,
    "generator": "site",
    "lang": "en",
    "plugins": [],
    "variables": {},
    "structure": {},
    "concurrency": 8,
    "ebook": {},
}

# Base names (extension-less) of the structural files
STRUCTURE_DEFAULTS = {
    "readme": "README",
    "summary": "SUMMARY",
    "glossary": "GLOSSARY",
    "langs": "LANGS",
}

EBOOK_DEFAULTS = {
    "format": "epub",
    "toc": True,
    "toc_depth": 1,
    "css": None,
    "cover": "cover.jpg",
    "engine": "xelatex",
    "keep_intermediate": False,
}

# Keys merged one level deep instead of replaced
NESTED_KEYS = ("variables", "structure", "ebook")


def _merge(data, overrides):
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key in NESTED_KEYS and isinstance(value, dict):
            data[key] = {**data.get(key, {}), **value}
        else:
            data[key] = copy.deepcopy(value)
    return data


def _normalize_plugins(plugins):
    if isinstance(plugins, str):
        plugins = [name for name in plugins.split(",") if name.strip()]
    if not isinstance(plugins, list):
        raise ConfigError(f"'plugins' must be a list, got {type(plugins).__name__}")

    names = []
    for plugin in plugins:
        name = plugin.get("name") if isinstance(plugin, dict) else plugin
        if not isinstance(name, str) or not name.strip():
            raise ConfigError(f"Invalid plugin entry: {plugin!r}")
        if name.strip() not in names:
            names.append(name.strip())
    return names


def _validate(data, root):
    for key in NESTED_KEYS:
        if not isinstance(data.get(key), dict):
            raise ConfigError(f"'{key}' must be a mapping, got {type(data[key]).__name__}")

    data["plugins"] = _normalize_plugins(data["plugins"])

    for key, default in STRUCTURE_DEFAULTS.items():
        data["structure"].setdefault(key, default)
    for key, value in data["structure"].items():
        if not isinstance(value, str) or not value:
            raise ConfigError(f"structure.{key} must be a file name, got {value!r}")

    for key, default in EBOOK_DEFAULTS.items():
        data["ebook"].setdefault(key, default)

    concurrency = data["concurrency"]
    if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
        raise ConfigError(f"'concurrency' must be a positive integer, got {concurrency!r}")

    output = data["output"] or "_book"
    data["output"] = os.path.abspath(os.path.join(root, output))

    return data


def _parse_config_file(name, content):
    try:
        if name.endswith(".json"):
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Can't parse {name}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{name} must be a mapping, got {type(data).__name__}")
    return data


class BookConfig:
    """
    Loaded, validated book configuration.

    Usage:
        config = await BookConfig.load(book_root, {"output": "site"})
        config.title                 # "My Book"
        config.structure("summary")  # "SUMMARY"
        config.get("series")         # None if not set

    Precedence (lowest first): DEFAULTS, parent snapshot (language
    sub-books only), book.yaml / book.json, explicit options.
    """

    def __init__(self, data, root, source=None):
        object.__setattr__(self, "_data", data)
        object.__setattr__(self, "root", root)
        object.__setattr__(self, "source", source)

    @classmethod
    def defaults(cls, root, options=None, base=None):
        """Build a snapshot without reading any config file."""
        return cls._build(root, None, options, base)

    @classmethod
    async def load(cls, root, options=None, base=None):
        """Load and validate the config file (if any) from a book root."""
        for name in CONFIG_FILES:
            path = os.path.join(root, name)
            if not await fs.exists(path):
                continue
            try:
                content = await fs.read_file(path)
            except (OSError, UnicodeDecodeError) as e:
                raise ConfigError(f"Can't read {path}: {e}") from e
            return cls._build(root, _parse_config_file(name, content), options, base, source=path)

        return cls._build(root, None, options, base)

    @classmethod
    def _build(cls, root, file_data, options, base, source=None):
        data = copy.deepcopy(DEFAULTS)
        if base is not None:
            _merge(data, base.as_dict())
        _merge(data, file_data)
        _merge(data, options)
        return cls(_validate(data, root), root, source)

    # ── Derived snapshots ──────────────────────────────────

    def with_overrides(self, **values):
        """New snapshot with the given values replacing the current ones."""
        data = _merge(self.as_dict(), values)
        return BookConfig(_validate(data, self.root), self.root, self.source)

    def with_defaults(self, **values):
        """New snapshot filling only the fields that are still unset."""
        unset = {
            key: value for key, value in values.items()
            if value and not self._data.get(key)
        }
        if not unset:
            return self
        return self.with_overrides(**unset)

    def as_dict(self):
        return copy.deepcopy(self._data)

    # ── Attribute access ───────────────────────────────────

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return copy.deepcopy(self._data[name])
        except KeyError:
            raise AttributeError(f"BookConfig has no field '{name}'")

    def __setattr__(self, name, value):
        raise AttributeError("BookConfig is immutable, use with_overrides()")

    def get(self, key, default=None):
        return copy.deepcopy(self._data.get(key, default))

    def __getitem__(self, key):
        return copy.deepcopy(self._data[key])

    def __contains__(self, key):
        return key in self._data

    # ── Convenience ────────────────────────────────────────

    def structure(self, name):
        """Configured base file name for a structural file ("summary" → "SUMMARY")."""
        try:
            return self._data["structure"][name]
        except KeyError:
            raise ConfigError(f"Unknown structure file '{name}'")

    def describe(self):
        """Print a short config summary."""
        print(f"\n  Book:   {self.title or '(untitled)'}")
        if self.get("author"):
            print(f"  Author: {self.author}")
        print(f"  Source: {self.root}")
        print(f"  Output: {self.output}")
        print(f"  Lang:   {self.lang}")

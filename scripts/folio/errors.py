"""
Exception types raised by the build pipeline.

Everything derives from FolioError so the CLI can report any pipeline
failure as a single message.
"""


class FolioError(Exception):
    """Base class for all pipeline failures."""
    pass


class ConfigError(FolioError):
    """Raised when book.yaml / book.json is unreadable or invalid."""
    pass


class PluginError(FolioError):
    """Raised when one or more declared plugins can't be loaded."""
    pass


class BookError(FolioError):
    """Raised when the book content can't be parsed (missing README, SUMMARY...)."""
    pass


class GeneratorError(FolioError):
    """Raised for unknown generators or failing generator steps."""
    pass


class SearchError(FolioError):
    """Raised when a search query can't be parsed."""
    pass

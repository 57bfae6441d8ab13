"""
Parser registry: file extension → content format.

The registry keeps extensions in lookup order; structural files are
resolved by trying them in that order.
"""

from folio.parsers.base import FileFormat, slugify
from folio.parsers.markdown import MarkdownFormat


class ParserRegistry:
    """
    Ordered mapping of extensions to FileFormat instances.

    Usage:
        registry = ParserRegistry([MarkdownFormat()])
        registry.extensions      # [".md", ".markdown", ".mdown"]
        registry.get(".md")      # <MarkdownFormat markdown>
    """

    def __init__(self, formats):
        self.formats = list(formats)
        self._by_extension = {}
        for file_format in self.formats:
            for ext in file_format.extensions:
                self._by_extension.setdefault(ext.lower(), file_format)

    @property
    def extensions(self):
        return list(self._by_extension)

    def get(self, extension):
        return self._by_extension.get((extension or "").lower())

    def __contains__(self, extension):
        return (extension or "").lower() in self._by_extension


PARSERS = ParserRegistry([MarkdownFormat()])

__all__ = ["FileFormat", "MarkdownFormat", "PARSERS", "ParserRegistry", "slugify"]

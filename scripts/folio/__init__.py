"""
folio: build navigable, searchable books from folders of markdown.

Public API:
    from folio.book import Book
    from folio.config import BookConfig
    from folio.generators import GENERATORS, register_generator
    from folio.parsers import PARSERS, ParserRegistry
    from folio.search import SearchIndex
"""

__version__ = "0.1.0"

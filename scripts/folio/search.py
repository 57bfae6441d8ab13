"""
Full-text search index over processed pages.

Documents are kept by ref so indexing a page twice replaces it. The lunr
index itself is built lazily on the first query or serialization after
a change.
"""

from loguru import logger
from lunr import lunr
from lunr.exceptions import QueryParseError

from folio.errors import SearchError


class SearchIndex:
    """
    Append/replace document store with a lunr index on top.

    Usage:
        index = SearchIndex()
        index.add({"url": "intro.md", "title": "Intro", "body": "..."})
        index.search("intro")   # [{"ref": "intro.md", "score": 1.2}]
    """

    ref = "url"
    fields = [
        {"field_name": "title", "boost": 10},
        {"field_name": "body"},
    ]

    def __init__(self):
        self._documents = {}
        self._index = None

    def add(self, document):
        ref = document[self.ref]
        if ref in self._documents:
            logger.debug(f"Replacing search document {ref}")
        self._documents[ref] = {
            self.ref: ref,
            "title": document.get("title") or "",
            "body": document.get("body") or "",
        }
        self._index = None

    def remove(self, ref):
        if self._documents.pop(ref, None) is not None:
            self._index = None

    def get(self, ref):
        document = self._documents.get(ref)
        return dict(document) if document else None

    def __contains__(self, ref):
        return ref in self._documents

    def __len__(self):
        return len(self._documents)

    @property
    def refs(self):
        return list(self._documents)

    def _build(self):
        if self._index is None and self._documents:
            self._index = lunr(
                ref=self.ref,
                fields=self.fields,
                documents=list(self._documents.values()),
            )
        return self._index

    def search(self, query):
        """Ranked [{"ref", "score"}] for a lunr query string."""
        index = self._build()
        if index is None or not query.strip():
            return []
        try:
            results = index.search(query)
        except QueryParseError as e:
            raise SearchError(f"Invalid search query '{query}': {e}") from e
        return [{"ref": r["ref"], "score": r["score"]} for r in results]

    def serialize(self):
        """JSON-ready dump: the lunr index plus a title store for result display."""
        index = self._build()
        return {
            "index": index.serialize() if index is not None else None,
            "store": {
                ref: {"title": document["title"]}
                for ref, document in self._documents.items()
            },
        }

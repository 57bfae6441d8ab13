"""
Base class for all content formats.

Subclasses set `name` / `extensions` and implement the five extraction
operations. Adding a format means adding a subclass and registering it;
dispatch sites never change.
"""

import re
import unicodedata
from abc import ABC, abstractmethod


def slugify(text):
    """Anchor-safe id for a heading or glossary term ("Hello, World" → "hello-world")."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^\w\s-]", "", text).strip().lower()
    return re.sub(r"[-\s]+", "-", text)


class FileFormat(ABC):
    """
    Abstract base for content formats.

    Subclasses must define:
        name:        str    — format name stored on parsed pages ("markdown")
        extensions:  tuple  — file extensions, in lookup order (".md", ...)
        readme()     → {"title", "description"}
        langs()      → [{"lang", "path", "title"}, ...]
        summary()    → {"chapters": [{"path", "title", "level", "articles"}, ...]}
        glossary()   → [{"id", "name", "description"}, ...]
        page()       → {"sections": [{"type", "content"}, ...]}
    """

    name = None        # Override in subclass
    extensions = ()    # Override in subclass

    @abstractmethod
    def readme(self, content):
        ...

    @abstractmethod
    def langs(self, content):
        ...

    @abstractmethod
    def summary(self, content, readme_path=None):
        ...

    @abstractmethod
    def glossary(self, content):
        ...

    @abstractmethod
    def page(self, content):
        ...

    def __repr__(self):
        return f"<{type(self).__name__} {self.name}>"

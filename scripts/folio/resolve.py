"""
Structural file resolution and artifact lookup.

Every part of the pipeline that needs to find a book's README, SUMMARY,
GLOSSARY or LANGS file, or a generator template, imports from here.
"""

import os
import re
from collections import namedtuple

from loguru import logger


# A structural file that exists, bound to the format that can parse it
Resolved = namedtuple("Resolved", ["parser", "path"])

# Bundled generator templates and assets
TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

# Per-book template overrides, relative to the book root
LAYOUTS_DIR = "_layouts"


def natural_sort_key(s):
    """Sort strings with embedded numbers naturally (2.md before 10.md)."""
    return [
        int(text) if text.isdigit() else text.lower()
        for text in re.split(r"(\d+)", s)
    ]


async def find_file(book, basename):
    """
    Find the first existing "<basename><ext>" in the book root.

    Extensions are tried in the order of the book's parser registry and
    the search stops at the first hit.

    Returns: Resolved(parser, path) or None.
    """
    for ext in book.parsers.extensions:
        filepath = basename + ext
        if await book.file_exists(filepath):
            logger.debug(f"Resolved {basename} → {filepath}")
            return Resolved(book.parsers.get(ext), filepath)
    return None


def template_dirs(book_root):
    """Template search path: per-book _layouts/ first, then bundled templates."""
    dirs = []
    layouts = os.path.join(book_root, LAYOUTS_DIR)
    if os.path.isdir(layouts):
        dirs.append(layouts)
    dirs.append(TEMPLATES_DIR)
    return dirs


def resolve_artifact(book_root, filename):
    """
    Resolve an artifact filename to its full path.

    Search order (first match wins):
        1. book _layouts/      (per-book overrides, e.g. style.css, cover.jpg)
        2. bundled templates/  (shared defaults)

    Returns: absolute path or None.
    """
    if not filename:
        return None

    for directory in template_dirs(book_root):
        path = os.path.join(directory, filename)
        if os.path.exists(path):
            return os.path.abspath(path)

    # Fall back to a path relative to the book itself (cover.jpg next to README)
    path = os.path.join(book_root, filename)
    if os.path.exists(path):
        return os.path.abspath(path)

    return None

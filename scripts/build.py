#!/usr/bin/env python3
"""
Build script for folio books.

Runs the folio CLI straight from a checkout, without installing it.

Usage:
    python build.py docs                    Build the website into docs/_book
    python build.py build docs --format json
    python build.py parse docs              Show the parsed structure
    python build.py search docs "install"   Query the search index

Requires: PyYAML, Jinja2, Markdown, beautifulsoup4, lunr, aiofiles, loguru
Optional: pandoc (ebook generator), xelatex (PDF ebooks)
"""

import os
import sys

# Ensure folio is importable from the scripts/ directory
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from folio.cli import run


if __name__ == "__main__":
    run()

"""Pytest configuration for folio tests."""

import pytest

from folio import fs
from folio.book import Book
from folio.generators import GENERATORS
from folio.generators.base import BaseGenerator


README = """# My Book

An example book about dragons.
"""

SUMMARY = """# Summary

* [Introduction](README.md)
* [Chapter 1](chapter1.md)
"""

CHAPTER1 = """# Chapter 1

Dragons live in the mountains. Every dragon guards a mountain.
See the [introduction](README.md).

![A dragon](image.png)
"""

GLOSSARY = """# Glossary

## Dragon

A large winged reptile.

## Mountain

A tall landform.
"""

PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR"


def write_files(root, files):
    """Write a {relative path: str | bytes} mapping under root."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


@pytest.fixture
def simple_files():
    """README + SUMMARY + one chapter + one image, no langs or glossary."""
    return {
        "README.md": README,
        "SUMMARY.md": SUMMARY,
        "chapter1.md": CHAPTER1,
        "image.png": PNG_BYTES,
    }


@pytest.fixture
def make_book(tmp_path):
    """Factory: write files into tmp_path/<name> and return an unparsed Book."""

    def _make(files, options=None, name="book"):
        root = tmp_path / name
        root.mkdir()
        write_files(root, files)
        book_options = {"output": str(tmp_path / f"{name}_out")}
        book_options.update(options or {})
        return Book(root, book_options)

    return _make


@pytest.fixture
def multilingual_files(simple_files):
    files = {"LANGS.md": "# Languages\n\n* [English](en/)\n* [Français](fr/)\n"}
    for lang in ("en", "fr"):
        for rel, content in simple_files.items():
            files[f"{lang}/{rel}"] = content
    return files


class RecordingGenerator(BaseGenerator):
    """Writes parsed pages as <path>.html and records every lifecycle call."""

    format_name = "Recording"
    events = None

    async def write_parsed_file(self, page, path):
        self.events.append(("page", self.book.root, path))
        await fs.write_file(self.output_path(path + ".html"), page["sections"][0]["content"])

    async def transfer_file(self, path):
        self.events.append(("file", self.book.root, path))
        await super().transfer_file(path)

    async def langs_index(self, langs):
        self.events.append(("langs_index", self.book.root, [lang["lang"] for lang in langs]))

    async def finish(self):
        self.events.append(("finish", self.book.root))
        await super().finish()


@pytest.fixture
def recording_events(monkeypatch):
    """Register the "recording" generator; returns its event list."""
    events = []
    generator_cls = type("TestRecordingGenerator", (RecordingGenerator,), {"events": events})
    monkeypatch.setitem(GENERATORS, "recording", generator_cls)
    return events

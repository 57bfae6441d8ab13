"""
Base generator class for all output formats.

Subclasses implement `write_parsed_file()` and set `format_name`.
Shared logic (output paths, asset transfer, hooks, console banner)
lives here. Every operation is a coroutine; the driver awaits them in
order: prepare → per-file writes → finish.
"""

import os
from abc import ABC, abstractmethod

from loguru import logger

from folio import fs
from folio.errors import GeneratorError
from folio.resolve import resolve_artifact


class BaseGenerator(ABC):
    """
    Abstract base for output generators.

    Subclasses must define:
        format_name:          str    — human-readable name ("Website", "JSON")
        write_parsed_file():  method — emit one processed page
    """

    format_name = None  # Override in subclass

    def __init__(self, book):
        self.book = book
        self.output_dir = book.config.output

    @property
    def config(self):
        return self.book.config

    # ── Output path ────────────────────────────────────────

    def output_path(self, path):
        """Absolute output path for a book-relative path, kept inside output_dir."""
        target = os.path.abspath(os.path.join(self.output_dir, path))
        if os.path.commonpath([target, self.output_dir]) != self.output_dir:
            raise GeneratorError(f"Refusing to write outside the output folder: {path}")
        return target

    def source_path(self, path):
        return os.path.join(self.book.root, path)

    # ── Logging ────────────────────────────────────────────

    def log(self, msg):
        logger.debug(msg)

    def header(self):
        print(f"\n{'─' * 60}")
        print(f"  Building {self.format_name}: {self.config.title or self.book.root}")
        print(f"{'─' * 60}")

    # ── Artifact resolution (delegates to shared module) ───

    def resolve(self, filename):
        """Resolve an artifact filename for this book."""
        return resolve_artifact(self.book.root, filename)

    # ── Lifecycle ──────────────────────────────────────────

    async def prepare(self):
        self.header()
        await fs.mkdirp(self.output_dir)
        await self.call_hook("init")

    @abstractmethod
    async def write_parsed_file(self, page, path):
        """Emit a processed page (see Book.parse_page) read from `path`."""
        ...

    async def transfer_file(self, path):
        self.log(f"  Copy: {path}")
        await fs.copy_file(self.source_path(path), self.output_path(path))

    async def transfer_folder(self, path):
        await fs.mkdirp(self.output_path(path))

    async def langs_index(self, langs):
        pass

    async def call_hook(self, name):
        await self.book.call_hook(name)

    async def finish(self):
        print(f"  ✓ {self.output_dir}")

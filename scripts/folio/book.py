"""
Book model and build pipeline.

A Book is a directory of structured text files. parse() runs the staged
pipeline once and leaves the book in one of two modes:

    leaf mode   files, readme, summary, navigation and glossary parsed
                directly from the book root
    hub mode    one child Book per entry of the LANGS file, each parsed
                by its own pipeline; the hub itself holds no content

generate() then drives an output generator over the parsed tree.
"""

import asyncio
import os
import posixpath

from loguru import logger

from folio import fs
from folio.config import BookConfig
from folio.errors import BookError
from folio.generators import get_generator
from folio.navigation import parse_navigation
from folio.page import extract_text, normalize
from folio.parsers import PARSERS
from folio.plugins import load_plugins
from folio.progress import parse_progress
from folio.resolve import find_file
from folio.search import SearchIndex
from folio.template import TemplateEngine


class Book:
    """
    A book rooted at a directory.

    Usage:
        book = Book("docs", {"output": "site"})
        await book.parse()
        await book.generate("site")
        book.search_index.search("install")
    """

    def __init__(self, root, options=None, parent=None, parsers=None, base_config=None):
        # Root folder of the book
        self.root = os.path.abspath(root)

        # Parent book (language hub), only used to find the outermost root
        self.parent = parent

        # Configuration snapshot, replaced by the loaded one in parse()
        self.options = dict(options or {})
        self.base_config = base_config
        self.config = BookConfig.defaults(self.root, self.options, base_config)

        self.parsers = parsers or PARSERS
        self.template = TemplateEngine(self)

        self.summary = {}
        self.navigation = {}
        self.glossary = []
        self.langs = []
        self.books = []
        self.files = []
        self.plugins = []

        # Replaced by the resolved README path
        self.readme_file = "README.md"

        self.search_index = SearchIndex()

    def __repr__(self):
        mode = "hub" if self.is_multilingual() else "leaf"
        return f"<Book {self.root} ({mode})>"

    # ── Pipeline ───────────────────────────────────────────

    async def parse(self):
        """Run the full parsing pipeline. Returns the book."""
        logger.info(f"Parsing book {self.root}")

        await self.load_config()
        await self.parse_plugins()
        await self.parse_langs()

        # Mode is decided here, once
        self.books = [self._sub_book(lang) for lang in self.langs]

        if self.is_multilingual():
            await self._parse_hub()
        else:
            await self._parse_leaf()
        return self

    async def _parse_leaf(self):
        await self.list_all_files()
        await self.parse_readme()
        await self.parse_summary()
        await self.parse_glossary()
        logger.debug(f"{self.root}: {len(self.files)} files, {len(self.navigation)} pages")

    async def _parse_hub(self):
        logger.debug(f"{self.root}: multilingual ({', '.join(l['lang'] for l in self.langs)})")
        for book in self.books:
            await book.parse()

    def _sub_book(self, lang):
        """Child book for a language entry, inheriting this book's configuration."""
        return Book(
            os.path.join(self.root, lang["path"]),
            {
                "output": os.path.join(self.config.output, lang["path"]),
                "lang": lang["lang"],
            },
            parent=self,
            parsers=self.parsers,
            base_config=self.config,
        )

    # ── Stages ─────────────────────────────────────────────

    async def load_config(self):
        if not await fs.isdir(self.root):
            raise BookError(f"Book root {self.root} is not a readable directory")
        self.config = await BookConfig.load(self.root, self.options, self.base_config)

    async def parse_plugins(self):
        self.plugins = load_plugins(self, self.config.plugins)

    async def parse_langs(self):
        langs = await self.find_file(self.config.structure("langs"))
        if not langs:
            self.langs = []
            return

        content = await self.template.render_file(langs.path)
        self.langs = langs.parser.langs(content)

    async def list_all_files(self):
        ignore = []
        output = os.path.relpath(self.config.output, self.root)
        if not output.startswith(os.pardir):
            ignore.append(output.replace(os.sep, "/"))
        self.files = await fs.list_files(self.root, ignore)

    async def parse_readme(self):
        readme = await self.find_file(self.config.structure("readme"))
        if not readme:
            raise BookError(f"No README file in {self.root}")

        self.readme_file = readme.path
        content = await self.template.render_file(readme.path)
        info = readme.parser.readme(content)

        # Explicit configuration wins over README-derived values
        self.config = self.config.with_defaults(
            title=info.get("title"),
            description=info.get("description"),
        )

    async def parse_summary(self):
        summary = await self.find_file(self.config.structure("summary"))
        if not summary:
            raise BookError(f"No SUMMARY file in {self.root}")

        # The summary is structure, not content
        self.files = [f for f in self.files if f != summary.path]

        content = await self.template.render_file(summary.path)
        self.summary = summary.parser.summary(content, self.readme_file)
        self.navigation = parse_navigation(self.summary, self.files)

    async def parse_glossary(self):
        glossary = await self.find_file(self.config.structure("glossary"))
        if not glossary:
            self.glossary = []
            return

        # A summary may link the glossary; navigation only covers content files
        self.files = [f for f in self.files if f != glossary.path]
        if glossary.path in self.navigation:
            self.navigation = parse_navigation(self.summary, self.files)

        content = await self.template.render_file(glossary.path)
        self.glossary = glossary.parser.glossary(content)

    # ── Generation ─────────────────────────────────────────

    async def generate(self, generator=None):
        """Clean the output folder and run a generator over the book. Returns the book."""
        name = generator or self.config.generator
        if name != self.config.generator:
            self.config = self.config.with_overrides(generator=name)
        output = self.config.output

        if os.path.commonpath([output, self.root]) == output:
            raise BookError(f"Output folder {output} contains the book itself")

        await fs.remove(output)
        await fs.mkdirp(output)

        # Rebuilt from scratch on every pass
        self.search_index = SearchIndex()

        generator = get_generator(name)(self)
        await generator.prepare()

        if self.is_multilingual():
            await self._generate_hub(generator, name)
        else:
            await self._generate_leaf(generator)

        await generator.call_hook("finish:before")
        await generator.finish()
        await generator.call_hook("finish")
        return self

    async def _generate_hub(self, generator, name):
        for book in self.books:
            await book.generate(name)
        await generator.langs_index(self.langs)

    async def _generate_leaf(self, generator):
        semaphore = asyncio.Semaphore(self.config.concurrency)

        async def process(filename):
            async with semaphore:
                await self._generate_file(generator, filename)

        tasks = [asyncio.ensure_future(process(f)) for f in self.files if f]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _generate_file(self, generator, filename):
        if filename.endswith("/"):
            await generator.transfer_folder(filename)
        elif self.is_content_file(filename):
            page = await self.parse_page(filename)
            await generator.write_parsed_file(page, filename)
        else:
            await generator.transfer_file(filename)

    def is_content_file(self, filename):
        """True for parseable files that are part of the table of contents."""
        extension = posixpath.splitext(filename)[1]
        return extension in self.parsers and filename in self.navigation

    # ── Pages ──────────────────────────────────────────────

    async def extract_page(self, filename):
        """Render, parse and normalize one content file. Leaves the search index alone."""
        extension = posixpath.splitext(filename)[1]
        file_format = self.parsers.get(extension)
        if file_format is None:
            raise BookError(f"Can't parse file: {filename}")

        content = await self.template.render_file(filename)
        page = file_format.page(content)

        directory = posixpath.dirname(filename) or "."
        page["type"] = file_format.name
        page["path"] = filename
        page["rawPath"] = os.path.join(self.root, filename)
        page["progress"] = parse_progress(self.navigation, filename)
        page["sections"] = normalize(
            page["sections"],
            input=filename,
            navigation=self.navigation,
            base=directory,
            output=directory,
            glossary=self.glossary,
            glossary_file=self.config.structure("glossary") + ".html",
        )
        return page

    async def parse_page(self, filename):
        """extract_page() plus search indexing."""
        page = await self.extract_page(filename)
        self.index_page(page)
        return page

    def index_page(self, page):
        """Add a page to the search index. Pages outside the navigation are skipped."""
        nav = self.navigation.get(page["path"])
        if not nav:
            return False

        self.search_index.add({
            "url": page["path"],
            "title": nav["title"],
            "body": extract_text(page["sections"]),
        })
        return True

    async def build_search_index(self):
        """Index every navigated page without generating any output."""
        self.search_index = SearchIndex()
        for filename in self.navigation:
            if self.is_content_file(filename):
                await self.parse_page(filename)
        return self.search_index

    # ── Files ──────────────────────────────────────────────

    async def find_file(self, basename):
        return await find_file(self, basename)

    async def file_exists(self, filename):
        return await fs.exists(os.path.join(self.root, filename))

    async def read_file(self, filename):
        try:
            return await fs.read_file(os.path.join(self.root, filename))
        except (OSError, UnicodeDecodeError) as e:
            raise BookError(f"Can't read {filename}: {e}") from e

    async def stat_file(self, filename):
        return await fs.stat(os.path.join(self.root, filename))

    # ── Tree ───────────────────────────────────────────────

    def is_multilingual(self):
        return len(self.books) > 0

    def parent_root(self):
        """Root folder of the outermost book."""
        if self.parent:
            return self.parent.parent_root()
        return self.root

    def leaf_books(self):
        """This book if it holds content, else every content book below it."""
        if not self.is_multilingual():
            return [self]
        return [leaf for book in self.books for leaf in book.leaf_books()]

    async def call_hook(self, name):
        for plugin in self.plugins:
            await plugin.call_hook(name)

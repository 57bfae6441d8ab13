"""
Static website generator.

Pipeline: Jinja2 page template per navigated page → verbatim asset
copies → glossary page + search_index.json at finish. Multilingual
books get a language chooser as their index.html.
"""

import json
import posixpath

from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from folio import fs
from folio.generators.base import BaseGenerator
from folio.page import page_output_path
from folio.resolve import template_dirs


STYLESHEET = "style.css"
ASSETS_DIR = "_assets"
SEARCH_INDEX_FILE = "search_index.json"


class SiteGenerator(BaseGenerator):
    format_name = "Website"

    def __init__(self, book):
        super().__init__(book)
        self.env = Environment(
            loader=FileSystemLoader(template_dirs(book.root)),
            autoescape=select_autoescape(["html"]),
        )

    async def prepare(self):
        await super().prepare()

        stylesheet = self.resolve(STYLESHEET)
        if stylesheet:
            await fs.copy_file(stylesheet, self.output_path(posixpath.join(ASSETS_DIR, STYLESHEET)))
        else:
            print("  Warning: No stylesheet found")

    # ── Rendering ──────────────────────────────────────────

    def _link_helper(self, current_output):
        directory = posixpath.dirname(current_output) or "."

        def link(path):
            """Relative URL from the current page to a book path or output file."""
            if path in self.book.navigation:
                path = page_output_path(path)
            return posixpath.relpath(path, directory)

        return link

    def render(self, template_name, output, **context):
        link = self._link_helper(output)
        return self.env.get_template(template_name).render(
            book=self.config.as_dict(),
            summary=self.book.summary,
            navigation=self.book.navigation,
            glossary=self.book.glossary,
            link=link,
            stylesheet=link(posixpath.join(ASSETS_DIR, STYLESHEET)),
            **context,
        )

    # ── Generator interface ────────────────────────────────

    async def write_parsed_file(self, page, path):
        output = page_output_path(path)
        html = self.render("page.html", output, page=page, progress=page["progress"])
        self.log(f"  Page: {path} → {output}")
        await fs.write_file(self.output_path(output), html)

    async def transfer_file(self, path):
        # Rendered pages own their output path ("intro.md" → "intro.html")
        pages = {page_output_path(p) for p in self.book.navigation}
        if path in pages:
            logger.warning(f"Skipping {path}: a page is rendered to the same output file")
            return
        await super().transfer_file(path)

    async def langs_index(self, langs):
        html = self.render("langs.html", "index.html", langs=langs)
        await fs.write_file(self.output_path("index.html"), html)

    async def finish(self):
        if self.book.glossary:
            output = self.config.structure("glossary") + ".html"
            html = self.render("glossary.html", output)
            await fs.write_file(self.output_path(output), html)

        if not self.book.is_multilingual():
            await fs.write_file(
                self.output_path(SEARCH_INDEX_FILE),
                json.dumps(self.book.search_index.serialize()),
            )

        await super().finish()

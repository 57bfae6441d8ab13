"""
Template engine for book content.

Every structural and content file is rendered through Jinja2 before it
is parsed, so `{{ book.title }}` or configured variables can be used
anywhere, and other book files can be pulled in with `{% include %}`.
"""

from jinja2 import Environment, FileSystemLoader, TemplateError

from folio.errors import BookError


class TemplateEngine:
    """
    Renders book files with the book's variables.

    Usage:
        engine = TemplateEngine(book)
        content = await engine.render_file("SUMMARY.md")
    """

    def __init__(self, book):
        self.book = book
        self.env = Environment(
            loader=FileSystemLoader(book.root),
            keep_trailing_newline=True,
        )

    def context(self, filename=None):
        config = self.book.config
        book_vars = dict(config.variables)
        book_vars.update({
            "title": config.title,
            "description": config.description,
            "author": config.author,
            "lang": config.lang,
        })
        return {"book": book_vars, "file": {"path": filename}}

    def render_string(self, content, filename=None):
        try:
            return self.env.from_string(content).render(self.context(filename))
        except TemplateError as e:
            raise BookError(f"Template error in {filename or '<string>'}: {e}") from e

    async def render_file(self, filename):
        content = await self.book.read_file(filename)
        return self.render_string(content, filename)

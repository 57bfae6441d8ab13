"""
Markdown format.

Content is converted to HTML with Python-Markdown, then the structure
(headings, link lists) is read back with BeautifulSoup.
"""

import posixpath
import re

import markdown
from bs4 import BeautifulSoup

from folio.parsers.base import FileFormat, slugify


MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]

EXTERNAL_LINK = re.compile(r"^([a-z][a-z0-9+.-]*:|//)", re.IGNORECASE)


def to_html(content):
    return markdown.markdown(content, extensions=MARKDOWN_EXTENSIONS)


def _soup(content):
    return BeautifulSoup(to_html(content), "html.parser")


def _link_path(href):
    """Book-relative path of a link target, or None for external/anchor links."""
    href = (href or "").strip()
    if not href or href.startswith("#") or EXTERNAL_LINK.match(href):
        return None
    path = href.split("#", 1)[0].split("?", 1)[0]
    if not path:
        return None
    return posixpath.normpath(path)


class MarkdownFormat(FileFormat):
    name = "markdown"
    extensions = (".md", ".markdown", ".mdown")

    def readme(self, content):
        soup = _soup(content)
        heading = soup.find(["h1", "h2"])
        paragraph = soup.find("p")
        return {
            "title": heading.get_text(" ", strip=True) if heading else "",
            "description": paragraph.get_text(" ", strip=True) if paragraph else "",
        }

    def langs(self, content):
        soup = _soup(content)
        entries = []
        list_tag = soup.find(["ul", "ol"])
        if list_tag is None:
            return entries

        for item in list_tag.find_all("li", recursive=False):
            link = item.find("a")
            if link is None or not link.get("href"):
                continue
            path = link["href"].strip()
            entries.append({
                "lang": path.strip("/").split("/")[-1],
                "path": path,
                "title": link.get_text(" ", strip=True),
            })
        return entries

    def summary(self, content, readme_path=None):
        soup = _soup(content)
        list_tag = soup.find(["ul", "ol"])
        chapters = self._entries(list_tag) if list_tag is not None else []

        if readme_path:
            chapters = self._with_introduction(chapters, readme_path)
        return {"chapters": chapters}

    def glossary(self, content):
        soup = _soup(content)
        terms = []
        for heading in soup.find_all("h2"):
            parts = []
            for sibling in heading.find_next_siblings():
                if sibling.name == "h2":
                    break
                parts.append(sibling.get_text(" ", strip=True))
            name = heading.get_text(" ", strip=True)
            terms.append({
                "id": slugify(name),
                "name": name,
                "description": " ".join(part for part in parts if part),
            })
        return terms

    def page(self, content):
        return {"sections": [{"type": "normal", "content": to_html(content)}]}

    # ── Summary helpers ────────────────────────────────────

    def _entries(self, list_tag, prefix=""):
        entries = []
        for index, item in enumerate(list_tag.find_all("li", recursive=False), 1):
            level = f"{prefix}.{index}" if prefix else str(index)

            nested = item.find(["ul", "ol"], recursive=False)
            if nested is not None:
                nested.extract()

            link = item.find("a")
            if link is not None:
                title = link.get_text(" ", strip=True)
                path = _link_path(link.get("href"))
            else:
                title = item.get_text(" ", strip=True)
                path = None

            entries.append({
                "path": path,
                "title": title,
                "level": level,
                "articles": self._entries(nested, level) if nested is not None else [],
            })
        return entries

    def _with_introduction(self, chapters, readme_path):
        """Put the README first as level "0", renumbering the other chapters."""
        introduction = {"path": readme_path, "title": "Introduction", "level": "0", "articles": []}
        rest = chapters
        if chapters and chapters[0]["path"] == readme_path:
            introduction["title"] = chapters[0]["title"] or introduction["title"]
            introduction["articles"] = chapters[0]["articles"]
            rest = chapters[1:]

        for index, chapter in enumerate(rest, 1):
            _renumber(chapter, str(index))
        for index, article in enumerate(introduction["articles"], 1):
            _renumber(article, f"0.{index}")
        return [introduction] + rest


def _renumber(entry, level):
    entry["level"] = level
    for index, article in enumerate(entry["articles"], 1):
        _renumber(article, f"{level}.{index}")

"""
Page section normalization.

Sections come out of a format parser as raw HTML. normalize() makes
them ready for a generator: links to other navigated pages point at the
generated output, image paths are made relative to the output folder,
headings get anchor ids and glossary terms are linked to their
definition. The input sections are never modified.
"""

import posixpath
import re

from bs4 import BeautifulSoup, Comment

from folio.parsers.base import slugify


EXTERNAL_LINK = re.compile(r"^([a-z][a-z0-9+.-]*:|//)", re.IGNORECASE)

# Glossary terms are not linked inside these
NO_GLOSSARY_TAGS = ["a", "code", "pre", "script", "style", "h1", "h2", "h3", "h4", "h5", "h6"]

README_NAME = "README"


def page_output_path(path, extension=".html"):
    """
    Output path of a navigated page.

    README files become the index of their folder, everything else keeps
    its name with the extension swapped: "README.md" → "index.html",
    "part1/intro.md" → "part1/intro.html".
    """
    directory, name = posixpath.split(path)
    stem = posixpath.splitext(name)[0]
    if stem.upper() == README_NAME:
        stem = "index"
    return posixpath.join(directory, stem + extension)


def _is_local(url):
    return bool(url) and not url.startswith("#") and not EXTERNAL_LINK.match(url)


def _relative(target, output):
    return posixpath.relpath(target, output or ".")


def _split_fragment(url):
    path, sep, fragment = url.partition("#")
    return path, (sep + fragment)


def _rewrite_links(soup, navigation, base, output, rename):
    for link in soup.find_all("a", href=True):
        href = link["href"].strip()
        if not _is_local(href):
            continue
        path, fragment = _split_fragment(href)
        target = posixpath.normpath(posixpath.join(base, path))
        if target in navigation:
            link["href"] = _relative(rename(target), output) + fragment


def _rewrite_images(soup, base, output):
    for image in soup.find_all("img", src=True):
        src = image["src"].strip()
        if not _is_local(src) or src.startswith("/"):
            continue
        image["src"] = _relative(posixpath.normpath(posixpath.join(base, src)), output)


def _add_heading_ids(soup):
    for heading in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
        if not heading.get("id"):
            heading["id"] = slugify(heading.get_text(" ", strip=True))


def _annotate_glossary(soup, glossary, href):
    for term in glossary:
        name = term.get("name")
        if not name:
            continue
        pattern = re.compile(r"(?<!\w)(%s)(?!\w)" % re.escape(name), re.IGNORECASE)

        for node in list(soup.find_all(string=pattern)):
            if isinstance(node, Comment) or node.find_parent(NO_GLOSSARY_TAGS):
                continue

            text = str(node)
            pieces = []
            last = 0
            for match in pattern.finditer(text):
                if match.start() > last:
                    pieces.append(text[last:match.start()])
                anchor = soup.new_tag("a", href=f"{href}#{term['id']}")
                anchor["class"] = "glossary-term"
                anchor["title"] = term.get("description", "")
                anchor.string = match.group(1)
                pieces.append(anchor)
                last = match.end()
            if last < len(text):
                pieces.append(text[last:])
            node.replace_with(*pieces)


def normalize(sections, input=None, navigation=None, base=".", output=".",
              glossary=None, glossary_file="GLOSSARY.html", rename=page_output_path):
    """
    Return normalized copies of `sections`.

    Args:
        sections:       raw sections from a format's page()
        input:          book-relative path of the page being normalized
        navigation:     navigation mapping of the book
        base:           folder relative links are resolved against
        output:         folder the page is written to
        glossary:       glossary terms to link
        glossary_file:  output path of the glossary page
        rename:         book path → output path of a navigated page
    """
    navigation = navigation or {}
    glossary = glossary or []
    base = base or "."
    output = output or "."
    glossary_href = _relative(glossary_file, output)

    normalized = []
    for section in sections or []:
        section = dict(section)
        if section.get("type") == "normal":
            soup = BeautifulSoup(section.get("content", ""), "html.parser")
            _rewrite_links(soup, navigation, base, output, rename)
            _rewrite_images(soup, base, output)
            _add_heading_ids(soup)
            _annotate_glossary(soup, glossary, glossary_href)
            section["content"] = str(soup)
        normalized.append(section)
    return normalized


def extract_text(sections):
    """Plain text of all normal sections, whitespace collapsed."""
    parts = []
    for section in sections or []:
        if section.get("type") != "normal":
            continue
        soup = BeautifulSoup(section.get("content", ""), "html.parser")
        parts.append(soup.get_text(" "))
    return re.sub(r"\s+", " ", " ".join(parts)).strip()

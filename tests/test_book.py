"""Tests for the Book pipeline: parsing, modes, generation and indexing."""

import asyncio
import os

import pytest

from conftest import GLOSSARY, PNG_BYTES
from folio.book import Book
from folio.errors import BookError, GeneratorError, PluginError
from folio.generators import GENERATORS


def parse(book):
    return asyncio.run(book.parse())


def output_files(root):
    found = set()
    for directory, _, names in os.walk(root):
        for name in names:
            found.add(os.path.relpath(os.path.join(directory, name), root).replace(os.sep, "/"))
    return found


class TestLeafParse:
    def test_files_summary_navigation(self, make_book, simple_files):
        book = parse(make_book(simple_files))

        assert not book.is_multilingual()
        assert book.books == []
        assert set(book.files) == {"README.md", "chapter1.md", "image.png"}
        assert list(book.navigation) == ["README.md", "chapter1.md"]
        assert set(book.navigation) <= set(book.files)
        assert book.readme_file == "README.md"
        assert book.glossary == []

    def test_readme_fills_unset_config(self, make_book, simple_files):
        book = parse(make_book(simple_files))
        assert book.config.title == "My Book"
        assert book.config.description == "An example book about dragons."

    def test_explicit_config_wins_over_readme(self, make_book, simple_files):
        book = parse(make_book(simple_files, {"title": "Explicit"}))
        assert book.config.title == "Explicit"
        assert book.config.description == "An example book about dragons."

    def test_glossary_is_structural(self, make_book, simple_files):
        simple_files["GLOSSARY.md"] = GLOSSARY
        book = parse(make_book(simple_files))
        assert "GLOSSARY.md" not in book.files
        assert "SUMMARY.md" not in book.files
        assert [term["id"] for term in book.glossary] == ["dragon", "mountain"]

    def test_summary_linking_glossary(self, make_book, simple_files):
        simple_files["GLOSSARY.md"] = GLOSSARY
        simple_files["SUMMARY.md"] += "* [Glossary](GLOSSARY.md)\n"
        book = parse(make_book(simple_files))

        assert "GLOSSARY.md" not in book.files
        assert set(book.navigation) <= set(book.files)
        assert list(book.navigation) == ["README.md", "chapter1.md"]
        assert book.navigation["chapter1.md"]["next"] is None

    def test_book_folder_is_content_when_output_elsewhere(self, make_book, simple_files):
        simple_files["_book/extra.png"] = PNG_BYTES
        book = parse(make_book(simple_files))
        assert "_book/extra.png" in book.files

    def test_files_outside_summary_stay_listed(self, make_book, simple_files):
        simple_files["notes/draft.md"] = "# Draft\n"
        book = parse(make_book(simple_files))
        assert "notes/" in book.files
        assert "notes/draft.md" in book.files
        assert "notes/draft.md" not in book.navigation

    def test_output_inside_root_is_not_listed(self, make_book, simple_files, tmp_path):
        book = make_book(simple_files, {"output": str(tmp_path / "book" / "_site")})
        (tmp_path / "book" / "_site").mkdir()
        (tmp_path / "book" / "_site" / "old.html").write_text("old")
        parse(book)
        assert not any(f.startswith("_site") for f in book.files)

    def test_bookignore(self, make_book, simple_files):
        simple_files[".bookignore"] = "drafts\n*.tmp\n"
        simple_files["drafts/one.md"] = "# One\n"
        simple_files["scratch.tmp"] = "x"
        book = parse(make_book(simple_files))
        assert set(book.files) == {"README.md", "chapter1.md", "image.png"}

    def test_structure_override(self, make_book, simple_files):
        simple_files["TOC.md"] = simple_files.pop("SUMMARY.md")
        simple_files["book.yaml"] = "structure:\n  summary: TOC\n"
        book = parse(make_book(simple_files))
        assert list(book.navigation) == ["README.md", "chapter1.md"]
        assert "TOC.md" not in book.files

    def test_template_variables(self, make_book, simple_files):
        simple_files["book.yaml"] = "variables:\n  version: '1.2'\n"
        simple_files["chapter1.md"] = "# Chapter 1\n\nVersion {{ book.version }} of {{ book.title }}.\n"
        book = parse(make_book(simple_files))
        page = asyncio.run(book.extract_page("chapter1.md"))
        assert "Version 1.2 of My Book." in page["sections"][0]["content"]


class TestParseFailures:
    def test_missing_summary(self, make_book, simple_files):
        del simple_files["SUMMARY.md"]
        with pytest.raises(BookError, match="SUMMARY"):
            parse(make_book(simple_files))

    def test_missing_readme(self, make_book, simple_files):
        del simple_files["README.md"]
        with pytest.raises(BookError, match="README"):
            parse(make_book(simple_files))

    def test_missing_root(self, tmp_path):
        with pytest.raises(BookError):
            parse(Book(tmp_path / "nowhere"))

    def test_invalid_plugins_are_aggregated(self, make_book, simple_files):
        book = make_book(simple_files, {"plugins": ["missing-one", "missing-two"]})
        with pytest.raises(PluginError) as excinfo:
            parse(book)
        assert "missing-one" in str(excinfo.value)
        assert "missing-two" in str(excinfo.value)

    def test_template_error(self, make_book, simple_files):
        simple_files["SUMMARY.md"] = "* [Broken]({{ unclosed )\n"
        with pytest.raises(BookError, match="Template error"):
            parse(make_book(simple_files))


class TestHubParse:
    def test_children_per_language(self, make_book, multilingual_files, tmp_path):
        book = parse(make_book(multilingual_files))

        assert book.is_multilingual()
        assert [child.root for child in book.books] == [
            str(tmp_path / "book" / "en"),
            str(tmp_path / "book" / "fr"),
        ]
        assert book.files == []
        assert book.summary == {}
        assert book.navigation == {}
        assert book.glossary == []

    def test_children_inherit_config(self, make_book, multilingual_files, tmp_path):
        multilingual_files["book.yaml"] = "author: Someone\n"
        book = parse(make_book(multilingual_files))
        en, fr = book.books

        assert en.config.lang == "en"
        assert fr.config.lang == "fr"
        assert en.config.author == "Someone"
        assert en.config.output == str(tmp_path / "book_out" / "en")
        assert fr.parent is book
        assert fr.parent_root() == book.root

    def test_children_are_parsed(self, make_book, multilingual_files):
        book = parse(make_book(multilingual_files))
        for child in book.books:
            assert not child.is_multilingual()
            assert list(child.navigation) == ["README.md", "chapter1.md"]
        assert book.leaf_books() == book.books


class TestGenerate:
    def test_end_to_end(self, make_book, simple_files, recording_events, tmp_path):
        book = parse(make_book(simple_files))
        asyncio.run(book.generate("recording"))

        out = tmp_path / "book_out"
        assert output_files(out) == {"README.md.html", "chapter1.md.html", "image.png"}
        assert (out / "image.png").read_bytes() == PNG_BYTES

        assert sorted(book.search_index.refs) == ["README.md", "chapter1.md"]
        assert "image.png" not in book.search_index

    def test_lifecycle_order(self, make_book, simple_files, recording_events):
        book = parse(make_book(simple_files))
        asyncio.run(book.generate("recording"))

        kinds = [event[0] for event in recording_events]
        assert kinds[-1] == "finish"
        assert kinds.count("finish") == 1
        assert sorted(e[2] for e in recording_events if e[0] == "page") == ["README.md", "chapter1.md"]
        assert [e[2] for e in recording_events if e[0] == "file"] == ["image.png"]

    def test_clean_slate(self, make_book, simple_files, recording_events, tmp_path):
        book = parse(make_book(simple_files))
        out = tmp_path / "book_out"
        out.mkdir()
        (out / "stale.html").write_text("left over")

        asyncio.run(book.generate("recording"))
        first = output_files(out)
        asyncio.run(book.generate("recording"))

        assert "stale.html" not in first
        assert output_files(out) == first

    def test_reindex_on_each_pass(self, make_book, simple_files, recording_events):
        book = parse(make_book(simple_files))
        asyncio.run(book.generate("recording"))
        asyncio.run(book.generate("recording"))
        assert len(book.search_index) == 2

    def test_unknown_generator(self, make_book, simple_files):
        book = parse(make_book(simple_files))
        with pytest.raises(GeneratorError, match="nope"):
            asyncio.run(book.generate("nope"))

    def test_default_generator_from_config(self, make_book, simple_files, recording_events):
        book = parse(make_book(simple_files, {"generator": "recording"}))
        asyncio.run(book.generate())
        assert recording_events

    def test_failure_cancels_pending_files(self, make_book, simple_files, recording_events, monkeypatch):
        generator_cls = GENERATORS["recording"]

        async def slow_transfer(self, path):
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                self.events.append(("cancelled", self.book.root, path))
                raise

        async def failing_write(self, page, path):
            raise GeneratorError(f"cannot write {path}")

        monkeypatch.setattr(generator_cls, "transfer_file", slow_transfer)
        monkeypatch.setattr(generator_cls, "write_parsed_file", failing_write)
        book = parse(make_book(simple_files))

        async def run():
            with pytest.raises(GeneratorError):
                await book.generate("recording")
            # Settled before generate() returns control
            return [e for e in recording_events if e[0] == "cancelled"]

        cancelled = asyncio.run(run())
        assert [e[2] for e in cancelled] == ["image.png"]

    def test_refuses_to_clean_book_root(self, make_book, simple_files, tmp_path):
        book = parse(make_book(simple_files, {"output": str(tmp_path)}))
        with pytest.raises(BookError):
            asyncio.run(book.generate("json"))
        assert (tmp_path / "book" / "README.md").exists()

    def test_hub_generation(self, make_book, multilingual_files, recording_events, tmp_path):
        book = parse(make_book(multilingual_files))
        asyncio.run(book.generate("recording"))

        en_root, fr_root = (child.root for child in book.books)
        finishes = [i for i, e in enumerate(recording_events) if e[0] == "finish"]
        index_events = [i for i, e in enumerate(recording_events) if e[0] == "langs_index"]

        assert len(index_events) == 1
        child_finishes = [i for i in finishes if recording_events[i][1] in (en_root, fr_root)]
        assert len(child_finishes) == 2
        assert max(child_finishes) < index_events[0]
        assert recording_events[index_events[0]][2] == ["en", "fr"]

        # Children are generated strictly one after the other
        en_events = [i for i, e in enumerate(recording_events) if e[1] == en_root]
        fr_events = [i for i, e in enumerate(recording_events) if e[1] == fr_root]
        assert max(en_events) < min(fr_events)

        out = tmp_path / "book_out"
        assert (out / "en" / "chapter1.md.html").exists()
        assert (out / "fr" / "image.png").exists()


class TestPages:
    def test_extract_page(self, make_book, simple_files):
        book = parse(make_book(simple_files))
        page = asyncio.run(book.extract_page("chapter1.md"))

        assert page["type"] == "markdown"
        assert page["path"] == "chapter1.md"
        assert page["rawPath"] == os.path.join(book.root, "chapter1.md")
        assert page["progress"]["prev"]["path"] == "README.md"
        assert page["progress"]["next"] is None
        assert 'href="index.html"' in page["sections"][0]["content"]
        assert len(book.search_index) == 0

    def test_parse_page_indexes(self, make_book, simple_files):
        book = parse(make_book(simple_files))
        asyncio.run(book.parse_page("chapter1.md"))
        asyncio.run(book.parse_page("chapter1.md"))

        assert book.search_index.refs == ["chapter1.md"]
        assert book.search_index.get("chapter1.md")["title"] == "Chapter 1"
        assert book.search_index.search("mountains")[0]["ref"] == "chapter1.md"

    def test_glossary_terms_annotated(self, make_book, simple_files):
        simple_files["GLOSSARY.md"] = GLOSSARY
        book = parse(make_book(simple_files))
        page = asyncio.run(book.extract_page("chapter1.md"))
        assert 'class="glossary-term"' in page["sections"][0]["content"]

    def test_unsupported_extension(self, make_book, simple_files):
        book = parse(make_book(simple_files))
        with pytest.raises(BookError, match="image.png"):
            asyncio.run(book.parse_page("image.png"))

    def test_index_page_outside_navigation(self, make_book, simple_files):
        simple_files["notes.md"] = "# Notes\n"
        book = parse(make_book(simple_files))
        page = asyncio.run(book.parse_page("notes.md"))
        assert page["path"] == "notes.md"
        assert "notes.md" not in book.search_index
        assert book.index_page(page) is False

    def test_build_search_index(self, make_book, simple_files):
        book = parse(make_book(simple_files))
        index = asyncio.run(book.build_search_index())
        assert sorted(index.refs) == ["README.md", "chapter1.md"]

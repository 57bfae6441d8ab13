"""
Command line interface.

Usage:
    folio build docs                  Build the website into docs/_book
    folio docs --format json          Same, "build" is the default command
    folio build docs --format ebook   EPUB/DOCX/PDF through pandoc
    folio parse docs                  Show the parsed structure
    folio search docs "install"       Query the search index
"""

import argparse
import asyncio
import os
import sys
import traceback

from folio.book import Book
from folio.errors import FolioError
from folio.generators import GENERATORS
from folio.logging_config import setup_logging


# ── Helpers ────────────────────────────────────────────────────────────


def resolve_book(args):
    """Build the Book for a CLI invocation. Raises FolioError on a bad path."""
    root = os.path.abspath(args.book)
    if not os.path.isdir(root):
        raise FolioError(f"Could not find book folder '{args.book}'")

    options = {}
    if getattr(args, "output_dir", None):
        options["output"] = os.path.abspath(args.output_dir)
    return Book(root, options)


def run_async(coro, timeout=None):
    """Run a pipeline coroutine, cancelling it after `timeout` seconds if given."""
    if timeout:
        coro = asyncio.wait_for(coro, timeout)
    return asyncio.run(coro)


def print_tree(book, indent="  "):
    if book.is_multilingual():
        print(f"{indent}Languages: {', '.join(lang['lang'] for lang in book.langs)}")
        for child in book.books:
            print(f"\n{indent}[{child.config.lang}] {child.root}")
            print_tree(child, indent + "  ")
        return

    print(f"{indent}Title:    {book.config.title}")
    print(f"{indent}README:   {book.readme_file}")
    print(f"{indent}Files:    {len(book.files)}")
    print(f"{indent}Pages:    {len(book.navigation)}")
    print(f"{indent}Glossary: {len(book.glossary)} terms")
    for entry in book.navigation.values():
        depth = entry["level"].count(".") if entry["level"] else 0
        print(f"{indent}  {'  ' * depth}{entry['level']}. {entry['title']} ({entry['path']})")


# ── Build command ──────────────────────────────────────────────────────


async def _build(book, generator):
    await book.parse()
    await book.generate(generator)


def cmd_build(args):
    """Parse the book and run a generator over it."""
    book = resolve_book(args)
    run_async(_build(book, args.format), args.timeout)

    print(f"\n{'─' * 60}")
    print(f"  Done. Output in {book.config.output}")
    return 0


# ── Parse command ──────────────────────────────────────────────────────


def cmd_parse(args):
    """Parse the book and print its structure."""
    book = resolve_book(args)
    run_async(book.parse(), args.timeout)

    book.config.describe()
    print()
    print_tree(book)
    return 0


# ── Search command ─────────────────────────────────────────────────────


async def _search(book, query):
    await book.parse()
    hits = []
    for leaf in book.leaf_books():
        index = await leaf.build_search_index()
        for hit in index.search(query):
            hits.append((hit["score"], leaf, hit["ref"]))
    return sorted(hits, key=lambda hit: hit[0], reverse=True)


def cmd_search(args):
    """Index every navigated page and print the hits for a query."""
    book = resolve_book(args)
    hits = run_async(_search(book, args.query), args.timeout)

    if not hits:
        print(f"  No results for '{args.query}'")
        return 1

    for score, leaf, ref in hits[: args.limit]:
        title = leaf.navigation[ref]["title"]
        where = os.path.relpath(os.path.join(leaf.root, ref), book.root)
        print(f"  {score:6.2f}  {title}  ({where})")
    return 0


# ── Argument Parser ────────────────────────────────────────────────────


def build_parser():
    parser = argparse.ArgumentParser(
        prog="folio",
        description="Build navigable, searchable books from folders of markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s docs                      Build the website into docs/_book
  %(prog)s build docs --format json  One JSON document per page
  %(prog)s parse docs                Show chapters, files and glossary
  %(prog)s search docs "install"     Search the book
        """,
    )

    sub = parser.add_subparsers(dest="command")

    # ── build (default when no subcommand) ─────────────────
    build_p = sub.add_parser("build", help="Generate output (default)")
    _add_book_args(build_p)
    build_p.add_argument(
        "--format",
        choices=sorted(GENERATORS),
        default=None,
        help="Generator to run (default: book config, else site)",
    )
    build_p.add_argument("--output-dir", help="Override output directory")

    # ── parse ──────────────────────────────────────────────
    parse_p = sub.add_parser("parse", help="Parse and show the book structure")
    _add_book_args(parse_p)

    # ── search ─────────────────────────────────────────────
    search_p = sub.add_parser("search", help="Search the book content")
    _add_book_args(search_p)
    search_p.add_argument("query", help="lunr query string")
    search_p.add_argument("--limit", type=int, default=10)

    return parser


def _add_book_args(parser):
    parser.add_argument("book", help="Path to the book folder")
    parser.add_argument("--timeout", type=float, default=None, help="Abort after N seconds")
    parser.add_argument("--verbose", "-v", action="store_true")
    parser.add_argument("--log-file", help="Also write a detailed log to this file")


# ── Main ───────────────────────────────────────────────────────────────


def main(argv=None):
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)

    # Allow bare "folio docs" without the "build" subcommand
    known_commands = {"build", "parse", "search"}
    if argv and argv[0] not in known_commands and not argv[0].startswith("-"):
        argv = ["build"] + argv

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose, log_file=args.log_file)

    dispatch = {
        "build": cmd_build,
        "parse": cmd_parse,
        "search": cmd_search,
    }

    try:
        return dispatch[args.command](args)
    except FolioError as e:
        print(f"Error: {e}")
        return 1
    except asyncio.TimeoutError:
        print(f"Error: timed out after {args.timeout}s")
        return 1


def run():
    """Console entry point."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        log_path = "build_error.log"
        with open(log_path, "w") as f:
            traceback.print_exc(file=f)
        print(f"\nUnexpected error: {e}")
        print(f"Full traceback written to {log_path}")
        sys.exit(1)

"""
Navigation mapping: file path → position in the table of contents.
"""


def flatten_chapters(chapters):
    """Chapters and their articles, depth-first, in reading order."""
    for chapter in chapters:
        yield chapter
        yield from flatten_chapters(chapter.get("articles") or [])


def parse_navigation(summary, files=None):
    """
    Build the navigation mapping from a parsed summary.

    Only entries whose path is one of `files` are kept (pass None to keep
    every linked entry). A path linked twice keeps its first position.
    The returned dict is ordered by reading order; each entry holds
    path, title, level, index, introduction, prev and next (paths or None).
    """
    known = set(files) if files is not None else None

    ordered = []
    seen = set()
    for chapter in flatten_chapters(summary.get("chapters") or []):
        path = chapter.get("path")
        if not path or path in seen:
            continue
        if known is not None and path not in known:
            continue
        seen.add(path)
        ordered.append(chapter)

    navigation = {}
    for index, chapter in enumerate(ordered):
        navigation[chapter["path"]] = {
            "path": chapter["path"],
            "title": chapter.get("title") or "",
            "level": chapter.get("level"),
            "index": index,
            "introduction": chapter.get("level") == "0",
            "prev": ordered[index - 1]["path"] if index > 0 else None,
            "next": ordered[index + 1]["path"] if index + 1 < len(ordered) else None,
        }
    return navigation

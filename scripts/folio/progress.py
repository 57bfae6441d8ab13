"""
Reading progress of a page within its book.
"""


def parse_progress(navigation, filename):
    """
    Progress record for `filename`.

    Returns a dict with the previous/current/next navigation entries,
    the completion percentage and every chapter flagged `done` when it
    sits at or before the current one. Files outside the navigation get
    an empty record (no current, 0%).
    """
    current = navigation.get(filename)
    chapters = list(navigation.values())

    if current is None:
        return {
            "prev": None,
            "current": None,
            "next": None,
            "percent": 0,
            "chapters": [dict(chapter, done=False) for chapter in chapters],
        }

    percent = (current["index"] * 100) / max(len(chapters) - 1, 1)

    return {
        "prev": navigation.get(current["prev"]) if current["prev"] else None,
        "current": current,
        "next": navigation.get(current["next"]) if current["next"] else None,
        "percent": percent,
        "chapters": [
            dict(chapter, done=chapter["index"] <= current["index"])
            for chapter in chapters
        ],
    }

"""
Async filesystem helpers.

All book I/O goes through here so the pipeline never blocks the event
loop. Blocking calls without an aiofiles equivalent (rmtree, copy2, the
recursive listing) are wrapped to run in the default executor.
"""

import fnmatch
import os
import shutil

import aiofiles
import aiofiles.os

from folio.resolve import natural_sort_key


# Entries never listed as book content
IGNORED_NAMES = {"node_modules", "_layouts", "__pycache__"}

# Per-book ignore file, one glob pattern per line
IGNORE_FILE = ".bookignore"


_copy2 = aiofiles.os.wrap(shutil.copy2)


async def exists(path):
    return await aiofiles.os.path.exists(path)


async def isdir(path):
    return await aiofiles.os.path.isdir(path)


async def stat(path):
    return await aiofiles.os.stat(path)


async def read_file(path, encoding="utf-8"):
    async with aiofiles.open(path, "r", encoding=encoding) as f:
        return await f.read()


async def write_file(path, content, encoding="utf-8"):
    """Write text to path, creating parent directories as needed."""
    parent = os.path.dirname(path)
    if parent:
        await mkdirp(parent)
    async with aiofiles.open(path, "w", encoding=encoding) as f:
        await f.write(content)


async def copy_file(src, dest):
    parent = os.path.dirname(dest)
    if parent:
        await mkdirp(parent)
    await _copy2(src, dest)


async def mkdirp(path):
    await aiofiles.os.makedirs(path, exist_ok=True)


def _remove_sync(path):
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    elif os.path.lexists(path):
        os.remove(path)


_remove = aiofiles.os.wrap(_remove_sync)


async def remove(path):
    """Remove a file or a whole directory tree. Missing paths are ignored."""
    await _remove(path)


# ── Listing ────────────────────────────────────────────────────────────


def _read_ignore_patterns(root):
    path = os.path.join(root, IGNORE_FILE)
    if not os.path.exists(path):
        return []
    with open(path, encoding="utf-8") as f:
        lines = [line.strip() for line in f]
    return [line.rstrip("/") for line in lines if line and not line.startswith("#")]


def _is_ignored(rel, name, patterns):
    if name.startswith(".") or name in IGNORED_NAMES:
        return True
    return any(
        fnmatch.fnmatch(rel, pattern) or fnmatch.fnmatch(name, pattern)
        for pattern in patterns
    )


def _list_sync(root, ignore=()):
    patterns = _read_ignore_patterns(root) + [p.rstrip("/") for p in ignore]
    results = []

    def walk(directory, prefix):
        entries = sorted(os.listdir(directory), key=natural_sort_key)
        for name in entries:
            rel = f"{prefix}{name}"
            if _is_ignored(rel, name, patterns):
                continue
            full = os.path.join(directory, name)
            if os.path.isdir(full):
                results.append(rel + "/")
                walk(full, rel + "/")
            else:
                results.append(rel)

    walk(root, "")
    return results


_list = aiofiles.os.wrap(_list_sync)


async def list_files(root, ignore=()):
    """
    List every file and folder under root, recursively.

    Returns book-relative POSIX paths in natural order; folders carry a
    trailing "/". Hidden entries, IGNORED_NAMES, the given ignore
    patterns and the patterns in .bookignore are skipped.
    """
    return await _list(root, tuple(ignore))

"""Ant-style include/exclude scanning of directories.

Patterns use ``/`` separators; ``**`` matches any number of path segments,
``*`` any run of characters within a segment and ``?`` a single character.
A pattern ending in ``/`` is shorthand for ``<pattern>/**``.
"""

from __future__ import annotations

import functools
import os
import re
from collections.abc import Iterable, Sequence
from pathlib import Path

DEFAULT_EXCLUDES: tuple[str, ...] = (
    # Miscellaneous editor and OS droppings
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/.DS_Store",
    # CVS
    "**/CVS",
    "**/CVS/**",
    "**/.cvsignore",
    # RCS / SCCS
    "**/RCS",
    "**/RCS/**",
    "**/SCCS",
    "**/SCCS/**",
    # Visual SourceSafe
    "**/vssver.scc",
    # Subversion
    "**/.svn",
    "**/.svn/**",
    # Arch / Bazaar
    "**/.arch-ids",
    "**/.arch-ids/**",
    "**/.bzr",
    "**/.bzr/**",
    # Mercurial
    "**/.hg",
    "**/.hg/**",
    "**/.hgignore",
    # Git
    "**/.git",
    "**/.git/**",
    "**/.gitignore",
    "**/.gitattributes",
    # BitKeeper
    "**/BitKeeper",
    "**/BitKeeper/**",
    "**/ChangeSet",
    "**/ChangeSet/**",
    # darcs
    "**/_darcs",
    "**/_darcs/**",
    "**/.darcsrepo",
    "**/.darcsrepo/**",
)


def _normalise_pattern(pattern: str) -> list[str]:
    pattern = pattern.replace("\\", "/").strip()
    if pattern.endswith("/"):
        pattern += "**"
    return [seg for seg in pattern.split("/") if seg not in ("", ".")]


@functools.lru_cache(maxsize=1024)
def _segment_regex(segment: str) -> re.Pattern[str]:
    parts = []
    for ch in segment:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.DOTALL)


def _match_segments(pattern: Sequence[str], path: Sequence[str]) -> bool:
    if not pattern:
        return not path
    head = pattern[0]
    if head == "**":
        rest = pattern[1:]
        return any(_match_segments(rest, path[i:]) for i in range(len(path) + 1))
    if not path:
        return False
    if not _segment_regex(head).fullmatch(path[0]):
        return False
    return _match_segments(pattern[1:], path[1:])


def match_path(pattern: str, path: str) -> bool:
    """Return True if the relative *path* matches the Ant-style *pattern*."""
    segments = [seg for seg in path.replace("\\", "/").split("/") if seg]
    return _match_segments(tuple(_normalise_pattern(pattern)), tuple(segments))


def is_selected(
    path: str,
    includes: Sequence[str] = (),
    excludes: Sequence[str] = (),
    use_default_excludes: bool = True,
) -> bool:
    """Apply include/exclude patterns to a single relative path.

    No includes means everything is included.
    """
    if includes and not any(match_path(p, path) for p in includes):
        return False
    all_excludes: Iterable[str] = excludes
    if use_default_excludes:
        all_excludes = (*excludes, *DEFAULT_EXCLUDES)
    return not any(match_path(p, path) for p in all_excludes)


def scan(
    basedir: Path,
    includes: Sequence[str] = (),
    excludes: Sequence[str] = (),
    use_default_excludes: bool = True,
) -> list[str]:
    """Return the sorted relative (``/``-separated) paths of selected files under *basedir*.

    A missing *basedir* yields an empty list.
    """
    if not basedir.is_dir():
        return []

    selected: list[str] = []
    for root, dirs, files in os.walk(basedir):
        dirs.sort()
        rel_root = Path(root).relative_to(basedir).as_posix()
        for name in sorted(files):
            rel = name if rel_root == "." else f"{rel_root}/{name}"
            if is_selected(rel, includes, excludes, use_default_excludes):
                selected.append(rel)
    return sorted(selected)

"""Source file discovery honoring include/exclude glob lists."""

from __future__ import annotations

import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".next",
    ".turbo",
    ".reverso",
}


def glob_matches(rel_path: str, pattern: str) -> bool:
    """Return True when a POSIX relative path matches a glob with ``**`` support.

    ``*`` and ``?`` never cross a ``/``; a ``**`` segment matches any number of
    directories, including none.
    """
    path_parts = [part for part in rel_path.replace("\\", "/").split("/") if part]
    pattern_parts = [part for part in pattern.replace("\\", "/").split("/") if part]
    return _match_parts(path_parts, pattern_parts)


def matches_any(rel_path: str, patterns: Sequence[str]) -> bool:
    return any(glob_matches(rel_path, pattern) for pattern in patterns)


def is_included(rel_path: str, include: Sequence[str], exclude: Sequence[str]) -> bool:
    """Return True when ``rel_path`` matches an include glob and no exclude glob."""
    return matches_any(rel_path, include) and not matches_any(rel_path, exclude)


def find_source_files(
    src_dir: Path, include: Sequence[str], exclude: Sequence[str]
) -> List[Path]:
    """Return sorted absolute paths under ``src_dir`` selected by the glob lists."""
    root = src_dir.expanduser().resolve()
    if not root.exists():
        raise FileNotFoundError(f"Source directory not found: {src_dir}")
    if not root.is_dir():
        raise NotADirectoryError(f"Source path is not a directory: {src_dir}")
    return sorted(_iter_files(root, include, exclude))


def relative_posix(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


def _iter_files(root: Path, include: Sequence[str], exclude: Sequence[str]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)

        for filename in filenames:
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if is_included(rel_path, include, exclude):
                yield current_dir / filename


def _match_parts(path_parts: Sequence[str], pattern_parts: Sequence[str]) -> bool:
    if not pattern_parts:
        return not path_parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(_match_parts(path_parts[index:], rest) for index in range(len(path_parts) + 1))
    if not path_parts:
        return False
    return fnmatchcase(path_parts[0], head) and _match_parts(path_parts[1:], rest)


__all__ = ["find_source_files", "glob_matches", "is_included", "matches_any", "relative_posix"]

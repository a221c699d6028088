"""Parsing, building and matching of dotted field paths.

Paths follow ``page.section.field`` with at least three segments. A single
repeater placeholder (``$``) may appear, and only as the third segment:
``home.features.$.title`` addresses the ``title`` of each ``features`` item.

Every other module asks this one whether a path is valid.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from .constants import PATH_SEPARATOR, REPEATER_PLACEHOLDER
from .models import ParsedPath

_REPEATER_INDEX = 2
_MIN_SEGMENTS = 3


class GrammarError(ValueError):
    """Raised when a field path violates the path grammar."""


def parse_path(path: str) -> ParsedPath:
    """Split ``path`` into page/section/field components."""
    trimmed = path.strip()
    if not trimmed:
        raise GrammarError("Path cannot be empty")

    parts = trimmed.split(PATH_SEPARATOR)
    _validate_segments(parts, label=f'Invalid path "{path}"')

    page, section = parts[0], parts[1]
    if REPEATER_PLACEHOLDER in parts:
        repeater_field = PATH_SEPARATOR.join(parts[_REPEATER_INDEX + 1 :]) or None
        return ParsedPath(
            page=page,
            section=section,
            field=REPEATER_PLACEHOLDER,
            is_repeater=True,
            repeater_field=repeater_field,
            full=trimmed,
        )

    return ParsedPath(
        page=page,
        section=section,
        field=PATH_SEPARATOR.join(parts[_REPEATER_INDEX:]),
        is_repeater=False,
        full=trimmed,
    )


def build_path(*parts: str) -> str:
    """Join path segments after checking them against the grammar."""
    _validate_segments(list(parts), label="Invalid path segments")
    return PATH_SEPARATOR.join(parts)


def is_valid_path(path: str) -> bool:
    try:
        parse_path(path)
    except GrammarError:
        return False
    return True


def path_error(path: str) -> str | None:
    """Return the grammar violation for ``path`` or None when it is valid."""
    try:
        parse_path(path)
    except GrammarError as exc:
        return str(exc)
    return None


def is_repeater_path(path: str) -> bool:
    return REPEATER_PLACEHOLDER in path.strip().split(PATH_SEPARATOR)


def get_field_name(path: str) -> str:
    return parse_path(path).field_name


def get_parent_path(path: str) -> str:
    """Return ``page.section`` (or ``page.section.$``) for a field path."""
    parts = path.split(PATH_SEPARATOR)
    if len(parts) <= 2:
        return parts[0]
    return PATH_SEPARATOR.join(parts[:-1])


def get_page_section_path(path: str) -> str:
    parsed = parse_path(path)
    return f"{parsed.page}{PATH_SEPARATOR}{parsed.section}"


def match_path(path: str, pattern: str) -> bool:
    """Return True when ``path`` matches ``pattern``; ``*`` matches one segment."""
    path_parts = path.split(PATH_SEPARATOR)
    pattern_parts = pattern.split(PATH_SEPARATOR)
    if len(path_parts) != len(pattern_parts):
        return False
    return all(
        expected == "*" or expected == actual
        for expected, actual in zip(pattern_parts, path_parts)
    )


def sort_paths(paths: Iterable[str]) -> List[str]:
    """Order paths by page, then section, then field name."""

    def _key(path: str) -> tuple[str, str, str]:
        parsed = parse_path(path)
        return (parsed.page, parsed.section, parsed.field_name)

    return sorted(paths, key=_key)


def group_paths_by_page(paths: Iterable[str]) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for path in paths:
        grouped.setdefault(parse_path(path).page, []).append(path)
    return grouped


def group_paths_by_section(paths: Iterable[str]) -> Dict[str, Dict[str, List[str]]]:
    """Group paths into ``{page: {section: [paths]}}`` keeping first-seen order."""
    grouped: Dict[str, Dict[str, List[str]]] = {}
    for path in paths:
        parsed = parse_path(path)
        grouped.setdefault(parsed.page, {}).setdefault(parsed.section, []).append(path)
    return grouped


def _validate_segments(parts: Sequence[str], *, label: str) -> None:
    if len(parts) < _MIN_SEGMENTS:
        raise GrammarError(f"{label}: must have at least 3 parts (page.section.field)")

    for index, part in enumerate(parts):
        if not part or not part.strip():
            raise GrammarError(f"{label}: contains empty segment at position {index + 1}")

    placeholders = [index for index, part in enumerate(parts) if part == REPEATER_PLACEHOLDER]
    if len(placeholders) > 1:
        raise GrammarError(f"{label}: can only contain one $ repeater placeholder")
    if placeholders and placeholders[0] != _REPEATER_INDEX:
        raise GrammarError(f"{label}: $ placeholder must be at position 3 (page.section.$)")


__all__ = [
    "GrammarError",
    "build_path",
    "get_field_name",
    "get_page_section_path",
    "get_parent_path",
    "group_paths_by_page",
    "group_paths_by_section",
    "is_repeater_path",
    "is_valid_path",
    "match_path",
    "parse_path",
    "path_error",
    "sort_paths",
]

"""Helpers for turning slugs into labels and identifiers."""

from __future__ import annotations

import re

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_SEPARATORS = re.compile(r"[_\-\s]+")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")


def format_label(value: str) -> str:
    """Return a Title Cased label for a slug, snake_case or camelCase name.

    ``hero_title``, ``hero-title`` and ``heroTitle`` all become ``Hero Title``.
    """
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", value)
    words = [word for word in _SEPARATORS.split(spaced) if word]
    return " ".join(word[:1].upper() + word[1:] for word in words)


def camel_case(value: str) -> str:
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", value)
    words = [word for word in _NON_ALNUM.split(spaced) if word]
    if not words:
        return ""
    head, *rest = words
    return head.lower() + "".join(word[:1].upper() + word[1:].lower() for word in rest)


def pascal_case(value: str) -> str:
    camel = camel_case(value)
    return camel[:1].upper() + camel[1:]


__all__ = ["camel_case", "format_label", "pascal_case"]

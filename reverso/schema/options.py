"""Parsing of the ``options`` marker attribute."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List

from ..naming import format_label


@dataclass(frozen=True)
class FieldOption:
    label: str
    value: str


def parse_options(raw: str | None) -> List[FieldOption]:
    """Parse ``"a,b,c"`` or a JSON array into label/value pairs.

    JSON entries may be strings, numbers or objects with ``value`` and an
    optional ``label``. Entries with an empty value are dropped. Text that
    starts with ``[`` but is not valid JSON is treated as a comma list.
    """
    if raw is None:
        return []
    trimmed = raw.strip()
    if not trimmed:
        return []

    if trimmed.startswith("["):
        try:
            parsed = json.loads(trimmed)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return _from_json(parsed)

    values = [part.strip() for part in trimmed.split(",")]
    return [FieldOption(label=format_label(value), value=value) for value in values if value]


def _from_json(items: list) -> List[FieldOption]:
    options: List[FieldOption] = []
    for item in items:
        if item is None:
            continue
        if isinstance(item, dict):
            if "value" not in item:
                continue
            value = str(item["value"] if item["value"] is not None else "").strip()
            label = item.get("label")
            label = label.strip() if isinstance(label, str) and label.strip() else format_label(value)
        else:
            value = _scalar_text(item).strip()
            label = format_label(value)
        if value:
            options.append(FieldOption(label=label, value=value))
    return options


def _scalar_text(item: object) -> str:
    if isinstance(item, bool):
        return "true" if item else "false"
    return str(item)


__all__ = ["FieldOption", "parse_options"]

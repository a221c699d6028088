"""Turns flat marker detections into a page/section/field schema tree."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..config import SchemaOptions
from ..constants import (
    BOOLEAN_ATTRIBUTES,
    KNOWN_ATTRIBUTES,
    NUMERIC_ATTRIBUTES,
    REPEATER_PLACEHOLDER,
    SCHEMA_VERSION,
    WIDTH_RANGE,
    is_valid_field_type,
)
from ..logging import get_logger
from ..models import (
    DetectedField,
    FieldSchema,
    PageSchema,
    ParsedPath,
    ProjectSchema,
    ScanError,
    ScanMeta,
    SectionSchema,
)
from ..naming import format_label
from ..paths import group_paths_by_section, parse_path, path_error
from .normalizer import sort_schema

Number = Union[int, float]

_STRING_ATTRIBUTES = (
    "placeholder",
    "validation",
    "options",
    "condition",
    "default",
    "help",
    "accept",
)

logger = get_logger("schema.generator")


@dataclass(frozen=True)
class GeneratedSchema:
    """A generated schema together with the markers that were skipped."""

    schema: ProjectSchema
    warnings: Tuple[ScanError, ...]


def generate_schema(
    fields: Sequence[DetectedField],
    options: SchemaOptions | None = None,
    *,
    meta: ScanMeta | None = None,
    generated_at: str | None = None,
) -> GeneratedSchema:
    """Build a :class:`ProjectSchema` from the detections of every scanned file.

    Detections whose path breaks the path grammar are left out of the schema
    and reported as ``validation`` warnings. Detections sharing a path are
    collapsed into one field. Apart from ``generated_at`` the output depends
    only on the input list.
    """
    options = options or SchemaOptions()
    started = time.perf_counter()

    valid, warnings = partition_fields(fields)
    unique = _merge_duplicates(valid)

    by_path: Dict[str, DetectedField] = {field.path: field for field in unique}
    files_by_page: Dict[str, List[str]] = {}
    for field in valid:
        page_files = files_by_page.setdefault(parse_path(field.path).page, [])
        if field.file not in page_files:
            page_files.append(field.file)

    pages: List[PageSchema] = []
    for page_slug, sections in group_paths_by_section(by_path).items():
        page_sections: List[SectionSchema] = []
        for order, (section_slug, paths) in enumerate(sections.items()):
            page_sections.append(
                SectionSchema(
                    slug=section_slug,
                    name=format_label(section_slug),
                    fields=tuple(convert_to_field_schema(by_path[path], options) for path in paths),
                    is_repeater=any(parse_path(path).is_repeater for path in paths),
                    order=order,
                )
            )
        pages.append(
            PageSchema(
                slug=page_slug,
                name=format_label(page_slug),
                sections=tuple(page_sections),
                source_files=tuple(files_by_page.get(page_slug, ())),
            )
        )

    schema = ProjectSchema(
        version=SCHEMA_VERSION,
        generated_at=generated_at or _utc_timestamp(),
        pages=tuple(pages),
        meta=meta or ScanMeta(scan_duration=(time.perf_counter() - started) * 1000.0),
    )
    if options.sort:
        schema = sort_schema(schema)
    return GeneratedSchema(schema=schema, warnings=tuple(warnings))


def partition_fields(
    fields: Sequence[DetectedField],
) -> Tuple[List[DetectedField], List[ScanError]]:
    """Split detections into grammar-valid ones and warnings for the rest."""
    valid: List[DetectedField] = []
    warnings: List[ScanError] = []
    for field in fields:
        problem = path_error(field.path)
        if problem is None:
            valid.append(field)
            continue
        logger.warning(
            'Skipping marker "%s" in %s:%d (expected page.section.field): %s',
            field.path,
            field.file,
            field.line,
            problem,
        )
        warnings.append(
            ScanError(
                type="validation",
                message=f'Marker "{field.path}" skipped: {problem}',
                file=field.file,
                line=field.line,
                column=field.column,
            )
        )
    return valid, warnings


def convert_to_field_schema(
    field: DetectedField, options: SchemaOptions | None = None
) -> FieldSchema:
    """Resolve a single detection into a typed :class:`FieldSchema`."""
    options = options or SchemaOptions()
    attributes = field.attributes
    parsed = parse_path(field.path)

    field_type = options.default_field_type
    raw_type = attributes.get("type")
    if raw_type:
        if is_valid_field_type(raw_type):
            field_type = raw_type
        else:
            logger.debug(
                'Unknown field type "%s" for %s; using "%s"', raw_type, field.path, field_type
            )

    values: Dict[str, object] = {}
    for name in _STRING_ATTRIBUTES:
        if attributes.get(name):
            values[name] = attributes[name]
    for name in BOOLEAN_ATTRIBUTES:
        raw = attributes.get(name)
        if raw is not None:
            values[name] = coerce_bool(raw)
    for name in NUMERIC_ATTRIBUTES:
        number = _coerce_numeric(name, attributes.get(name))
        if number is not None:
            values[name] = number

    extra = {
        name: value
        for name, value in attributes.items()
        if name not in KNOWN_ATTRIBUTES and value is not None
    }

    return FieldSchema(
        path=parsed.full,
        type=field_type,
        file=field.file,
        line=field.line,
        column=field.column,
        element=field.element or None,
        label=attributes.get("label") or default_label(parsed),
        default_content=field.text_content if options.include_defaults else None,
        extra=extra,
        **values,  # type: ignore[arg-type]
    )


def update_schema_meta(schema: ProjectSchema, meta: ScanMeta) -> ProjectSchema:
    return replace(schema, meta=meta)


def default_label(parsed: ParsedPath) -> str:
    """Title Case the last path segment, skipping the repeater placeholder."""
    segments = [
        segment for segment in parsed.full.split(".") if segment != REPEATER_PLACEHOLDER
    ]
    return format_label(segments[-1])


def coerce_bool(value: Optional[str]) -> bool:
    """Treat ``"true"`` and a bare (empty) attribute as True."""
    if value is None:
        return False
    lowered = value.strip().lower()
    return lowered in {"true", ""}


def coerce_number(value: Optional[str]) -> Optional[Number]:
    if value is None:
        return None
    try:
        number = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def coerce_width(value: Optional[str]) -> Optional[int]:
    """Parse a grid width and clamp it into the 1..12 column range."""
    number = coerce_number(value)
    if number is None:
        return None
    low, high = WIDTH_RANGE
    return int(min(max(number, low), high))


def _coerce_numeric(name: str, raw: Optional[str]) -> Union[int, float, None]:
    if name == "width":
        return coerce_width(raw)
    number = coerce_number(raw)
    if number is not None and name == "rows":
        return int(number)
    return number


def _merge_duplicates(fields: Sequence[DetectedField]) -> List[DetectedField]:
    merged: Dict[str, DetectedField] = {}
    for field in fields:
        path = parse_path(field.path).full
        existing = merged.get(path)
        if existing is None:
            merged[path] = replace(field, path=path)
            continue
        logger.debug(
            "Marker %s repeated at %s:%d; keeping %s:%d",
            path,
            field.file,
            field.line,
            existing.file,
            existing.line,
        )
        attributes = dict(field.attributes)
        attributes.update({k: v for k, v in existing.attributes.items() if v is not None})
        merged[path] = replace(
            existing,
            attributes=attributes,
            text_content=existing.text_content or field.text_content,
        )
    return list(merged.values())


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = [
    "GeneratedSchema",
    "coerce_bool",
    "coerce_number",
    "coerce_width",
    "convert_to_field_schema",
    "default_label",
    "generate_schema",
    "partition_fields",
    "update_schema_meta",
]

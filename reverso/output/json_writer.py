"""Reading and writing ``schema.json``.

The on-disk document uses camelCase keys so the admin and database tooling
can read it without a translation layer. Conversion is lossless: a schema
read back from disk compares equal, field by field, to the one written.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..constants import SCHEMA_FILE_NAME
from ..logging import get_logger
from ..models import (
    FieldSchema,
    PageSchema,
    ProjectSchema,
    RepeaterConfig,
    ScanMeta,
    SectionSchema,
)

# Python attribute name -> JSON key, in output order, for optional field entries.
_OPTIONAL_FIELD_KEYS: Dict[str, str] = {
    "element": "element",
    "label": "label",
    "placeholder": "placeholder",
    "required": "required",
    "validation": "validation",
    "options": "options",
    "condition": "condition",
    "default": "default",
    "help": "help",
    "min": "min",
    "max": "max",
    "step": "step",
    "accept": "accept",
    "multiple": "multiple",
    "rows": "rows",
    "width": "width",
    "readonly": "readonly",
    "hidden": "hidden",
    "default_content": "defaultContent",
}

logger = get_logger("output.json_writer")


def schema_path(output_dir: Path) -> Path:
    return Path(output_dir) / SCHEMA_FILE_NAME


def write_json_schema(
    schema: ProjectSchema, output_dir: Path, *, pretty: bool = True, indent: int = 2
) -> Path:
    """Write ``schema`` to ``<output_dir>/schema.json`` and return the path.

    The file is replaced atomically so a concurrent reader never sees a
    half-written document.
    """
    target = schema_path(output_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = schema_to_dict(schema)
    if pretty:
        content = json.dumps(payload, indent=indent, ensure_ascii=False) + "\n"
    else:
        content = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)

    tmp = target.with_name(target.name + ".tmp")
    tmp.write_text(content, encoding="utf-8")
    os.replace(tmp, target)
    logger.debug("Wrote schema with %d field(s) to %s", schema.total_fields, target)
    return target


def read_json_schema(output_dir: Path) -> Optional[ProjectSchema]:
    """Load the previously written schema, or None when absent or unreadable."""
    target = schema_path(output_dir)
    if not target.exists():
        return None
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
        return schema_from_dict(data)
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.debug("Ignoring unreadable schema at %s: %s", target, exc)
        return None


def schema_to_dict(schema: ProjectSchema) -> Dict[str, Any]:
    return {
        "version": schema.version,
        "generatedAt": schema.generated_at,
        "pages": [_page_to_dict(page) for page in schema.pages],
        "pageCount": schema.page_count,
        "totalFields": schema.total_fields,
        "meta": {
            "srcDir": schema.meta.src_dir,
            "filesScanned": schema.meta.files_scanned,
            "filesWithMarkers": schema.meta.files_with_markers,
            "scanDuration": schema.meta.scan_duration,
        },
    }


def schema_from_dict(data: Dict[str, Any]) -> ProjectSchema:
    """Rebuild a :class:`ProjectSchema` from its JSON form.

    Raises ``ValueError`` (or ``KeyError``/``TypeError``) for documents that
    do not have the expected shape. Derived counts are recomputed, not read.
    """
    if not isinstance(data, dict):
        raise ValueError("Schema document must be a JSON object")
    raw_pages = data.get("pages")
    if not isinstance(raw_pages, list):
        raise ValueError("Schema document is missing a pages list")
    meta = data.get("meta") or {}
    return ProjectSchema(
        version=str(data["version"]),
        generated_at=str(data.get("generatedAt", "")),
        pages=tuple(_page_from_dict(page) for page in raw_pages),
        meta=ScanMeta(
            src_dir=str(meta.get("srcDir", "")),
            files_scanned=int(meta.get("filesScanned", 0)),
            files_with_markers=int(meta.get("filesWithMarkers", 0)),
            scan_duration=float(meta.get("scanDuration", 0.0)),
        ),
    )


def field_to_dict(field: FieldSchema) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "path": field.path,
        "type": field.type,
        "file": field.file,
        "line": field.line,
        "column": field.column,
    }
    for attribute, key in _OPTIONAL_FIELD_KEYS.items():
        value = getattr(field, attribute)
        if value is not None:
            data[key] = value
    if field.extra:
        data["extra"] = dict(field.extra)
    return data


def field_from_dict(data: Dict[str, Any]) -> FieldSchema:
    values = {
        attribute: data[key] for attribute, key in _OPTIONAL_FIELD_KEYS.items() if key in data
    }
    return FieldSchema(
        path=str(data["path"]),
        type=str(data["type"]),
        file=str(data.get("file", "")),
        line=int(data.get("line", 0)),
        column=int(data.get("column", 0)),
        extra={str(k): str(v) for k, v in (data.get("extra") or {}).items()},
        **values,
    )


def _page_to_dict(page: PageSchema) -> Dict[str, Any]:
    return {
        "slug": page.slug,
        "name": page.name,
        "sections": [_section_to_dict(section) for section in page.sections],
        "fieldCount": page.field_count,
        "sourceFiles": list(page.source_files),
    }


def _section_to_dict(section: SectionSchema) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "slug": section.slug,
        "name": section.name,
        "fields": [field_to_dict(field) for field in section.fields],
        "isRepeater": section.is_repeater,
        "order": section.order,
    }
    config = section.repeater_config
    if config is not None:
        raw = {"min": config.min, "max": config.max, "itemLabel": config.item_label}
        data["repeaterConfig"] = {key: value for key, value in raw.items() if value is not None}
    return data


def _page_from_dict(data: Dict[str, Any]) -> PageSchema:
    sections: List[SectionSchema] = []
    for index, raw in enumerate(data.get("sections") or []):
        config = raw.get("repeaterConfig")
        sections.append(
            SectionSchema(
                slug=str(raw["slug"]),
                name=str(raw.get("name", raw["slug"])),
                fields=tuple(field_from_dict(field) for field in raw.get("fields") or []),
                is_repeater=bool(raw.get("isRepeater", False)),
                order=int(raw.get("order", index)),
                repeater_config=(
                    RepeaterConfig(
                        min=config.get("min"),
                        max=config.get("max"),
                        item_label=config.get("itemLabel"),
                    )
                    if isinstance(config, dict)
                    else None
                ),
            )
        )
    return PageSchema(
        slug=str(data["slug"]),
        name=str(data.get("name", data["slug"])),
        sections=tuple(sections),
        source_files=tuple(str(path) for path in data.get("sourceFiles") or []),
    )


__all__ = [
    "field_from_dict",
    "field_to_dict",
    "read_json_schema",
    "schema_from_dict",
    "schema_path",
    "schema_to_dict",
    "write_json_schema",
]

"""Renders TypeScript declarations for the content shape of a schema."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set

from jinja2 import Environment, FileSystemLoader

from ..constants import TYPES_FILE_NAME
from ..logging import get_logger
from ..models import FieldSchema, PageSchema, ProjectSchema, SectionSchema
from ..naming import camel_case, pascal_case
from ..paths import parse_path
from ..schema.options import parse_options

_CORE_MODULE = "@reverso/core"
_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

_PRIMITIVE_TYPES: Dict[str, str] = {
    "text": "string",
    "textarea": "string",
    "email": "string",
    "url": "string",
    "phone": "string",
    "wysiwyg": "string",
    "markdown": "string",
    "color": "string",
    "select": "string",
    "radio": "string",
    "buttongroup": "string",
    "date": "string",
    "datetime": "string",
    "time": "string",
    "number": "number",
    "range": "number",
    "boolean": "boolean",
    "checkbox": "boolean",
    "multiselect": "string[]",
    "checkboxgroup": "string[]",
    "repeater": "Array<Record<string, unknown>>",
    "group": "Record<string, unknown>",
}

_VALUE_TYPES: Dict[str, str] = {
    "image": "ImageValue",
    "file": "FileValue",
    "gallery": "GalleryValue",
    "video": "VideoValue",
    "audio": "AudioValue",
    "oembed": "OEmbedValue",
    "link": "LinkValue",
    "pagelink": "PageLinkValue",
    "relation": "RelationValue",
    "taxonomy": "TaxonomyValue",
    "user": "UserValue",
    "map": "MapValue",
    "blocks": "BlocksValue",
    "code": "CodeValue",
    "flexible": "FlexibleValue",
}

# Layout-only types hold no content.
_LAYOUT_TYPES = {"message", "tab", "accordion"}

_LITERAL_UNION_TYPES = {"select", "radio", "buttongroup"}

logger = get_logger("output.types_writer")


@dataclass
class _FieldView:
    name: str
    type: str
    required: bool
    comment: Optional[str]


@dataclass
class _SectionView:
    name: str
    property: str
    interface: str
    is_repeater: bool
    fields: List[_FieldView] = field(default_factory=list)


@dataclass
class _PageView:
    name: str
    property: str
    interface: str
    sections: List[_SectionView] = field(default_factory=list)


def generate_type_definitions(schema: ProjectSchema, *, include_comments: bool = True) -> str:
    """Return the ``types.ts`` source describing content for ``schema``."""
    imports: Set[str] = set()
    pages = [_page_view(page, imports) for page in schema.pages]
    template = _environment().get_template("types.ts.j2")
    rendered = template.render(
        generated_at=schema.generated_at,
        version=schema.version,
        imports=sorted(imports),
        module=_CORE_MODULE,
        pages=pages,
        comments=include_comments,
    )
    return rendered.rstrip() + "\n"


def write_types_file(
    schema: ProjectSchema, output_dir: Path, *, include_comments: bool = True
) -> Path:
    target = Path(output_dir) / TYPES_FILE_NAME
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(
        generate_type_definitions(schema, include_comments=include_comments), encoding="utf-8"
    )
    logger.debug("Wrote type declarations to %s", target)
    return target


def field_type_for(schema_field: FieldSchema, imports: Set[str]) -> Optional[str]:
    """Map a field to its TypeScript type, or None for layout-only fields."""
    if schema_field.type in _LAYOUT_TYPES:
        return None
    if schema_field.type in _LITERAL_UNION_TYPES:
        options = parse_options(schema_field.options)
        if options:
            return " | ".join(json.dumps(option.value) for option in options)
    value_type = _VALUE_TYPES.get(schema_field.type)
    if value_type is not None:
        imports.add(value_type)
        if schema_field.multiple and schema_field.type in {"relation", "taxonomy", "user", "file"}:
            return f"{value_type}[]"
        return value_type
    return _PRIMITIVE_TYPES.get(schema_field.type, "string")


def _page_view(page: PageSchema, imports: Set[str]) -> _PageView:
    base = pascal_case(page.slug)
    view = _PageView(name=page.name, property=_property(page.slug), interface=f"{base}Content")
    for section in page.sections:
        view.sections.append(_section_view(base, section, imports))
    return view


def _section_view(page_base: str, section: SectionSchema, imports: Set[str]) -> _SectionView:
    interface = f"{page_base}{pascal_case(section.slug)}"
    if section.is_repeater:
        interface = f"{interface}Item"
    view = _SectionView(
        name=section.name,
        property=_property(section.slug),
        interface=interface,
        is_repeater=section.is_repeater,
    )
    seen: Set[str] = set()
    for schema_field in section.fields:
        ts_type = field_type_for(schema_field, imports)
        if ts_type is None:
            continue
        name = _property(parse_path(schema_field.path).field_name, fallback="value")
        if name in seen:
            continue
        seen.add(name)
        view.fields.append(
            _FieldView(
                name=name,
                type=ts_type,
                required=bool(schema_field.required),
                comment=_comment(schema_field.label),
            )
        )
    return view


def _property(slug: str, *, fallback: str = "content") -> str:
    name = camel_case(slug) or fallback
    if _IDENTIFIER.match(name):
        return name
    return json.dumps(name)


def _comment(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    return " ".join(text.replace("*/", "* /").split())


def _environment() -> Environment:
    loader = FileSystemLoader(str(Path(__file__).with_name("templates")))
    return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


__all__ = ["field_type_for", "generate_type_definitions", "write_types_file"]

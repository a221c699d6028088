"""Ordering and structural checks for generated schemas."""

from __future__ import annotations

from dataclasses import replace
from typing import List

from ..models import PageSchema, ProjectSchema, SectionSchema
from ..paths import GrammarError, parse_path


def sort_section_fields(section: SectionSchema) -> SectionSchema:
    return replace(section, fields=tuple(sorted(section.fields, key=lambda field: field.path)))


def sort_page_sections(page: PageSchema) -> PageSchema:
    sections = sorted((sort_section_fields(section) for section in page.sections), key=lambda s: s.slug)
    return replace(page, sections=tuple(sections))


def sort_schema(schema: ProjectSchema) -> ProjectSchema:
    """Return a copy with pages, sections and fields in alphabetical order."""
    pages = sorted((sort_page_sections(page) for page in schema.pages), key=lambda p: p.slug)
    return replace(schema, pages=tuple(pages))


def validate_schema_structure(schema: ProjectSchema) -> List[str]:
    """Return human-readable issues where the tree disagrees with field paths."""
    issues: List[str] = []
    seen: set[str] = set()

    for page in schema.pages:
        if not page.slug:
            issues.append("Page missing slug")
        for section in page.sections:
            if not section.slug:
                issues.append(f'Section in page "{page.slug}" missing slug')
            for field in section.fields:
                if not field.type:
                    issues.append(f'Field "{field.path}" missing type')
                if field.path in seen:
                    issues.append(f'Field "{field.path}" appears more than once')
                seen.add(field.path)
                try:
                    parsed = parse_path(field.path)
                except GrammarError as exc:
                    issues.append(f'Field "{field.path}" has invalid path: {exc}')
                    continue
                if parsed.page != page.slug:
                    issues.append(
                        f'Field "{field.path}" has page "{parsed.page}" but is in page "{page.slug}"'
                    )
                if parsed.section != section.slug:
                    issues.append(
                        f'Field "{field.path}" has section "{parsed.section}" '
                        f'but is in section "{section.slug}"'
                    )

    return issues


__all__ = [
    "sort_page_sections",
    "sort_schema",
    "sort_section_fields",
    "validate_schema_structure",
]

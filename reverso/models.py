"""Core data models shared across reverso components."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, Literal, Mapping, Optional, Tuple

ScanErrorType = Literal["parse", "validation", "io"]


@dataclass(frozen=True)
class ParsedPath:
    """Components of a dotted field path such as ``home.hero.title``."""

    page: str
    section: str
    field: str
    is_repeater: bool
    full: str
    repeater_field: Optional[str] = None

    @property
    def field_name(self) -> str:
        """Return the field name, preferring the repeater item field when present."""
        return self.repeater_field or self.field


@dataclass(frozen=True)
class DetectedField:
    """Raw marker detection emitted by the extractor for a single element."""

    path: str
    attributes: Mapping[str, Optional[str]] = field(hash=False)
    file: str
    line: int
    column: int
    element: str
    text_content: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", _frozen_mapping(self.attributes))


@dataclass(frozen=True)
class ScanError:
    """A collected, non-fatal problem found while scanning."""

    type: ScanErrorType
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    column: Optional[int] = None

    def describe(self) -> str:
        location = self.file or "<unknown>"
        if self.line is not None:
            location = f"{location}:{self.line}"
            if self.column is not None:
                location = f"{location}:{self.column}"
        return f"[{self.type}] {location} {self.message}"


@dataclass(frozen=True)
class FileScanResult:
    """Detections and errors for one source file."""

    file: str
    fields: Tuple[DetectedField, ...] = ()
    errors: Tuple[ScanError, ...] = ()
    duration: float = 0.0


@dataclass(frozen=True)
class ParseResult:
    """Aggregate extraction output across every scanned file."""

    fields: Tuple[DetectedField, ...]
    file_results: Tuple[FileScanResult, ...]
    errors: Tuple[ScanError, ...]
    duration: float


@dataclass(frozen=True)
class FieldSchema:
    """A detected field resolved into a typed schema entry."""

    path: str
    type: str
    file: str
    line: int
    column: int
    element: Optional[str] = None
    label: Optional[str] = None
    placeholder: Optional[str] = None
    required: Optional[bool] = None
    validation: Optional[str] = None
    options: Optional[str] = None
    condition: Optional[str] = None
    default: Optional[str] = None
    help: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    accept: Optional[str] = None
    multiple: Optional[bool] = None
    rows: Optional[int] = None
    width: Optional[int] = None
    readonly: Optional[bool] = None
    hidden: Optional[bool] = None
    default_content: Optional[str] = None
    extra: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", _frozen_mapping(self.extra))


@dataclass(frozen=True)
class RepeaterConfig:
    """Optional limits for a repeatable section."""

    min: Optional[int] = None
    max: Optional[int] = None
    item_label: Optional[str] = None


@dataclass(frozen=True)
class SectionSchema:
    """A group of fields inside a page."""

    slug: str
    name: str
    fields: Tuple[FieldSchema, ...]
    is_repeater: bool
    order: int
    repeater_config: Optional[RepeaterConfig] = None

    @property
    def field_count(self) -> int:
        return len(self.fields)


@dataclass(frozen=True)
class PageSchema:
    """A page and the sections detected for it."""

    slug: str
    name: str
    sections: Tuple[SectionSchema, ...]
    source_files: Tuple[str, ...]

    @property
    def field_count(self) -> int:
        return sum(section.field_count for section in self.sections)


@dataclass(frozen=True)
class ScanMeta:
    """Metadata describing the scan that produced a schema."""

    src_dir: str = ""
    files_scanned: int = 0
    files_with_markers: int = 0
    scan_duration: float = 0.0


@dataclass(frozen=True)
class ProjectSchema:
    """Immutable snapshot of the content schema produced by one scan."""

    version: str
    generated_at: str
    pages: Tuple[PageSchema, ...]
    meta: ScanMeta = field(default_factory=ScanMeta)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def total_fields(self) -> int:
        return sum(page.field_count for page in self.pages)

    def iter_fields(self) -> Iterator[FieldSchema]:
        """Yield every field in page, section, field order."""
        for page in self.pages:
            for section in page.sections:
                yield from section.fields

    def fields_by_path(self) -> Dict[str, FieldSchema]:
        return {schema_field.path: schema_field for schema_field in self.iter_fields()}


@dataclass(frozen=True)
class FieldChange:
    """A field present in both snapshots whose attributes differ."""

    path: str
    before: FieldSchema
    after: FieldSchema
    changes: Tuple[str, ...]


@dataclass(frozen=True)
class SchemaDiff:
    """Added, removed and modified fields between two snapshots."""

    added: Tuple[FieldSchema, ...] = ()
    removed: Tuple[FieldSchema, ...] = ()
    modified: Tuple[FieldChange, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)


@dataclass(frozen=True)
class ScanResult:
    """Outcome of a full scan pass."""

    schema: ProjectSchema
    files: Tuple[FileScanResult, ...]
    errors: Tuple[ScanError, ...]
    warnings: Tuple[ScanError, ...] = ()
    diff: SchemaDiff = field(default_factory=SchemaDiff)

    @property
    def success(self) -> bool:
        return not self.errors


def _frozen_mapping(values: Mapping) -> Mapping:
    if isinstance(values, MappingProxyType):
        return values
    return MappingProxyType(dict(values))


__all__ = [
    "DetectedField",
    "FieldChange",
    "FieldSchema",
    "FileScanResult",
    "PageSchema",
    "ParseResult",
    "ParsedPath",
    "ProjectSchema",
    "RepeaterConfig",
    "ScanError",
    "ScanErrorType",
    "ScanMeta",
    "ScanResult",
    "SchemaDiff",
    "SectionSchema",
]

"""Marker scanning and content schema generation for React projects."""

from .config import ConfigError, ScannerConfig, load_config
from .differ import compare_schemas, format_schema_diff
from .events import EventBus, FileChanged, ScanCompleted, ScanFailed, ScanStarted
from .models import (
    DetectedField,
    FieldSchema,
    PageSchema,
    ProjectSchema,
    ScanError,
    ScanResult,
    SchemaDiff,
    SectionSchema,
)
from .paths import GrammarError, build_path, parse_path
from .scanner import Scanner, create_scanner, scan
from .schema import generate_schema

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DetectedField",
    "EventBus",
    "FieldSchema",
    "FileChanged",
    "GrammarError",
    "PageSchema",
    "ProjectSchema",
    "ScanCompleted",
    "ScanError",
    "ScanFailed",
    "ScanResult",
    "ScanStarted",
    "Scanner",
    "ScannerConfig",
    "SchemaDiff",
    "SectionSchema",
    "build_path",
    "compare_schemas",
    "create_scanner",
    "format_schema_diff",
    "generate_schema",
    "load_config",
    "parse_path",
    "scan",
]

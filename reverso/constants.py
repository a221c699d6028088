"""Shared constants for marker scanning and schema output."""

from __future__ import annotations

SCHEMA_VERSION = "1.0.0"

MARKER_ATTRIBUTE = "data-reverso"
MARKER_PREFIX = "data-reverso-"

REPEATER_PLACEHOLDER = "$"
PATH_SEPARATOR = "."

DEFAULT_SRC_DIR = "src"
DEFAULT_OUTPUT_DIR = ".reverso"
CONFIG_FILE_NAME = ".reverso.yml"
SCHEMA_FILE_NAME = "schema.json"
TYPES_FILE_NAME = "types.ts"
DETECTION_CACHE_FILE_NAME = "detections.json"

DEFAULT_WATCH_DEBOUNCE_MS = 300
DEFAULT_FIELD_TYPE = "text"

DEFAULT_INCLUDE_PATTERNS: tuple[str, ...] = ("**/*.tsx", "**/*.jsx")

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "**/node_modules/**",
    "**/.next/**",
    "**/dist/**",
    "**/build/**",
    "**/.reverso/**",
    "**/*.test.tsx",
    "**/*.test.jsx",
    "**/*.spec.tsx",
    "**/*.spec.jsx",
    "**/*.stories.tsx",
    "**/*.stories.jsx",
)

FIELD_TYPES: tuple[str, ...] = (
    # text inputs
    "text",
    "textarea",
    "number",
    "range",
    "email",
    "url",
    "phone",
    # rich content
    "wysiwyg",
    "markdown",
    "code",
    "blocks",
    # selection
    "select",
    "multiselect",
    "checkbox",
    "checkboxgroup",
    "radio",
    "boolean",
    # media
    "image",
    "file",
    "gallery",
    "video",
    "audio",
    "oembed",
    # date/time
    "date",
    "datetime",
    "time",
    # relationships
    "relation",
    "taxonomy",
    "link",
    "pagelink",
    "user",
    # advanced
    "color",
    "map",
    "repeater",
    "group",
    "flexible",
    # ui helpers
    "message",
    "tab",
    "accordion",
    "buttongroup",
)

# Attribute names (without the marker prefix) that map onto FieldSchema entries.
KNOWN_ATTRIBUTES: tuple[str, ...] = (
    "type",
    "label",
    "placeholder",
    "required",
    "validation",
    "options",
    "condition",
    "default",
    "help",
    "min",
    "max",
    "step",
    "accept",
    "multiple",
    "rows",
    "width",
    "readonly",
    "hidden",
)

BOOLEAN_ATTRIBUTES: tuple[str, ...] = ("required", "multiple", "readonly", "hidden")
NUMERIC_ATTRIBUTES: tuple[str, ...] = ("min", "max", "step", "rows", "width")

WIDTH_RANGE: tuple[int, int] = (1, 12)


def is_valid_field_type(value: str) -> bool:
    """Return True when ``value`` is one of the known field type tags."""
    return value in FIELD_TYPES


__all__ = [
    "BOOLEAN_ATTRIBUTES",
    "CONFIG_FILE_NAME",
    "DEFAULT_EXCLUDE_PATTERNS",
    "DEFAULT_FIELD_TYPE",
    "DEFAULT_INCLUDE_PATTERNS",
    "DEFAULT_OUTPUT_DIR",
    "DEFAULT_SRC_DIR",
    "DEFAULT_WATCH_DEBOUNCE_MS",
    "DETECTION_CACHE_FILE_NAME",
    "FIELD_TYPES",
    "KNOWN_ATTRIBUTES",
    "MARKER_ATTRIBUTE",
    "MARKER_PREFIX",
    "NUMERIC_ATTRIBUTES",
    "PATH_SEPARATOR",
    "REPEATER_PLACEHOLDER",
    "SCHEMA_FILE_NAME",
    "SCHEMA_VERSION",
    "TYPES_FILE_NAME",
    "WIDTH_RANGE",
    "is_valid_field_type",
]

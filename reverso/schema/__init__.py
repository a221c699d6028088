"""Schema generation from marker detections."""

from .generator import (
    GeneratedSchema,
    convert_to_field_schema,
    generate_schema,
    partition_fields,
    update_schema_meta,
)
from .normalizer import sort_schema, validate_schema_structure
from .options import FieldOption, parse_options

__all__ = [
    "FieldOption",
    "GeneratedSchema",
    "convert_to_field_schema",
    "generate_schema",
    "parse_options",
    "partition_fields",
    "sort_schema",
    "update_schema_meta",
    "validate_schema_structure",
]

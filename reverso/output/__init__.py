"""Schema and type-declaration output."""

from .json_writer import read_json_schema, schema_from_dict, schema_to_dict, write_json_schema
from .types_writer import generate_type_definitions, write_types_file
from .writer import OutputWriter

__all__ = [
    "OutputWriter",
    "generate_type_definitions",
    "read_json_schema",
    "schema_from_dict",
    "schema_to_dict",
    "write_json_schema",
    "write_types_file",
]

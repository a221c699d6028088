"""Output collaborator used by the scanner to persist artifacts."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..logging import get_logger
from ..models import ProjectSchema
from .json_writer import read_json_schema, write_json_schema
from .types_writer import write_types_file


class OutputWriter:
    """Reads and writes the artifacts stored in a project's output directory."""

    def __init__(
        self,
        output_dir: Path,
        *,
        pretty: bool = True,
        generate_types: bool = True,
        include_comments: bool = True,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.pretty = pretty
        self.generate_types = generate_types
        self.include_comments = include_comments
        self.logger = get_logger("output.writer")

    def read_schema(self) -> Optional[ProjectSchema]:
        return read_json_schema(self.output_dir)

    def write_schema(self, schema: ProjectSchema) -> Path:
        return write_json_schema(schema, self.output_dir, pretty=self.pretty)

    def write_types(self, schema: ProjectSchema) -> Optional[Path]:
        """Write ``types.ts`` when type generation is enabled."""
        if not self.generate_types:
            return None
        return write_types_file(schema, self.output_dir, include_comments=self.include_comments)

    def write(self, schema: ProjectSchema) -> None:
        schema_file = self.write_schema(schema)
        types_file = self.write_types(schema)
        self.logger.debug(
            "Persisted %s%s", schema_file, f" and {types_file}" if types_file else ""
        )


__all__ = ["OutputWriter"]

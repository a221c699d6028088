"""Field-level comparison of two schema snapshots."""

from __future__ import annotations

from typing import Dict, List, Optional

from .constants import KNOWN_ATTRIBUTES
from .models import FieldChange, FieldSchema, ProjectSchema, SchemaDiff


def compare_schemas(previous: Optional[ProjectSchema], current: ProjectSchema) -> SchemaDiff:
    """Return the fields added, removed and modified between two snapshots.

    Fields are matched strictly by path, so page/section ordering does not
    matter. With no previous snapshot every field counts as added.
    """
    after = _index(current)
    if previous is None:
        return SchemaDiff(added=tuple(after.values()))

    before = _index(previous)
    added = [field for path, field in after.items() if path not in before]
    removed = [field for path, field in before.items() if path not in after]
    modified: List[FieldChange] = []
    for path, after_field in after.items():
        before_field = before.get(path)
        if before_field is None:
            continue
        changes = field_changes(before_field, after_field)
        if changes:
            modified.append(
                FieldChange(path=path, before=before_field, after=after_field, changes=tuple(changes))
            )

    return SchemaDiff(added=tuple(added), removed=tuple(removed), modified=tuple(modified))


def field_changes(before: FieldSchema, after: FieldSchema) -> List[str]:
    """List the attribute names whose values differ.

    Source location and element text are not attributes: moving a marker
    or editing its copy is not a schema change.
    """
    changes = [name for name in KNOWN_ATTRIBUTES if getattr(before, name) != getattr(after, name)]
    extra_names = sorted(set(before.extra) | set(after.extra))
    changes.extend(name for name in extra_names if before.extra.get(name) != after.extra.get(name))
    return changes


def format_schema_diff(diff: SchemaDiff) -> str:
    """Render a diff as the multi-line summary printed after a scan."""
    lines: List[str] = []
    if diff.added:
        lines.append(f"Added ({len(diff.added)}):")
        lines.extend(f"  + {field.path} ({field.type})" for field in diff.added)
    if diff.removed:
        lines.append(f"Removed ({len(diff.removed)}):")
        lines.extend(f"  - {field.path} ({field.type})" for field in diff.removed)
    if diff.modified:
        lines.append(f"Modified ({len(diff.modified)}):")
        lines.extend(f"  ~ {change.path}: {', '.join(change.changes)}" for change in diff.modified)
    if not diff.has_changes:
        lines.append("No changes detected.")
    return "\n".join(lines)


def _index(schema: ProjectSchema) -> Dict[str, FieldSchema]:
    return schema.fields_by_path()


__all__ = ["compare_schemas", "field_changes", "format_schema_diff"]

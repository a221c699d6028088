"""Tests for schema snapshot comparison."""

from __future__ import annotations

from dataclasses import replace

from reverso.differ import compare_schemas, format_schema_diff
from reverso.models import DetectedField, ProjectSchema
from reverso.schema import generate_schema


def _schema(*specs: tuple[str, dict]) -> ProjectSchema:
    fields = [
        DetectedField(
            path=path,
            attributes=attributes,
            file="/src/Page.tsx",
            line=index + 1,
            column=1,
            element="div",
        )
        for index, (path, attributes) in enumerate(specs)
    ]
    return generate_schema(fields).schema


def test_no_previous_schema_marks_everything_added() -> None:
    schema = _schema(("home.hero.title", {}), ("home.hero.subtitle", {}))

    diff = compare_schemas(None, schema)

    assert len(diff.added) == 2
    assert diff.removed == ()
    assert diff.modified == ()
    assert diff.has_changes is True


def test_identical_snapshots_have_no_changes() -> None:
    schema = _schema(("home.hero.title", {"type": "text"}), ("about.team.$.name", {}))

    diff = compare_schemas(schema, schema)

    assert diff.added == ()
    assert diff.removed == ()
    assert diff.modified == ()
    assert diff.has_changes is False


def test_label_change_is_one_modification() -> None:
    before = _schema(("home.hero.title", {"label": "Title"}), ("home.hero.body", {}))
    after = _schema(("home.hero.title", {"label": "Headline"}), ("home.hero.body", {}))

    diff = compare_schemas(before, after)

    assert diff.added == ()
    assert diff.removed == ()
    assert len(diff.modified) == 1
    change = diff.modified[0]
    assert change.path == "home.hero.title"
    assert change.changes == ("label",)
    assert change.before.label == "Title"
    assert change.after.label == "Headline"


def test_added_and_removed_are_keyed_by_path() -> None:
    before = _schema(("home.hero.title", {}), ("home.hero.old", {}))
    after = _schema(("home.hero.new", {}), ("home.hero.title", {}))

    diff = compare_schemas(before, after)

    assert [field.path for field in diff.added] == ["home.hero.new"]
    assert [field.path for field in diff.removed] == ["home.hero.old"]
    assert diff.modified == ()


def test_ordering_and_location_do_not_count_as_changes() -> None:
    before = _schema(("home.hero.title", {}), ("about.team.name", {}))
    moved = replace(
        before,
        pages=tuple(reversed(before.pages)),
    )
    relocated_page = moved.pages[1]
    section = relocated_page.sections[0]
    shifted = replace(section, fields=tuple(replace(field, line=99) for field in section.fields))
    after = replace(moved, pages=(moved.pages[0], replace(relocated_page, sections=(shifted,))))

    assert compare_schemas(before, after).has_changes is False


def test_extra_attributes_are_compared_by_name() -> None:
    before = _schema(("home.hero.title", {"foo": "a"}))
    after = _schema(("home.hero.title", {"foo": "b", "type": "textarea"}))

    diff = compare_schemas(before, after)

    assert diff.modified[0].changes == ("type", "foo")


def test_format_schema_diff() -> None:
    before = _schema(("home.hero.title", {"label": "A"}), ("home.hero.old", {}))
    after = _schema(("home.hero.title", {"label": "B"}), ("home.hero.image", {"type": "image"}))

    text = format_schema_diff(compare_schemas(before, after))

    assert text.splitlines() == [
        "Added (1):",
        "  + home.hero.image (image)",
        "Removed (1):",
        "  - home.hero.old (text)",
        "Modified (1):",
        "  ~ home.hero.title: label",
    ]
    assert format_schema_diff(compare_schemas(after, after)) == "No changes detected."

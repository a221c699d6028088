"""Tests for field path parsing, building and grouping."""

from __future__ import annotations

import pytest

from reverso.paths import (
    GrammarError,
    build_path,
    get_field_name,
    get_page_section_path,
    get_parent_path,
    group_paths_by_page,
    group_paths_by_section,
    is_repeater_path,
    is_valid_path,
    match_path,
    parse_path,
    path_error,
    sort_paths,
)


def test_parse_simple_path() -> None:
    parsed = parse_path("home.hero.title")
    assert parsed.page == "home"
    assert parsed.section == "hero"
    assert parsed.field == "title"
    assert parsed.is_repeater is False
    assert parsed.repeater_field is None
    assert parsed.full == "home.hero.title"


def test_parse_repeater_path() -> None:
    parsed = parse_path("home.features.$.title")
    assert parsed.page == "home"
    assert parsed.section == "features"
    assert parsed.field == "$"
    assert parsed.is_repeater is True
    assert parsed.repeater_field == "title"
    assert parsed.field_name == "title"


def test_parse_trims_whitespace_and_keeps_nested_fields() -> None:
    parsed = parse_path("  about.team.lead.name ")
    assert parsed.full == "about.team.lead.name"
    assert parsed.field == "lead.name"


@pytest.mark.parametrize(
    "path, message",
    [
        ("", "empty"),
        ("   ", "empty"),
        ("home.hero", "at least 3 parts"),
        ("home..title", "empty segment"),
        ("home. .title", "empty segment"),
        ("home.$.$.title", "one $"),
        ("home.$.features.title", "position 3"),
        ("home.features.title.$", "position 3"),
    ],
)
def test_parse_rejects_invalid_paths(path: str, message: str) -> None:
    with pytest.raises(GrammarError) as excinfo:
        parse_path(path)
    assert message in str(excinfo.value)


def test_grammar_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        parse_path("home.hero")


@pytest.mark.parametrize(
    "segments",
    [
        ("home", "hero", "title"),
        ("home", "features", "$", "title"),
        ("blog", "post", "author", "name"),
        ("home", "gallery", "$"),
    ],
)
def test_build_then_parse_round_trips(segments: tuple[str, ...]) -> None:
    parsed = parse_path(build_path(*segments))
    assert parsed.full.split(".") == list(segments)
    assert parsed.page == segments[0]
    assert parsed.section == segments[1]


def test_build_path_applies_the_same_rules() -> None:
    with pytest.raises(GrammarError):
        build_path("home", "hero")
    with pytest.raises(GrammarError):
        build_path("home", "", "title")
    with pytest.raises(GrammarError):
        build_path("home", "$", "hero", "title")


def test_validity_helpers() -> None:
    assert is_valid_path("home.hero.title")
    assert not is_valid_path("home.title")
    assert path_error("home.hero.title") is None
    assert "at least 3 parts" in (path_error("home.title") or "")
    assert is_repeater_path("home.features.$.title")
    assert not is_repeater_path("home.features.title")


def test_field_and_parent_helpers() -> None:
    assert get_field_name("home.hero.title") == "title"
    assert get_field_name("home.features.$.icon") == "icon"
    assert get_parent_path("home.features.$.icon") == "home.features.$"
    assert get_parent_path("home.hero.title") == "home.hero"
    assert get_page_section_path("home.features.$.icon") == "home.features"


def test_match_path_with_wildcards() -> None:
    assert match_path("home.hero.title", "home.hero.title")
    assert match_path("home.hero.title", "home.*.title")
    assert match_path("home.features.$.title", "*.features.$.*")
    assert not match_path("home.hero.title", "home.*")
    assert not match_path("home.hero.title", "about.*.title")


def test_sort_paths_orders_by_page_section_then_field() -> None:
    paths = [
        "home.hero.title",
        "about.team.name",
        "home.features.$.icon",
        "home.hero.subtitle",
        "home.features.$.body",
    ]
    assert sort_paths(paths) == [
        "about.team.name",
        "home.features.$.body",
        "home.features.$.icon",
        "home.hero.subtitle",
        "home.hero.title",
    ]


def test_grouping_keeps_first_seen_order() -> None:
    paths = ["home.hero.title", "about.team.name", "home.cta.label", "home.hero.subtitle"]

    by_page = group_paths_by_page(paths)
    assert list(by_page) == ["home", "about"]
    assert by_page["home"] == ["home.hero.title", "home.cta.label", "home.hero.subtitle"]

    by_section = group_paths_by_section(paths)
    assert list(by_section["home"]) == ["hero", "cta"]
    assert by_section["home"]["hero"] == ["home.hero.title", "home.hero.subtitle"]
    assert by_section["about"] == {"team": ["about.team.name"]}

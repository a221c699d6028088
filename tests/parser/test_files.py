"""Tests for source file discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from reverso.constants import DEFAULT_EXCLUDE_PATTERNS, DEFAULT_INCLUDE_PATTERNS
from reverso.parser.files import find_source_files, glob_matches, is_included


@pytest.mark.parametrize(
    "path, pattern, expected",
    [
        ("Hero.tsx", "**/*.tsx", True),
        ("components/Hero.tsx", "**/*.tsx", True),
        ("components/deep/Hero.tsx", "components/**/*.tsx", True),
        ("components/Hero.tsx", "*.tsx", False),
        ("components/Hero.jsx", "**/*.tsx", False),
        ("node_modules/pkg/index.tsx", "**/node_modules/**", True),
        ("Hero.test.tsx", "**/*.test.tsx", True),
        ("pages/about.tsx", "pages/*.tsx", True),
    ],
)
def test_glob_matches(path: str, pattern: str, expected: bool) -> None:
    assert glob_matches(path, pattern) is expected


def test_is_included_respects_exclusions() -> None:
    include = list(DEFAULT_INCLUDE_PATTERNS)
    exclude = list(DEFAULT_EXCLUDE_PATTERNS)
    assert is_included("components/Hero.tsx", include, exclude)
    assert not is_included("components/Hero.test.tsx", include, exclude)
    assert not is_included("components/Hero.stories.jsx", include, exclude)
    assert not is_included("lib/util.ts", include, exclude)


def test_find_source_files_filters_and_sorts(project_builder) -> None:
    project_builder.write(
        {
            "pages/Home.tsx": "export const Home = () => <main />;\n",
            "components/Hero.jsx": "export const Hero = () => <h1 />;\n",
            "components/Hero.test.tsx": "test('x', () => {});\n",
            "lib/format.ts": "export const x = 1;\n",
            "node_modules/pkg/Widget.tsx": "export const W = () => <div />;\n",
        }
    )

    files = find_source_files(
        project_builder.src, DEFAULT_INCLUDE_PATTERNS, DEFAULT_EXCLUDE_PATTERNS
    )

    relative = [path.relative_to(project_builder.src.resolve()).as_posix() for path in files]
    assert relative == ["components/Hero.jsx", "pages/Home.tsx"]


def test_find_source_files_requires_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        find_source_files(tmp_path / "missing", ["**/*.tsx"], [])

    file_path = tmp_path / "file.tsx"
    file_path.write_text("", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        find_source_files(file_path, ["**/*.tsx"], [])

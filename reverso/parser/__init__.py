"""Marker extraction from JSX/TSX source trees."""

from __future__ import annotations

from .ast_parser import AstParser, create_parser
from .files import find_source_files, glob_matches, is_included, matches_any
from .tree_sitter import JsxMarkerExtractor

__all__ = [
    "AstParser",
    "JsxMarkerExtractor",
    "create_parser",
    "find_source_files",
    "glob_matches",
    "is_included",
    "matches_any",
]

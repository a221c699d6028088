"""Tree-sitter powered marker extraction for JSX/TSX sources."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ..constants import MARKER_ATTRIBUTE, MARKER_PREFIX
from ..logging import get_logger
from ..models import DetectedField, FileScanResult, ScanError
from ..paths import path_error

_GRAMMARS: Dict[str, Callable[[], object]] = {
    "tsx": tree_sitter_typescript.language_tsx,
    "typescript": tree_sitter_typescript.language_typescript,
    "javascript": tree_sitter_javascript.language,
}

_LANGUAGE_BY_SUFFIX = {
    ".tsx": "tsx",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".jsx": "javascript",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
}

_ELEMENT_TYPES = {"jsx_opening_element", "jsx_self_closing_element"}
_LITERAL_TYPES = {"number"}
_BOOLEAN_TYPES = {"true", "false"}


@dataclass
class _AttributeValue:
    value: Optional[str]
    static: bool
    bare: bool = False


@dataclass
class _Marker:
    path: Optional[str]
    attributes: Dict[str, Optional[str]]
    error: Optional[str] = None


class JsxMarkerExtractor:
    """Finds ``data-reverso`` markers in JSX elements of a single source file."""

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}
        self.logger = get_logger("parser.tree_sitter")

    @staticmethod
    def language_for_file(path: str | Path) -> Optional[str]:
        return _LANGUAGE_BY_SUFFIX.get(Path(path).suffix.lower())

    def supports(self, path: str | Path) -> bool:
        return self.language_for_file(path) is not None

    def extract(self, path: Path) -> FileScanResult:
        """Read ``path`` from disk and extract its markers."""
        file_name = str(path)
        started = time.perf_counter()
        try:
            source = path.read_bytes()
        except OSError as exc:
            return FileScanResult(
                file=file_name,
                errors=(ScanError(type="io", message=f"Failed to read file: {exc}", file=file_name),),
                duration=_elapsed_ms(started),
            )
        return self.extract_source(source, file_name, started=started)

    def extract_source(
        self,
        source: bytes | str,
        file: str,
        *,
        language_key: Optional[str] = None,
        started: Optional[float] = None,
    ) -> FileScanResult:
        """Extract markers from in-memory source text attributed to ``file``."""
        started = time.perf_counter() if started is None else started
        source_bytes = source.encode("utf-8") if isinstance(source, str) else source
        language_key = language_key or self.language_for_file(file) or "tsx"

        fields: List[DetectedField] = []
        errors: List[ScanError] = []
        try:
            tree = self._get_parser(language_key).parse(source_bytes)
            for node in _iter_elements(tree.root_node):
                detected, error = self._process_element(node, source_bytes, file)
                if error is not None:
                    errors.append(error)
                elif detected is not None:
                    fields.append(detected)
        except Exception as exc:  # pragma: no cover
            self.logger.debug("Failed to parse %s", file, exc_info=True)
            return FileScanResult(
                file=file,
                errors=(ScanError(type="parse", message=str(exc), file=file),),
                duration=_elapsed_ms(started),
            )

        self.logger.debug("Extracted %d marker(s) from %s", len(fields), file)
        return FileScanResult(
            file=file,
            fields=tuple(fields),
            errors=tuple(errors),
            duration=_elapsed_ms(started),
        )

    def _get_parser(self, language_key: str) -> Parser:
        parser = self._parsers.get(language_key)
        if parser is not None:
            return parser
        factory = _GRAMMARS.get(language_key)
        if factory is None:
            raise ValueError(f"Unsupported language: {language_key}")
        parser = Parser(Language(factory()))
        self._parsers[language_key] = parser
        return parser

    def _process_element(
        self, node: Node, source_bytes: bytes, file: str
    ) -> Tuple[Optional[DetectedField], Optional[ScanError]]:
        marker = self._read_marker(node, source_bytes)
        if marker is None:
            return None, None

        line = node.start_point[0] + 1
        column = _character_column(node, source_bytes)
        name_node = node.child_by_field_name("name")
        tag_name = _node_text(name_node, source_bytes) if name_node is not None else ""

        if marker.error is None and node.has_error:
            marker.error = "Malformed attribute syntax on marked element"
        if marker.error is not None:
            return None, ScanError(
                type="parse",
                message=f"<{tag_name or '?'}>: {marker.error}",
                file=file,
                line=line,
                column=column,
            )
        if not marker.path:
            self.logger.debug("Ignoring marker without a path at %s:%d", file, line)
            return None, None

        problem = path_error(marker.path)
        if problem:
            self.logger.debug("Marker at %s:%d does not satisfy the path grammar: %s", file, line, problem)

        text_content = None
        if node.type == "jsx_opening_element":
            text_content = _element_text(node, source_bytes)

        return (
            DetectedField(
                path=marker.path,
                attributes=marker.attributes,
                file=file,
                line=line,
                column=column,
                element=tag_name,
                text_content=text_content,
            ),
            None,
        )

    def _read_marker(self, node: Node, source_bytes: bytes) -> Optional[_Marker]:
        marker: Optional[_Marker] = None
        attributes: Dict[str, Optional[str]] = {}
        path_value: Optional[_AttributeValue] = None

        for attribute in node.named_children:
            if attribute.type != "jsx_attribute":
                continue
            parts = attribute.named_children
            if not parts:
                continue
            name = _node_text(parts[0], source_bytes)
            value_node = parts[1] if len(parts) > 1 else None
            if name == MARKER_ATTRIBUTE:
                path_value = _attribute_value(value_node, source_bytes)
                marker = _Marker(path=None, attributes=attributes)
            elif name.startswith(MARKER_PREFIX):
                key = name[len(MARKER_PREFIX) :]
                attributes[key] = _attribute_value(value_node, source_bytes).value

        if marker is None or path_value is None:
            return None
        if path_value.bare:
            return marker
        if not path_value.static:
            if path_value.value:
                marker.error = f"Marker path must be a static string, got {{{path_value.value}}}"
            else:
                marker.error = "Marker path expression is empty"
            return marker
        marker.path = (path_value.value or "").strip() or None
        return marker


def _iter_elements(root: Node) -> Iterator[Node]:
    # Explicit stack keeps deeply nested JSX from hitting the recursion limit.
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in _ELEMENT_TYPES:
            yield node
        stack.extend(reversed(node.children))


def _attribute_value(node: Optional[Node], source_bytes: bytes) -> _AttributeValue:
    if node is None:
        return _AttributeValue(value="true", static=True, bare=True)
    if node.type == "string":
        return _AttributeValue(value=_strip_quotes(_node_text(node, source_bytes)), static=True)
    if node.type != "jsx_expression":
        return _AttributeValue(value=_node_text(node, source_bytes), static=False)

    inner = [child for child in node.named_children if child.type != "comment"]
    if not inner:
        return _AttributeValue(value=None, static=False)
    expression = inner[0]
    text = _node_text(expression, source_bytes)
    if expression.type == "string":
        return _AttributeValue(value=_strip_quotes(text), static=True)
    if expression.type == "template_string":
        if any(child.type == "template_substitution" for child in expression.children):
            return _AttributeValue(value=text, static=False)
        return _AttributeValue(value=_strip_quotes(text), static=True)
    if expression.type in _LITERAL_TYPES:
        return _AttributeValue(value=text, static=True)
    if expression.type in _BOOLEAN_TYPES:
        return _AttributeValue(value=expression.type, static=True)
    return _AttributeValue(value=text, static=False)


def _element_text(opening: Node, source_bytes: bytes) -> Optional[str]:
    element = opening.parent
    if element is None or element.type != "jsx_element":
        return None
    parts: List[str] = []
    for child in element.children:
        if child.type == "jsx_text":
            text = " ".join(_node_text(child, source_bytes).split())
            if text:
                parts.append(text)
    return " ".join(parts) if parts else None


def _node_text(node: Node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def _character_column(node: Node, source_bytes: bytes) -> int:
    # start_point counts UTF-8 bytes, reported columns count characters.
    line_start = source_bytes.rfind(b"\n", 0, node.start_byte) + 1
    return len(source_bytes[line_start : node.start_byte].decode("utf-8", errors="replace")) + 1


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'", "`"}:
        return text[1:-1]
    return text


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


__all__ = ["JsxMarkerExtractor"]

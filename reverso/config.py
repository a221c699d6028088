"""Configuration loading for reverso (.reverso.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .constants import (
    CONFIG_FILE_NAME,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_FIELD_TYPE,
    DEFAULT_INCLUDE_PATTERNS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SRC_DIR,
    DEFAULT_WATCH_DEBOUNCE_MS,
    is_valid_field_type,
)


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class WatchConfig:
    """Watch mode settings."""

    enabled: bool = False
    debounce: int = DEFAULT_WATCH_DEBOUNCE_MS


@dataclass
class SchemaOptions:
    """Knobs applied while turning detections into a schema."""

    sort: bool = True
    include_defaults: bool = True
    default_field_type: str = DEFAULT_FIELD_TYPE


@dataclass
class ScannerConfig:
    """Represents the scanner settings defined in .reverso.yml."""

    root: Path = field(default_factory=Path.cwd)
    src_dir: Path = Path(DEFAULT_SRC_DIR)
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    include: List[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE_PATTERNS))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS))
    generate_types: bool = True
    pretty_print: bool = True
    cache: bool = False
    watch: WatchConfig = field(default_factory=WatchConfig)
    schema: SchemaOptions = field(default_factory=SchemaOptions)

    def resolved_src_dir(self) -> Path:
        return (self.root / self.src_dir).resolve()

    def resolved_output_dir(self) -> Path:
        return (self.root / self.output_dir).resolve()


def load_config(config_path: Path) -> ScannerConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ScannerConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILE_NAME} must contain a mapping at the root")

    config = ScannerConfig(root=root)

    scanner_data = _as_dict(data.get("scanner"))
    if scanner_data:
        src_dir = _as_str(scanner_data.get("src_dir"))
        if src_dir:
            config.src_dir = Path(src_dir)
        output_dir = _as_str(scanner_data.get("output_dir"))
        if output_dir:
            config.output_dir = Path(output_dir)
        if "include" in scanner_data:
            config.include = _as_str_list(scanner_data.get("include"))
        if "exclude" in scanner_data:
            config.exclude = _as_str_list(scanner_data.get("exclude"))
        config.generate_types = _bool_or(scanner_data.get("generate_types"), config.generate_types)
        config.pretty_print = _bool_or(scanner_data.get("pretty_print"), config.pretty_print)
        config.cache = _bool_or(scanner_data.get("cache"), config.cache)

        watch_data = _as_dict(scanner_data.get("watch"))
        if watch_data:
            config.watch.enabled = _bool_or(watch_data.get("enabled"), False)
            debounce = _as_int(watch_data.get("debounce"))
            if debounce is not None:
                if debounce < 0:
                    raise ConfigError("scanner.watch.debounce must not be negative")
                config.watch.debounce = debounce

    schema_data = _as_dict(data.get("schema"))
    if schema_data:
        config.schema.sort = _bool_or(schema_data.get("sort"), config.schema.sort)
        config.schema.include_defaults = _bool_or(
            schema_data.get("include_defaults"), config.schema.include_defaults
        )
        default_type = _as_str(schema_data.get("default_field_type"))
        if default_type:
            if not is_valid_field_type(default_type):
                raise ConfigError(f"Unknown default_field_type: {default_type}")
            config.schema.default_field_type = default_type

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _bool_or(value: Any, default: bool) -> bool:
    parsed = _as_bool(value)
    return default if parsed is None else parsed


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = ["ConfigError", "SchemaOptions", "ScannerConfig", "WatchConfig", "load_config"]

"""TOML config loading for sqltypetree.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from sqltypetree.parser import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT

CONFIG_FILENAME = "sqltypetree.toml"


@dataclass
class ParserConfig:
    max_depth: int = DEFAULT_MAX_DEPTH


@dataclass
class DisplayConfig:
    strip_max_length: bool = True
    color: bool = True


@dataclass
class TypeTreeConfig:
    parser: ParserConfig = field(default_factory=ParserConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find sqltypetree.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_FILENAME} found in any parent directory")
        path = parent


def load_config(path: Path) -> TypeTreeConfig:
    """Parse a sqltypetree.toml file into a TypeTreeConfig."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = TypeTreeConfig()

    if "parser" in data:
        prs = data["parser"]
        max_depth = prs.get("max_depth", DEFAULT_MAX_DEPTH)
        if not isinstance(max_depth, int) or not 1 <= max_depth <= MAX_DEPTH_LIMIT:
            raise ValueError(
                f"{path}: parser.max_depth must be an integer between 1 and {MAX_DEPTH_LIMIT}"
            )
        config.parser = ParserConfig(max_depth=max_depth)

    if "display" in data:
        dsp = data["display"]
        config.display = DisplayConfig(
            strip_max_length=dsp.get("strip_max_length", True),
            color=dsp.get("color", True),
        )

    return config


def load_config_or_default(start_path: Path | None = None) -> TypeTreeConfig:
    """Load the nearest sqltypetree.toml, or defaults when there is none."""
    try:
        return load_config(find_config(start_path))
    except FileNotFoundError:
        return TypeTreeConfig()

from __future__ import annotations

from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict

from .storage import read_json, write_json


TARGETS: Dict[str, str] = {
    "godot": "Godot Engine 4 project files",
    "unity": "Unity project structure",
    "web": "Static web page with the storylet catalog",
    "docs": "Markdown documentation site",
}

CONFIG_FILENAME = "narrative_config.json"


def save_config(path: Path, options: Any) -> Path:
    """Write generation options next to a generated project."""
    data = asdict(options) if is_dataclass(options) else dict(options)
    # Path values are stored as strings
    data = {k: (str(v) if isinstance(v, Path) else v) for k, v in data.items()}
    return write_json(path, data)


def load_config(path: Path) -> Dict[str, Any]:
    return read_json(path, {})

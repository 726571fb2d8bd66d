from __future__ import annotations

import json
import logging
import re
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Optional


def _json_default(value: Any) -> Any:
    # sets (flags) have no JSON form; sort them so output is stable
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    if is_dataclass(data):
        data = asdict(data)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=_json_default)
    return path


def read_json(path: Path, default: Optional[Any] = None) -> Any:
    """Read JSON from file with error handling.

    Returns default value if file doesn't exist or JSON is invalid.
    """
    if not path.exists():
        return default

    try:
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logging.error(f"Failed to parse JSON from {path}: {e}")
        return default
    except IOError as e:
        logging.error(f"Failed to read file {path}: {e}")
        return default


def read_text(path: Path) -> str:
    with path.open("r", encoding="utf-8") as f:
        return f.read()


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(text)
    return path


def slugify(value: str, fallback: str = "myth") -> str:
    """Convert a string to a safe filesystem slug.

    Security: output never contains path separators or leading dots.
    """
    value = value.strip().lower()
    value = re.sub(r"[^a-z0-9\-\s_]", "", value)
    value = re.sub(r"[\s_]+", "-", value)
    value = re.sub(r"-+", "-", value)
    value = value.strip("-") or fallback
    return value[:100]


def identifier(value: str, fallback: str = "Myth") -> str:
    """Turn a display name into a PascalCase identifier for generated engine code."""
    words = re.findall(r"[A-Za-z0-9]+", value)
    ident = "".join(w[:1].upper() + w[1:] for w in words) or fallback
    if ident[0].isdigit():
        ident = "_" + ident
    return ident

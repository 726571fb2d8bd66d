from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()

# Configuration mapping: settings_attr -> env_var
ENV_VAR_MAPPING = {
    'default_target': 'MYTHFORGE_TARGET',
    'default_depth': 'MYTHFORGE_DEPTH',
    'default_output_dir': 'MYTHFORGE_OUTPUT_DIR',
    'log_level': 'MYTHFORGE_LOG_LEVEL',
}


def _config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "mythforge"
    return Path.home() / ".config" / "mythforge"


CONFIG_PATH = _config_dir() / "config.json"


@dataclass
class UserSettings:
    # Output defaults
    default_target: str = "web"  # godot, unity, web, docs
    default_depth: str = "medium"  # surface, medium, deep
    default_output_dir: str = "output"

    # Generation defaults
    storylet_count: int = 20
    creativity_level: float = 0.7  # 0-1, scales agent-proposed storylet weights
    max_iterations: int = 3
    recent_limit: int = 5  # how many recent storylets are barred from repeating

    log_level: str = "INFO"


def load_user_settings() -> UserSettings:
    """Load user settings from config file.

    Returns default settings if file doesn't exist or is corrupted.
    Unknown keys in the file are ignored.
    """
    try:
        if CONFIG_PATH.exists():
            data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
            known = {f.name for f in fields(UserSettings)}
            return UserSettings(**{k: v for k, v in data.items() if k in known})
    except json.JSONDecodeError as e:
        logging.warning(f"Failed to parse settings file {CONFIG_PATH}: {e}")
    except (OSError, TypeError, AttributeError) as e:
        logging.error(f"Unexpected error loading settings: {e}")

    return UserSettings()


def save_user_settings(s: UserSettings) -> None:
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(json.dumps(asdict(s), indent=2), encoding="utf-8")


def apply_env_overrides(settings: Optional[UserSettings] = None) -> UserSettings:
    """Return settings with MYTHFORGE_* environment variables taking precedence."""
    s = settings or load_user_settings()
    for settings_attr, env_var in ENV_VAR_MAPPING.items():
        value = os.environ.get(env_var)
        if value:
            setattr(s, settings_attr, value)
    return s


def get_settings() -> UserSettings:
    return apply_env_overrides(load_user_settings())

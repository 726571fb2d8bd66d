"""Custom exceptions for Mythforge with user-friendly error messages."""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Iterable, Optional, Union

logger = logging.getLogger(__name__)


class MythforgeError(Exception):
    """Base exception for all Mythforge errors."""

    def __init__(self, message: str, user_message: Optional[str] = None, help_text: Optional[str] = None):
        """Initialize error with technical and user-friendly messages.

        Args:
            message: Technical error message for logs
            user_message: User-friendly message to display
            help_text: Optional help/suggestion text
        """
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.help_text = help_text

        self._log_error()

    def _log_error(self):
        """Log error to console with user-friendly formatting."""
        logger.error(f"❌ {self.user_message}")
        if self.help_text:
            logger.info(f"💡 {self.help_text}")
        logger.debug(f"Technical details: {self.message}")


class SeedError(MythforgeError):
    """Base class for seed file problems."""

    def __init__(self, path: Union[str, Path], message: str, **kwargs):
        self.path = str(path)
        super().__init__(message, **kwargs)


class SeedNotFoundError(SeedError):
    """Seed file does not exist."""

    def __init__(self, path: Union[str, Path]):
        super().__init__(
            path=path,
            message=f"Seed file not found: {path}",
            user_message=f"Could not find the seed file {path}",
            help_text="Check the path, or create a seed with at least a 'name' and some characters",
        )


class InvalidSeedError(SeedError):
    """Seed file could not be parsed or has the wrong shape."""

    def __init__(self, path: Union[str, Path], details: Optional[str] = None):
        message = f"Invalid seed {path}"
        if details:
            message += f": {details}"

        super().__init__(
            path=path,
            message=message,
            user_message=f"The seed file {path} is not valid",
            help_text="Seeds must be YAML or JSON mappings with a 'name' field. "
                      + (details or "Check the file for syntax errors."),
        )


class StoryletConfigError(MythforgeError):
    """A storylet is malformed and cannot be tracked."""

    def __init__(self, details: str):
        super().__init__(
            f"Malformed storylet: {details}",
            user_message="A storylet could not be registered",
            help_text="Every storylet needs a unique, non-empty id and a numeric weight",
        )


class UnknownTargetError(MythforgeError):
    """Requested output target is not supported."""

    def __init__(self, target: str, available_targets: Optional[Iterable[str]] = None):
        self.target = target
        self.available_targets = list(available_targets or [])

        help_text = "Pick one of the supported targets"
        if self.available_targets:
            help_text += f": {', '.join(self.available_targets)}"

        super().__init__(
            f"Unknown target '{target}'",
            user_message=f"Target '{target}' is not supported",
            help_text=help_text,
        )


class OutputError(MythforgeError):
    """Generated files could not be written."""

    def __init__(self, path: Union[str, Path], details: Optional[str] = None):
        self.path = str(path)
        message = f"Cannot write to {path}"
        if details:
            message += f": {details}"

        super().__init__(
            message,
            user_message=f"Could not write generated files to {path}",
            help_text="Make sure the output directory is writable, or pick another with --output",
        )


def handle_seed_error(error: Exception, path: Union[str, Path]) -> MythforgeError:
    """Convert low-level loading exceptions to user-friendly errors.

    Args:
        error: The original exception
        path: Seed path (for error messages)

    Returns:
        MythforgeError subclass with helpful messages
    """
    import yaml

    if isinstance(error, MythforgeError):
        return error

    if isinstance(error, FileNotFoundError):
        return SeedNotFoundError(path)

    elif isinstance(error, yaml.YAMLError):
        details = "YAML syntax error"
        mark = getattr(error, "problem_mark", None)
        if mark is not None:
            details += f" at line {mark.line + 1}, column {mark.column + 1}"
        return InvalidSeedError(path, details)

    elif isinstance(error, json.JSONDecodeError):
        return InvalidSeedError(path, f"JSON syntax error at line {error.lineno}, column {error.colno}")

    elif isinstance(error, UnicodeDecodeError):
        return InvalidSeedError(path, "file is not valid UTF-8 text")

    elif isinstance(error, OSError):
        return SeedError(
            path=path,
            message=f"Failed to read seed {path}: {error}",
            user_message=f"Could not read the seed file {path}",
            help_text="Check the file permissions and try again",
        )

    elif isinstance(error, (TypeError, ValueError)):
        return InvalidSeedError(path, str(error))

    return MythforgeError(
        f"Unexpected error loading {path}: {error}",
        user_message=f"Unexpected error loading {path}",
        help_text="Try again with --verbose for more details",
    )

"""Exception types raised by Scribe.

The CLI catches ``ScribeError`` and prints a short, styled message instead of a
traceback. Anything else is a bug and propagates.
"""

from __future__ import annotations

from pathlib import Path


class ScribeError(Exception):
    """Base class for errors reported to the user."""


class ConfigError(ScribeError):
    """Raised when scribe.yaml or a data file cannot be parsed.

    Attributes:
        source_path: Path to the offending file.
        message: Human-readable error message.
    """

    def __init__(self, source_path: Path, message: str):
        self.source_path = source_path
        self.message = message
        super().__init__(f"{source_path}: {message}")


class BuildError(ScribeError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")

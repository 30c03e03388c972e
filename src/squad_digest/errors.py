"""Exception hierarchy for squad-digest.

Only caller bugs and whole-document problems raise. A single malformed record
is skipped, logged, and recorded in :class:`~squad_digest.core.diagnostics.Diagnostics`
instead.
"""

from pathlib import Path
from typing import Optional, Union


class SquadDigestError(Exception):
    """Base class for all squad-digest errors."""


class InvalidDateRangeError(SquadDigestError, ValueError):
    """Raised when a date range ends before it starts."""

    def __init__(self, start, end) -> None:
        self.start = start
        self.end = end
        super().__init__(
            f"Invalid date range: end ({end.isoformat()}) is before start ({start.isoformat()})"
        )


class StateStoreError(SquadDigestError):
    """Raised when the last-run watermark cannot be written."""

    def __init__(self, path: Union[Path, str], reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to write run state to {self.path}: {reason}")


class InputFormatError(SquadDigestError):
    """Raised when an input document is not a collection of records at all."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Unusable input in {source}: {reason}")


class ConfigurationError(SquadDigestError):
    """Raised when the configuration file is missing or invalid."""

    def __init__(self, message: str, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path
        if config_path is not None:
            message = f"{message} (in {config_path})"
        super().__init__(message)


class YAMLParseError(ConfigurationError):
    """Raised when the configuration file is not valid YAML."""

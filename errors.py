"""Exception hierarchy for the library mirror.

Config and walk errors are fatal for a run; job errors are contained
to a single file.
"""

from pathlib import Path
from typing import Optional


class MirrorError(Exception):
    """Base class for all mirror errors."""
    pass


class ConfigError(MirrorError, ValueError):
    """Raised when configuration is missing or invalid."""
    pass


class WalkError(MirrorError):
    """Raised when the source tree cannot be traversed."""
    pass


class JobError(MirrorError):
    """Failure of a single copy, conversion or thumbnail."""

    def __init__(self, message: str, source: Optional[Path] = None,
                 destination: Optional[Path] = None):
        super().__init__(message)
        self.source = source
        self.destination = destination


class ConversionFailed(JobError):
    """External encoder could not be launched or exited non-zero."""
    pass


class CopyFailed(JobError):
    pass


class ThumbnailFailed(JobError):
    pass

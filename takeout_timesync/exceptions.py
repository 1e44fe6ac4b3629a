"""
Custom exception hierarchy for the takeout timestamp synchronizer.

Every error concerns exactly one sidecar file or one directory. Callers
handle them at that granularity and never let one abort sibling work.
"""
from pathlib import Path
from typing import Optional


class TimeSyncError(Exception):
    """Base exception for all timestamp synchronization errors."""
    category = "error"

    def __init__(self, message: str, path: Optional[Path] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(message)
        self.path = path
        self.cause = cause


class UnreadableDirectory(TimeSyncError):
    """Raised when a directory cannot be enumerated."""
    category = "unreadable_directory"


class DecodeError(TimeSyncError):
    """Raised when sidecar content is not valid JSON."""
    category = "decode_error"


class FieldError(TimeSyncError):
    """Raised when a required sidecar field is missing or malformed."""
    category = "field_error"


class MissingAssetError(TimeSyncError):
    """Raised when the media file named by a sidecar does not exist."""
    category = "missing_asset"


class TimestampUpdateError(TimeSyncError):
    """Raised when modification/access times cannot be set."""
    category = "timestamp_update_error"


class CreationTimeUnsupported(TimeSyncError):
    """Raised when the platform has no creation-time primitive."""
    category = "creation_time_unsupported"


class CreationTimeUpdateError(TimeSyncError):
    """Raised when setting creation time fails on a supporting platform."""
    category = "creation_time_update_error"

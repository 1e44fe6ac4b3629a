from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

from .exceptions import CreationTimeUpdateError, TimeSyncError


@dataclass
class TimeField:
    timestamp: Optional[str] = None
    formatted: Optional[str] = None


@dataclass
class GeoData:
    # Older exports store scaled integers, newer ones float degrees.
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    altitude: Optional[float] = None
    latitude_span: Optional[float] = None
    longitude_span: Optional[float] = None


@dataclass
class SidecarRecord:
    """
    Parsed form of one Takeout sidecar (.json) file.
    Only `title` and `captured_at` drive synchronization.
    """
    title: str
    captured_at: datetime

    # Ancillary fields, decoded for completeness only
    description: Optional[str] = None
    image_views: Optional[str] = None
    url: Optional[str] = None
    device_type: Optional[str] = None
    creation_time: TimeField = field(default_factory=TimeField)
    last_modified_time: TimeField = field(default_factory=TimeField)
    geo_data: GeoData = field(default_factory=GeoData)
    geo_data_exif: GeoData = field(default_factory=GeoData)

    @property
    def media_filename(self) -> str:
        return self.title


class CreationTimeStatus(str, Enum):
    SET = "set"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"
    SKIPPED = "skipped"     # dry run, or never reached


@dataclass
class SyncOutcome:
    """
    Result of one attempted sidecar (or one unreadable directory).
    """
    source_path: Path       # sidecar file, or directory for enumeration failures
    media_path: Optional[Path] = None
    captured_at: Optional[datetime] = None
    error: Optional[TimeSyncError] = None
    creation_time: CreationTimeStatus = CreationTimeStatus.SKIPPED
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        if self.error is None:
            return "updated"
        if isinstance(self.error, CreationTimeUpdateError):
            return "partial"
        return "failed"

    @property
    def category(self) -> str:
        return "updated" if self.error is None else self.error.category

"""
Time-metadata writers.

Two variants, chosen once per run by `select_writer()`:
  - PartialTimeWriter: modification + access time (every platform).
  - FullTimeWriter: additionally sets creation time through the Windows
    SetFileTime call.
"""
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .. import config
from ..exceptions import CreationTimeUnsupported, CreationTimeUpdateError, TimestampUpdateError


@dataclass(frozen=True)
class FileTime:
    """Windows FILETIME split into its two 32-bit words."""
    low: int
    high: int

    @property
    def ticks(self) -> int:
        return (self.high << 32) | self.low


def to_unix_parts(instant: datetime) -> tuple[int, int]:
    """Returns (whole seconds, nanoseconds) since the Unix epoch. Naive means UTC."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    delta = instant - config.UNIX_EPOCH
    return delta.days * 86400 + delta.seconds, delta.microseconds * 1000


def to_unix_nanoseconds(instant: datetime) -> int:
    seconds, nanos = to_unix_parts(instant)
    return seconds * 1_000_000_000 + nanos


def to_filetime(instant: datetime) -> FileTime:
    """
    Converts an instant to FILETIME: 100-ns ticks since 1601-01-01 UTC.

    ticks = (unix_seconds + 11644473600) * 10^7 + nanoseconds / 100
    """
    seconds, nanos = to_unix_parts(instant)
    ticks = (seconds + config.FILETIME_EPOCH_OFFSET) * config.FILETIME_TICKS_PER_SECOND + nanos // 100
    if not 0 <= ticks <= config.FILETIME_MAX:
        raise ValueError(f"{instant.isoformat()} is outside the FILETIME range")
    return FileTime(low=ticks & 0xFFFFFFFF, high=ticks >> 32)


def _set_file_time_windows(path: Path, filetime: FileTime) -> None:
    """Sets creation, last-access and last-write time on an open read-write handle."""
    import ctypes
    import msvcrt
    from ctypes import wintypes

    class FILETIME(ctypes.Structure):
        _fields_ = [("dwLowDateTime", wintypes.DWORD), ("dwHighDateTime", wintypes.DWORD)]

    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)  # type: ignore[attr-defined]
    kernel32.SetFileTime.argtypes = [
        wintypes.HANDLE,
        ctypes.POINTER(FILETIME),
        ctypes.POINTER(FILETIME),
        ctypes.POINTER(FILETIME),
    ]
    kernel32.SetFileTime.restype = wintypes.BOOL

    ft = FILETIME(filetime.low, filetime.high)
    with open(path, 'r+b') as f:
        handle = msvcrt.get_osfhandle(f.fileno())  # type: ignore[attr-defined]
        if not kernel32.SetFileTime(handle, ctypes.byref(ft), ctypes.byref(ft), ctypes.byref(ft)):
            raise ctypes.WinError(ctypes.get_last_error())  # type: ignore[attr-defined]


class PartialTimeWriter:
    """Sets modification and access time. Creation time is unsupported."""
    supports_creation_time = False

    def set_times(self, path: Path, instant: datetime) -> None:
        ns = to_unix_nanoseconds(instant)
        try:
            # One utime call sets both fields together
            os.utime(path, ns=(ns, ns))
        except OSError as e:
            raise TimestampUpdateError(f"Cannot set file times: {e}", path=path, cause=e) from e

    def set_creation_time(self, path: Path, instant: datetime) -> None:
        raise CreationTimeUnsupported(
            f"Creation time is not supported on {sys.platform}", path=path
        )


class FullTimeWriter(PartialTimeWriter):
    """Adds the creation-time primitive (Windows)."""
    supports_creation_time = True

    def __init__(self, set_file_time: Optional[Callable[[Path, FileTime], None]] = None):
        self._set_file_time = set_file_time or _set_file_time_windows

    def set_creation_time(self, path: Path, instant: datetime) -> None:
        try:
            filetime = to_filetime(instant)
            self._set_file_time(path, filetime)
        except (OSError, ValueError) as e:
            raise CreationTimeUpdateError(f"Cannot set creation time: {e}", path=path, cause=e) from e


def select_writer(platform: Optional[str] = None) -> PartialTimeWriter:
    """Picks the writer variant for the running (or given) platform."""
    platform = platform or sys.platform
    if platform == "win32":
        writer: PartialTimeWriter = FullTimeWriter()
    else:
        writer = PartialTimeWriter()
    logging.debug(f"Using {type(writer).__name__} for platform {platform}")
    return writer

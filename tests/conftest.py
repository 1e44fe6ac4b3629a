import json
import os
from pathlib import Path

import pytest

from takeout_timesync.timestamps.writers import PartialTimeWriter

TAKEN_TS = "1609459200"  # 2021-01-01T00:00:00Z
STALE_TS = 1700000000


def _sidecar_payload(title, timestamp=TAKEN_TS, **extra):
    data = {
        "title": title,
        "photoTakenTime": {"timestamp": timestamp, "formatted": "Jan 1, 2021, 12:00:00 AM UTC"},
    }
    data.update(extra)
    return data


class RecordingWriter(PartialTimeWriter):
    """Real mtime/atime writer that records calls and can fake creation time."""

    def __init__(self, creation_error=None, supports_creation_time=False):
        self.calls = []
        self.creation_calls = []
        self.creation_error = creation_error
        self.supports_creation_time = supports_creation_time

    def set_times(self, path, instant):
        self.calls.append((path, instant))
        super().set_times(path, instant)

    def set_creation_time(self, path, instant):
        if self.creation_error is not None:
            raise self.creation_error
        if not self.supports_creation_time:
            return super().set_creation_time(path, instant)
        self.creation_calls.append((path, instant))


@pytest.fixture
def stale_ts():
    """Unix seconds every fresh media file starts with."""
    return STALE_TS


@pytest.fixture
def sidecar_payload():
    """Returns a builder for minimal Takeout sidecar content."""
    return _sidecar_payload


@pytest.fixture
def make_pair():
    """
    Returns a factory writing `<name>.json` (and the media file) into a directory.
    The media file starts with a stale mtime so updates are observable.
    """
    def _make(directory: Path, name="photo.jpg", timestamp=TAKEN_TS, create_media=True, payload=None):
        directory.mkdir(parents=True, exist_ok=True)
        sidecar = directory / f"{name}.json"
        content = payload if payload is not None else _sidecar_payload(name, timestamp)
        sidecar.write_text(json.dumps(content), encoding="utf-8")
        media = directory / name
        if create_media:
            media.write_bytes(b"media")
            os.utime(media, (STALE_TS, STALE_TS))
        return sidecar, media
    return _make


@pytest.fixture
def writer_factory():
    """Returns the RecordingWriter class for tests that need custom settings."""
    return RecordingWriter


@pytest.fixture
def recording_writer():
    return RecordingWriter()

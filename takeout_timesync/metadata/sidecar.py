import json
import logging
import re
from datetime import datetime, timedelta
from pathlib import Path, PureWindowsPath
from typing import Any, BinaryIO, Optional, Union

from .. import config
from ..exceptions import DecodeError, FieldError
from ..models import GeoData, SidecarRecord, TimeField

_TIMESTAMP_RE = re.compile(config.TIMESTAMP_PATTERN)


def instant_from_unix_seconds(seconds: int) -> datetime:
    """Aware UTC datetime for whole Unix seconds (no float rounding)."""
    return config.UNIX_EPOCH + timedelta(seconds=seconds)


def parse_unix_seconds(value: Any) -> int:
    """
    Parses a decimal Unix-seconds string as written by the export.

    Accepts an optional sign and ASCII digits only; whitespace, fractions,
    underscores and values outside the signed 64-bit range are rejected.
    """
    if not isinstance(value, str) or not _TIMESTAMP_RE.fullmatch(value):
        raise ValueError(f"not a base-10 integer: {value!r}")
    seconds = int(value, 10)
    if not config.INT64_MIN <= seconds <= config.INT64_MAX:
        raise ValueError(f"out of range: {value!r}")
    return seconds


def decode_sidecar(source: Union[bytes, str, BinaryIO],
                   path: Optional[Path] = None) -> SidecarRecord:
    """
    Decodes the raw contents of one sidecar file.

    Args:
        source: file contents, or a binary stream positioned at the start.
        path: used only to annotate raised errors.

    Raises:
        DecodeError: content is not a JSON object.
        FieldError: photoTakenTime.timestamp or title is missing/invalid.
    """
    # JSONDecodeError, UnicodeDecodeError and the integer digit limit are all ValueError
    try:
        if isinstance(source, (bytes, str)):
            data = json.loads(source)
        else:
            data = json.load(source)
    except (ValueError, RecursionError) as e:
        raise DecodeError(f"Invalid JSON: {e}", path=path, cause=e) from e

    if not isinstance(data, dict):
        raise DecodeError(
            f"Expected a JSON object, got {type(data).__name__}", path=path
        )

    taken = data.get("photoTakenTime")
    if not isinstance(taken, dict) or "timestamp" not in taken:
        raise FieldError("Missing photoTakenTime.timestamp", path=path)
    try:
        captured_at = instant_from_unix_seconds(parse_unix_seconds(taken["timestamp"]))
    except (ValueError, OverflowError) as e:
        raise FieldError(f"Bad photoTakenTime.timestamp: {e}", path=path, cause=e) from e

    title = _validate_title(data.get("title"), path)

    origin = _as_dict(data.get("googlePhotosOrigin"))
    mobile = _as_dict(origin.get("mobileUpload"))

    return SidecarRecord(
        title=title,
        captured_at=captured_at,
        description=_as_str(data.get("description")),
        image_views=_as_str(data.get("imageViews")),
        url=_as_str(data.get("url")),
        device_type=_as_str(mobile.get("deviceType")),
        creation_time=_time_field(data.get("creationTime")),
        last_modified_time=_time_field(data.get("photoLastModifiedTime")),
        geo_data=_geo_data(data.get("geoData")),
        geo_data_exif=_geo_data(data.get("geoDataExif")),
    )


def read_sidecar(path: Path) -> SidecarRecord:
    """Opens and decodes a sidecar file. OSError propagates to the caller."""
    with path.open('rb') as f:
        return decode_sidecar(f, path=path)


# --- Internal Helpers ---

def _validate_title(title: Any, path: Optional[Path]) -> str:
    # The title is untrusted: it may only name a file beside the sidecar.
    if not isinstance(title, str) or not title:
        raise FieldError("Missing title", path=path)
    if title in ('.', '..') or any(c in title for c in '/\\\0') or PureWindowsPath(title).drive:
        raise FieldError(f"Title is not a bare file name: {title!r}", path=path)
    return title


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_float(value: Any) -> Optional[float]:
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        if value is not None:
            logging.debug(f"Ignoring non-numeric geo value: {value!r}")
        return None
    try:
        return float(value)
    except OverflowError:
        logging.debug("Ignoring geo value outside the float range")
        return None


def _time_field(value: Any) -> TimeField:
    d = _as_dict(value)
    return TimeField(timestamp=_as_str(d.get("timestamp")), formatted=_as_str(d.get("formatted")))


def _geo_data(value: Any) -> GeoData:
    d = _as_dict(value)
    return GeoData(
        latitude=_as_float(d.get("latitude")),
        longitude=_as_float(d.get("longitude")),
        altitude=_as_float(d.get("altitude")),
        latitude_span=_as_float(d.get("latitudeSpan")),
        longitude_span=_as_float(d.get("longitudeSpan")),
    )

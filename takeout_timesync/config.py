"""
Configuration constants for the takeout timestamp synchronizer.
"""
import os
from datetime import datetime, timezone

# --- Sidecar Discovery ---
SIDECAR_EXT = '.json'

# Album-level metadata written by the export; never describes a single asset.
SENTINEL_FILENAME = 'metadata.json'

# --- Timestamp Parsing ---
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Sidecar timestamps are decimal Unix seconds and must fit a signed 64-bit int.
TIMESTAMP_PATTERN = r'[+-]?[0-9]+'
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# --- Windows FILETIME ---
# 100-ns ticks since 1601-01-01 UTC.
FILETIME_EPOCH_OFFSET = 11644473600  # seconds between 1601-01-01 and 1970-01-01
FILETIME_TICKS_PER_SECOND = 10_000_000
FILETIME_MAX = 2 ** 64 - 1

# --- Concurrency ---
# Same default as ThreadPoolExecutor; directory jobs are I/O bound.
DEFAULT_MAX_WORKERS = min(32, (os.cpu_count() or 1) + 4)

# --- Reporting ---
REPORT_HEADERS = [
    "Sidecar Path",
    "Media Path",
    "Status",
    "Category",
    "Captured At",
    "Creation Time",
    "Notes",
]

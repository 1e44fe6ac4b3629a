import csv
import logging
from collections import Counter
from pathlib import Path
from typing import List, Optional

from . import config
from .models import CreationTimeStatus, SyncOutcome


class SyncSummary:
    """
    Aggregates outcomes of one run for diagnostics.
    Not thread-safe; fed by the single outcome consumer.
    """
    def __init__(self):
        self.by_status: Counter = Counter()
        self.by_category: Counter = Counter()
        self.creation_time: Counter = Counter()
        self.failures: List[SyncOutcome] = []

    def add(self, outcome: SyncOutcome):
        self.by_status[outcome.status] += 1
        self.by_category[outcome.category] += 1
        if outcome.media_path is not None and outcome.status != "failed":
            self.creation_time[outcome.creation_time.value] += 1
        if not outcome.ok:
            self.failures.append(outcome)

    @property
    def total(self) -> int:
        return sum(self.by_status.values())

    @property
    def updated(self) -> int:
        return self.by_status["updated"]

    @property
    def failed(self) -> int:
        return self.by_status["failed"]

    @property
    def partial(self) -> int:
        return self.by_status["partial"]

    def log(self):
        logging.info(
            f"Processed {self.total} entries: {self.updated} updated, "
            f"{self.partial} partial, {self.failed} failed."
        )
        for category, count in sorted(self.by_category.items()):
            if category != "updated":
                logging.info(f"  {category}: {count}")
        unsupported = self.creation_time[CreationTimeStatus.UNSUPPORTED.value]
        if unsupported:
            logging.info(f"Creation time not supported on this platform ({unsupported} files).")


class ReportGenerator:
    """
    Streams one CSV row per outcome.

    Usage:
        with ReportGenerator(path) as report:
            report.write(outcome)
    """
    def __init__(self, output_csv: Path):
        self.output_csv = Path(output_csv)
        self._file = None
        self._writer = None
        self.rows_written = 0

    def __enter__(self):
        self.output_csv.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.output_csv, "w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file)
        self._writer.writerow(config.REPORT_HEADERS)
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._file:
            self._file.close()
        self._file = None
        self._writer = None
        logging.info(f"Report written: {self.output_csv} ({self.rows_written} rows)")

    def write(self, outcome: SyncOutcome):
        if self._writer is None:
            raise RuntimeError("ReportGenerator must be used as a context manager")
        self._writer.writerow(self._row(outcome))
        self.rows_written += 1

    def _row(self, outcome: SyncOutcome) -> list:
        notes = str(outcome.error) if outcome.error else ""
        if outcome.dry_run and outcome.ok:
            notes = "Dry run"
        return [
            str(outcome.source_path),
            _str_or_empty(outcome.media_path),
            outcome.status,
            outcome.category,
            outcome.captured_at.isoformat() if outcome.captured_at else "",
            outcome.creation_time.value,
            notes,
        ]


def _str_or_empty(value: Optional[Path]) -> str:
    return str(value) if value is not None else ""

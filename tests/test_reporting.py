import csv
from datetime import datetime, timezone
from pathlib import Path

import pytest

from takeout_timesync.exceptions import (
    CreationTimeUpdateError,
    FieldError,
    MissingAssetError,
    UnreadableDirectory,
)
from takeout_timesync.models import CreationTimeStatus, SyncOutcome
from takeout_timesync.reporting import ReportGenerator, SyncSummary

NEW_YEAR_2021 = datetime(2021, 1, 1, tzinfo=timezone.utc)


def _outcomes(root: Path):
    return [
        SyncOutcome(root / "a.jpg.json", root / "a.jpg", NEW_YEAR_2021,
                    creation_time=CreationTimeStatus.UNSUPPORTED),
        SyncOutcome(root / "b.jpg.json", root / "b.jpg", NEW_YEAR_2021,
                    creation_time=CreationTimeStatus.SET),
        SyncOutcome(root / "c.jpg.json", root / "c.jpg", NEW_YEAR_2021,
                    error=CreationTimeUpdateError("locked"), creation_time=CreationTimeStatus.FAILED),
        SyncOutcome(root / "d.jpg.json", error=FieldError("Bad photoTakenTime.timestamp")),
        SyncOutcome(root / "e.jpg.json", root / "e.jpg", NEW_YEAR_2021,
                    error=MissingAssetError("Media file missing")),
        SyncOutcome(root / "locked", error=UnreadableDirectory("Permission denied")),
    ]


def test_summary_counts_by_status_and_category(tmp_path):
    """Summary aggregates every outcome and keeps failures for diagnostics."""
    summary = SyncSummary()
    for outcome in _outcomes(tmp_path):
        summary.add(outcome)

    assert summary.total == 6
    assert summary.updated == 2
    assert summary.partial == 1
    assert summary.failed == 3
    assert summary.by_category["field_error"] == 1
    assert summary.by_category["missing_asset"] == 1
    assert summary.by_category["unreadable_directory"] == 1
    assert summary.creation_time["unsupported"] == 1
    assert summary.creation_time["set"] == 1
    assert summary.creation_time["failed"] == 1
    assert len(summary.failures) == 4


def test_summary_log_mentions_counts(tmp_path, caplog):
    """The end-of-run log line carries the totals."""
    caplog.set_level("INFO")
    summary = SyncSummary()
    for outcome in _outcomes(tmp_path):
        summary.add(outcome)

    summary.log()

    assert "Processed 6 entries: 2 updated, 1 partial, 3 failed." in caplog.text
    assert "missing_asset: 1" in caplog.text


def test_report_writes_one_row_per_outcome(tmp_path):
    """Each outcome becomes one CSV row with status and category columns."""
    output_csv = tmp_path / "reports" / "report.csv"

    with ReportGenerator(output_csv) as report:
        for outcome in _outcomes(tmp_path):
            report.write(outcome)

    with open(output_csv, "r", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    assert report.rows_written == 6
    assert len(rows) == 6
    first = rows[0]
    assert first["Sidecar Path"] == str(tmp_path / "a.jpg.json")
    assert first["Media Path"] == str(tmp_path / "a.jpg")
    assert first["Status"] == "updated"
    assert first["Captured At"] == "2021-01-01T00:00:00+00:00"
    assert first["Creation Time"] == "unsupported"

    by_sidecar = {row["Sidecar Path"]: row for row in rows}
    assert by_sidecar[str(tmp_path / "c.jpg.json")]["Status"] == "partial"
    assert by_sidecar[str(tmp_path / "d.jpg.json")]["Category"] == "field_error"
    assert by_sidecar[str(tmp_path / "d.jpg.json")]["Media Path"] == ""
    assert "Permission denied" in by_sidecar[str(tmp_path / "locked")]["Notes"]


def test_report_notes_dry_run(tmp_path):
    output_csv = tmp_path / "report.csv"
    with ReportGenerator(output_csv) as report:
        report.write(SyncOutcome(tmp_path / "a.jpg.json", tmp_path / "a.jpg", NEW_YEAR_2021, dry_run=True))

    with open(output_csv, "r", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["Notes"] == "Dry run"


def test_report_requires_context_manager(tmp_path):
    report = ReportGenerator(tmp_path / "report.csv")
    with pytest.raises(RuntimeError):
        report.write(SyncOutcome(tmp_path / "a.jpg.json"))

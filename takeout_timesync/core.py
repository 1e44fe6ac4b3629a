import logging
from contextlib import nullcontext
from pathlib import Path
from typing import Iterable, Optional, Union

from tqdm import tqdm

from . import config
from .models import SyncOutcome
from .reporting import ReportGenerator, SyncSummary
from .scanning.walker import TreeWalker
from .timestamps.writers import PartialTimeWriter


class TimeSyncApp:
    """
    Runs a walk and is the single consumer of its outcomes: all logging,
    progress and report output happens on the calling thread.
    """
    def __init__(self,
                 writer: Optional[PartialTimeWriter] = None,
                 max_workers: int = config.DEFAULT_MAX_WORKERS,
                 dry_run: bool = False):
        self.walker = TreeWalker(writer=writer, max_workers=max_workers, dry_run=dry_run)

    def run(self,
            roots: Iterable[Union[str, Path]],
            report_csv: Optional[Path] = None,
            show_progress: bool = True) -> SyncSummary:
        """
        Synchronizes every sidecar under `roots`.

        Args:
            report_csv: if given, one CSV row is written per outcome.
            show_progress: display a tqdm counter on stderr.
        """
        roots = [Path(r) for r in roots]
        writer_name = type(self.walker.writer).__name__
        logging.info(
            f"Syncing {len(roots)} root(s) with {self.walker.max_workers} workers "
            f"({writer_name}, DryRun={self.walker.dry_run})"
        )

        summary = SyncSummary()
        report_ctx = ReportGenerator(report_csv) if report_csv else nullcontext()
        with report_ctx as report:
            outcomes = tqdm(self.walker.walk(roots), desc="Syncing timestamps",
                            unit="file", disable=not show_progress)
            for outcome in outcomes:
                summary.add(outcome)
                self._log_outcome(outcome)
                if report is not None:
                    report.write(outcome)

        summary.log()
        return summary

    def _log_outcome(self, outcome: SyncOutcome):
        if outcome.ok:
            stamp = outcome.captured_at.isoformat() if outcome.captured_at else "?"
            if outcome.dry_run:
                logging.info(f"[DRY RUN] Would update file times of {outcome.media_path} to {stamp}")
            else:
                logging.info(f"Updated file times of {outcome.media_path} to {stamp}")
        elif outcome.status == "partial":
            logging.warning(f"Updated file times of {outcome.media_path}, but not creation time: {outcome.error}")
        else:
            logging.error(f"[{outcome.category}] {outcome.source_path}: {outcome.error}")

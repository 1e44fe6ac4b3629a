import logging
import os
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional, Union

from .. import config
from ..exceptions import (
    CreationTimeUnsupported,
    CreationTimeUpdateError,
    DecodeError,
    MissingAssetError,
    TimeSyncError,
    UnreadableDirectory,
)
from ..metadata.sidecar import read_sidecar
from ..models import CreationTimeStatus, SyncOutcome
from ..timestamps.writers import PartialTimeWriter, select_writer

Emit = Callable[[SyncOutcome], None]
Dispatch = Callable[[Path], None]

_DONE = object()


class _PendingWork:
    """
    Counts dispatched directory jobs that have not finished yet.
    A child is always added before its parent finishes, so the count
    only reaches zero once the whole tree is done.
    """
    def __init__(self, on_drained: Callable[[], None]):
        self._lock = threading.Lock()
        self._count = 0
        self._on_drained = on_drained

    def add(self):
        with self._lock:
            self._count += 1

    def done(self):
        with self._lock:
            self._count -= 1
            drained = self._count == 0
        if drained:
            self._on_drained()


class TreeWalker:
    """
    Walks directory trees and restores media timestamps from Takeout sidecars.

    Every directory becomes one job on a bounded thread pool. Jobs never wait
    on each other: a parent lists its entries, dispatches each subdirectory as
    a new job and carries on with its own sidecars.
    """

    def __init__(self,
                 writer: Optional[PartialTimeWriter] = None,
                 max_workers: int = config.DEFAULT_MAX_WORKERS,
                 dry_run: bool = False):
        """
        Args:
            writer: time-metadata writer; defaults to the platform's variant.
            max_workers: thread pool size, independent of tree shape.
            dry_run: decode and resolve only, never touch the media files.
        """
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.writer = writer or select_writer()
        self.max_workers = max_workers
        self.dry_run = dry_run

    def walk(self, roots: Iterable[Union[str, Path]]) -> Iterator[SyncOutcome]:
        """
        Generator that yields one SyncOutcome per attempted sidecar and per
        unreadable directory, in completion order.

        Returns only after every transitively dispatched job has finished.
        The walk has no cancellation: closing the generator early still
        waits for the remaining jobs.
        """
        root_paths = [Path(r) for r in roots]
        if not root_paths:
            return

        outcomes: "queue.Queue[object]" = queue.Queue()
        pending = _PendingWork(on_drained=lambda: outcomes.put(_DONE))

        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix="timesync") as executor:

            def dispatch(directory: Path):
                pending.add()
                executor.submit(self._run_directory_job, directory, dispatch, outcomes.put, pending)

            # Held until every root is submitted, so an early-finishing root
            # cannot drain the count while later roots are still undispatched
            pending.add()
            try:
                for root in root_paths:
                    dispatch(root)
            finally:
                pending.done()

            finished = False
            try:
                while True:
                    item = outcomes.get()
                    if item is _DONE:
                        finished = True
                        break
                    yield item  # type: ignore[misc]
            finally:
                # Consumer went away early; let the walk run to completion
                while not finished:
                    finished = outcomes.get() is _DONE

    def sync_sidecar(self, sidecar_path: Path) -> SyncOutcome:
        """
        Restores the timestamps of the media file described by one sidecar.
        Never raises for per-file problems; they are returned in the outcome.
        """
        outcome = SyncOutcome(source_path=sidecar_path, dry_run=self.dry_run)
        try:
            self._apply(sidecar_path, outcome)
        except CreationTimeUpdateError as e:
            # mtime/atime were already written
            outcome.creation_time = CreationTimeStatus.FAILED
            outcome.error = e
        except TimeSyncError as e:
            outcome.error = e
        except Exception as e:
            logging.exception(f"Unexpected failure while syncing {sidecar_path}")
            outcome.error = TimeSyncError(f"Unexpected failure: {e}", path=sidecar_path, cause=e)
        return outcome

    @staticmethod
    def is_sidecar(name: str) -> bool:
        return name.endswith(config.SIDECAR_EXT) and name != config.SENTINEL_FILENAME

    # --- Internal ---

    def _run_directory_job(self, directory: Path, dispatch: Dispatch, emit: Emit, pending: _PendingWork):
        try:
            self._walk_directory(directory, dispatch, emit)
        except Exception as e:
            logging.exception(f"Unexpected failure while walking {directory}")
            emit(SyncOutcome(source_path=directory,
                             error=TimeSyncError(f"Unexpected failure: {e}", path=directory, cause=e)))
        finally:
            pending.done()

    def _walk_directory(self, directory: Path, dispatch: Dispatch, emit: Emit):
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            emit(SyncOutcome(
                source_path=directory,
                error=UnreadableDirectory(f"Cannot read directory: {e}", path=directory, cause=e),
            ))
            return

        for entry in entries:
            path = Path(entry.path)
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = not is_dir and entry.is_file()
            except OSError as e:
                logging.debug(f"Cannot stat {path}: {e}")
                continue

            if is_dir:
                dispatch(path)
            elif is_file and self.is_sidecar(entry.name):
                emit(self.sync_sidecar(path))

    def _apply(self, sidecar_path: Path, outcome: SyncOutcome):
        try:
            record = read_sidecar(sidecar_path)
        except OSError as e:
            raise DecodeError(f"Cannot read sidecar: {e}", path=sidecar_path, cause=e) from e

        instant = record.captured_at
        media_path = sidecar_path.parent / record.media_filename
        outcome.captured_at = instant
        outcome.media_path = media_path

        if not media_path.exists():
            raise MissingAssetError(
                f"Media file {media_path} does not exist for {sidecar_path}", path=media_path
            )

        if self.dry_run:
            logging.debug(f"[DRY RUN] {media_path} -> {instant.isoformat()}")
            return

        self.writer.set_times(media_path, instant)
        try:
            self.writer.set_creation_time(media_path, instant)
            outcome.creation_time = CreationTimeStatus.SET
        except CreationTimeUnsupported:
            outcome.creation_time = CreationTimeStatus.UNSUPPORTED

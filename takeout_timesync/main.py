import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .core import TimeSyncApp

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_FAILURES = 2


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and, optionally, a log file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(
        description="Restore media file timestamps from Google Takeout JSON sidecars"
    )

    p.add_argument("roots", type=Path, nargs="+", help="Root directories to process")

    p.add_argument("-w", "--workers", type=int, default=config.DEFAULT_MAX_WORKERS,
                   help=f"Number of parallel directory workers (default: {config.DEFAULT_MAX_WORKERS})")
    p.add_argument("--dry-run", action="store_true", help="Resolve files without modifying timestamps")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    p.add_argument("--report-csv", type=Path, default=None, help="Write one CSV row per processed sidecar")
    p.add_argument("--no-progress", action="store_true", help="Disable the progress counter")

    return p.parse_args(argv)


def validate_roots(roots: List[Path]) -> List[Path]:
    """Resolves roots to absolute paths. Raises ValueError for unusable ones."""
    resolved = []
    for root in roots:
        path = root.expanduser().resolve()
        if not path.exists():
            raise ValueError(f"Root directory {path} does not exist.")
        if not path.is_dir():
            raise ValueError(f"Root {path} is not a directory.")
        resolved.append(path)
    return resolved


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    if args.workers < 1:
        logging.error("--workers must be at least 1.")
        return EXIT_FATAL

    try:
        roots = validate_roots(args.roots)
    except ValueError as e:
        logging.error(str(e))
        return EXIT_FATAL

    logging.info("=== Takeout Timestamp Sync Started ===")
    for root in roots:
        logging.info(f"Root: {root}")

    app = TimeSyncApp(max_workers=args.workers, dry_run=args.dry_run)

    try:
        summary = app.run(roots, report_csv=args.report_csv, show_progress=not args.no_progress)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return EXIT_FATAL
    except Exception:
        logging.exception("Fatal error during timestamp sync.")
        return EXIT_FATAL

    logging.info("Processing complete!")
    return EXIT_FAILURES if summary.failed or summary.partial else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import config
from .core import CoverFixerApp
from .exceptions import ConfigError
from .paths import translate_root
from .reporting import log_summary


def setup_logging(verbose: bool, log_file: Optional[Path] = None):
    """Sets up logging to the console and optionally a file."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Cover Fixer: re-encode embedded FLAC cover art to baseline JPEG <= 1000px",
        epilog='Examples:\n  cover-fixer "C:\\Users\\me\\Music"\n  cover-fixer /mnt/d/FLAC',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    p.add_argument("root", help="Folder to scan (POSIX path or Windows drive path)")

    p.add_argument("--force", action="store_true", help="Ignore the cache and reconsider every file")
    p.add_argument("-j", "--jobs", type=int, default=config.DEFAULT_WORKERS,
                   help=f"Parallel workers (default: {config.DEFAULT_WORKERS})")
    p.add_argument("--cache-file", type=Path, default=None,
                   help=f"Custom cache path (default: root/{config.CACHE_FILENAME})")
    p.add_argument("--report-limit", type=int, default=config.FIXED_REPORT_LIMIT,
                   help="How many fixed files to list in the summary")
    p.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    p.add_argument("--log-file", type=Path, default=None, help="Also write the log to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    root = translate_root(args.root).expanduser().resolve()

    logging.info("=== Cover Fixer Started ===")
    logging.info(f"Root: {root}")

    app = CoverFixerApp(root, cache_file=args.cache_file)

    try:
        summary = app.run(
            force=args.force,
            max_workers=args.jobs,
            report_limit=args.report_limit,
            show_progress=not args.no_progress,
        )
    except ConfigError as e:
        logging.error(str(e))
        return 1
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user. Cache not updated; re-run to resume.")
        return 130

    log_summary(summary)
    if not summary.cache_saved:
        return 1
    logging.info("All done.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

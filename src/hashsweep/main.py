from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import Config, load_config
from .errors import ConfigError, HashListError
from .hashlist import load_known_hashes
from .logging_ import setup_logging
from .models import ScanIssue
from .report import ConsoleReporter, ScanSummary, summary_json
from .walker import TreeWalker

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hash-list file scanner with ZIP support")
    parser.add_argument("--scan", default=".", help="directory or file to scan")
    parser.add_argument(
        "--config", default=None, help="path to config file (default configs/config.yaml)"
    )
    parser.add_argument("--hash-dir", default=None, help="directory holding hash lists")
    parser.add_argument(
        "--keep-extracted",
        action="store_true",
        help="leave extracted archive contents on disk",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="maximum archive nesting depth, 0 for unlimited",
    )
    parser.add_argument("--quiet", action="store_true", help="do not print clean files")
    parser.add_argument("--log-level", default=None, help="override log level")
    parser.add_argument(
        "--pause", action="store_true", help="wait for Enter before exiting"
    )
    return parser.parse_args(argv)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    if args.hash_dir:
        config.hash_list.dir = Path(args.hash_dir).expanduser()
    if args.keep_extracted:
        config.archives.keep_extracted = True
    if args.max_depth is not None:
        config.archives.max_depth = args.max_depth
    if args.quiet:
        config.scan.quiet = True
    if args.log_level:
        config.log_level = args.log_level
    return config


def run(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as exc:
        print(f"failed to load config: {exc}", file=sys.stderr)
        return 1

    setup_logging(
        config.log_level,
        log_dir=config.logging.dir,
        log_file=config.logging.file_name,
        max_mb=config.logging.max_mb,
        backup_count=config.logging.backup_count,
        use_json=config.logging.json,
        to_console=config.logging.to_console,
        timezone_name=config.logging.timezone,
    )

    reporter = ConsoleReporter(quiet=config.scan.quiet)
    scan_path = Path(args.scan).expanduser()
    reporter.line(f"Malware scanner ({config.hash_list.algorithm.upper()} + ZIP support)")
    reporter.line(f"Scanning: {scan_path}")
    reporter.line()

    try:
        loaded = load_known_hashes(
            config.hash_list.dir,
            suffixes=config.hash_list.suffixes,
            algorithm=config.hash_list.algorithm,
            extra=config.hash_list.extra,
        )
    except HashListError as exc:
        logger.error("failed to load hash directory: %s", exc)
        reporter.line(f"[x] Failed to load hash directory: {exc}")
        return 1
    except ValueError as exc:
        logger.error("unsupported digest algorithm %s: %s", config.hash_list.algorithm, exc)
        reporter.line(f"[x] Unsupported digest algorithm {config.hash_list.algorithm}: {exc}")
        return 1

    reporter.line(f"Total hashes loaded: {len(loaded.known)}")
    logger.info(
        "hash lists loaded files=%d failed=%d hashes=%d",
        len(loaded.files),
        len(loaded.failed),
        len(loaded.known),
    )

    summary = ScanSummary()

    def _on_issue(issue: ScanIssue) -> None:
        summary.record_issue(issue)
        reporter.issue(issue)

    walker = TreeWalker(
        loaded.known,
        algorithm=config.hash_list.algorithm,
        archive_suffixes=config.archives.suffixes,
        max_depth=config.archives.max_depth,
        keep_extracted=config.archives.keep_extracted,
        scratch_root=config.archives.scratch_dir,
        follow_symlinks=config.scan.follow_symlinks,
        on_issue=_on_issue,
    )
    for verdict in walker.walk(scan_path):
        summary.record(verdict)
        reporter.verdict(verdict)
    summary.archives_extracted = walker.archives_extracted

    logger.info(summary_json(summary))
    reporter.line()
    reporter.line(
        f"Scan complete: {summary.files_scanned} files, {summary.flagged} flagged, "
        f"{summary.unreadable} unreadable, {summary.issues} issues"
    )

    if args.pause:
        reporter.line("Press Enter to exit...")
        try:
            input()
        except EOFError:
            pass
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()

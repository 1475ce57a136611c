from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional

from .archive import extract_archive
from .errors import ExtractionError
from .models import (
    CLEAN,
    FLAGGED,
    ISSUE_CLEANUP,
    ISSUE_DEPTH,
    ISSUE_EXTRACTION,
    ISSUE_TRAVERSAL,
    UNREADABLE,
    KnownHashSet,
    ScanIssue,
    Verdict,
)
from .utils.hashing import DEFAULT_ALGORITHM, hash_file

logger = logging.getLogger(__name__)

ARCHIVE_SEPARATOR = "!"


class TreeWalker:
    """Depth-first scan of a path, expanding ZIP archives along the way.

    ``walk`` yields one Verdict per regular file. Problems that are not tied
    to a single file's content (unreadable directories, broken archives,
    archives nested past ``max_depth``) are collected in ``issues`` and passed
    to ``on_issue``; none of them stop the walk.
    """

    def __init__(
        self,
        known: KnownHashSet,
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        archive_suffixes: Iterable[str] = (".zip",),
        max_depth: int = 32,
        keep_extracted: bool = False,
        scratch_root: Optional[Path] = None,
        follow_symlinks: bool = False,
        on_issue: Optional[Callable[[ScanIssue], None]] = None,
    ) -> None:
        self._known = known
        self._algorithm = algorithm
        self._archive_suffixes = tuple(s.lower() for s in archive_suffixes if s)
        self._max_depth = max(0, int(max_depth))
        self._keep_extracted = keep_extracted
        self._scratch_root = scratch_root
        self._follow_symlinks = follow_symlinks
        self._on_issue = on_issue
        self.issues: List[ScanIssue] = []
        self.archives_extracted = 0

    def walk(self, root: str | Path) -> Iterator[Verdict]:
        root = Path(root)
        yield from self._walk(root, depth=0, label=str(root), relative_to=None)

    def is_archive(self, path: Path) -> bool:
        return bool(self._archive_suffixes) and path.name.lower().endswith(
            self._archive_suffixes
        )

    def _walk(
        self, root: Path, *, depth: int, label: str, relative_to: Optional[Path]
    ) -> Iterator[Verdict]:
        if root.is_file():
            yield from self._dispatch(root, depth, label)
            return
        if not root.is_dir():
            self._issue(root, ISSUE_TRAVERSAL, "path does not exist or is not accessible")
            return

        def _onerror(exc: OSError) -> None:
            path = Path(exc.filename) if exc.filename else root
            self._issue(path, ISSUE_TRAVERSAL, f"error accessing path: {exc}")

        for dirpath, dirnames, filenames in os.walk(
            root, onerror=_onerror, followlinks=self._follow_symlinks
        ):
            dir_path = Path(dirpath)
            for name in filenames:
                file_path = dir_path / name
                if not _is_regular(file_path):
                    logger.debug("skipping non-regular file: %s", file_path)
                    continue
                yield from self._dispatch(
                    file_path, depth, self._label(file_path, label, relative_to)
                )

    def _dispatch(self, path: Path, depth: int, label: str) -> Iterator[Verdict]:
        if self.is_archive(path):
            yield from self._expand(path, depth, label)
            return
        yield self._check(path, label)

    def _expand(self, path: Path, depth: int, label: str) -> Iterator[Verdict]:
        if self._max_depth and depth >= self._max_depth:
            self._issue(
                path, ISSUE_DEPTH, f"archive nested deeper than {self._max_depth} levels"
            )
            return
        logger.info("zip detected: %s, extracting", label)
        try:
            with extract_archive(
                path,
                scratch_root=self._scratch_root,
                keep=self._keep_extracted,
                on_cleanup_error=self._cleanup_failed,
            ) as site:
                self.archives_extracted += 1
                yield from self._walk(
                    site,
                    depth=depth + 1,
                    label=label + ARCHIVE_SEPARATOR,
                    relative_to=site,
                )
        except ExtractionError as exc:
            self._issue(path, ISSUE_EXTRACTION, f"error extracting archive: {exc}")

    def _check(self, path: Path, label: str) -> Verdict:
        try:
            digest = hash_file(path, self._algorithm)
        except OSError as exc:
            logger.warning("could not hash %s: %s", label, exc)
            return Verdict(path=path, status=UNREADABLE, display=label, error=str(exc))
        match = self._known.match(digest)
        if match is not None:
            logger.warning("malware found: %s (%s)", label, match)
            return Verdict(
                path=path, status=FLAGGED, display=label, digest=digest, match=match
            )
        logger.debug("clean: %s", label)
        return Verdict(path=path, status=CLEAN, display=label, digest=digest)

    def _label(self, path: Path, label: str, relative_to: Optional[Path]) -> str:
        if relative_to is None:
            return str(path)
        return label + path.relative_to(relative_to).as_posix()

    def _cleanup_failed(self, site: Path, exc: OSError) -> None:
        self._issue(site, ISSUE_CLEANUP, f"failed to remove scratch directory: {exc}")

    def _issue(self, path: Path, kind: str, reason: str) -> None:
        issue = ScanIssue(path=path, kind=kind, reason=reason)
        if kind != ISSUE_CLEANUP:
            logger.warning("%s: %s", reason, path)
        self.issues.append(issue)
        if self._on_issue is not None:
            self._on_issue(issue)


def _is_regular(path: Path) -> bool:
    # stat failures are reported by hashing as unreadable.
    try:
        mode = path.stat().st_mode
    except OSError:
        return True
    return stat.S_ISREG(mode)

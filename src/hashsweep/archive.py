from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from .errors import ExtractionError

logger = logging.getLogger(__name__)

SCRATCH_PREFIX = "unzipped"
COPY_CHUNK = 1024 * 1024


@contextmanager
def extract_archive(
    archive_path: str | Path,
    *,
    scratch_root: Optional[Path] = None,
    keep: bool = False,
    on_cleanup_error: Optional[Callable[[Path, OSError], None]] = None,
) -> Iterator[Path]:
    """Expand a ZIP file into a fresh scratch directory and yield its path.

    The directory is removed when the block exits, including on error, unless
    ``keep`` is set. Removal failures go to ``on_cleanup_error`` instead of
    being raised.
    """
    archive_path = Path(archive_path)
    try:
        zf = zipfile.ZipFile(archive_path)
    except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
        raise ExtractionError(f"cannot open archive: {exc}", archive_path) from exc

    with zf:
        try:
            site = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=scratch_root))
        except OSError as exc:
            raise ExtractionError(
                f"cannot create scratch directory: {exc}", archive_path
            ) from exc
        try:
            _extract_members(zf, site, archive_path)
        except BaseException:
            _remove_site(site, on_cleanup_error)
            raise

    try:
        yield site
    finally:
        if keep:
            logger.info("extracted %s kept at %s", archive_path, site)
        else:
            _remove_site(site, on_cleanup_error)


def _extract_members(zf: zipfile.ZipFile, site: Path, archive_path: Path) -> None:
    root = site.resolve()
    for info in zf.infolist():
        target = _contained_path(root, info.filename, archive_path)
        try:
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, target.open("wb") as dst:
                shutil.copyfileobj(src, dst, COPY_CHUNK)
            _apply_mode(target, info)
        except (OSError, zipfile.BadZipFile, zipfile.LargeZipFile) as exc:
            raise ExtractionError(
                f"cannot extract {info.filename}: {exc}", archive_path
            ) from exc


def _contained_path(root: Path, name: str, archive_path: Path) -> Path:
    target = (root / name).resolve()
    if target != root and root not in target.parents:
        raise ExtractionError(
            f"entry escapes extraction directory: {name}", archive_path
        )
    return target


def _apply_mode(target: Path, info: zipfile.ZipInfo) -> None:
    if os.name != "posix":
        return
    mode = (info.external_attr >> 16) & 0o777
    if mode:
        os.chmod(target, mode)


def _remove_site(
    site: Path, on_error: Optional[Callable[[Path, OSError], None]]
) -> None:
    try:
        shutil.rmtree(site)
    except OSError as exc:
        logger.warning("failed to remove scratch directory %s: %s", site, exc)
        if on_error is not None:
            on_error(site, exc)

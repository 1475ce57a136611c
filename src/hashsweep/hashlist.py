from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

from .errors import HashListError
from .models import FailedHashList, HashListLoad, KnownHashSet
from .utils.hashing import DEFAULT_ALGORITHM, digest_length

logger = logging.getLogger(__name__)

DEFAULT_SUFFIXES = (".md5",)


def load_known_hashes(
    hash_dir: str | Path,
    *,
    suffixes: Iterable[str] = DEFAULT_SUFFIXES,
    algorithm: str = DEFAULT_ALGORITHM,
    extra: Optional[Mapping[str, str]] = None,
) -> HashListLoad:
    """Build the known-bad set from every hash list in ``hash_dir``.

    Lists are read in filename order; a digest seen in more than one list keeps
    the name of the first. Lines whose trimmed length is not the digest length
    of ``algorithm`` are dropped without comment. A list that cannot be read is
    logged and skipped, but a directory that cannot be listed raises
    ``HashListError``.
    """
    directory = Path(hash_dir)
    expected_len = digest_length(algorithm)
    wanted = tuple(s.lower() for s in suffixes if s)

    try:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        raise HashListError(
            f"cannot read hash list directory {directory}: {exc}", directory
        ) from exc

    digests: Dict[str, str] = {}
    files: List[Path] = []
    failed: List[FailedHashList] = []

    for path in entries:
        if not path.name.lower().endswith(wanted):
            continue
        logger.info("loading hashes from %s", path)
        try:
            lines = _read_lines(path)
        except OSError as exc:
            logger.warning("failed to load %s: %s", path, exc)
            failed.append(FailedHashList(path=path, reason=str(exc)))
            continue
        files.append(path)
        _add_digests(digests, lines, expected_len, path.stem)

    for name, value in (extra or {}).items():
        _add_digests(digests, [str(value)], expected_len, str(name))

    return HashListLoad(known=KnownHashSet(digests), files=files, failed=failed)


def _read_lines(path: Path) -> List[str]:
    with path.open("r", encoding="utf-8", errors="replace") as f:
        return f.read().splitlines()


def _add_digests(
    digests: Dict[str, str], lines: Iterable[str], expected_len: int, name: str
) -> None:
    for line in lines:
        value = line.strip()
        if len(value) != expected_len:
            continue
        digests.setdefault(value.lower(), name)

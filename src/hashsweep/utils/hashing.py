from __future__ import annotations

import hashlib
from pathlib import Path

DEFAULT_ALGORITHM = "md5"
CHUNK_SIZE = 1024 * 1024


def hash_file(path: str | Path, algorithm: str = DEFAULT_ALGORITHM) -> str:
    h = hashlib.new(algorithm)
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest().lower()


def digest_length(algorithm: str = DEFAULT_ALGORITHM) -> int:
    """Length of the hex digest produced by ``algorithm``."""
    h = hashlib.new(algorithm)
    if h.digest_size <= 0:
        raise ValueError(f"algorithm has no fixed digest size: {algorithm}")
    return h.digest_size * 2

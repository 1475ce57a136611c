from __future__ import annotations

from pathlib import Path
from typing import Optional


class HashSweepError(Exception):
    pass


class ConfigError(HashSweepError):
    pass


class HashListError(HashSweepError):
    """The hash-list directory itself could not be enumerated."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class ExtractionError(HashSweepError):
    def __init__(self, message: str, path: Path) -> None:
        super().__init__(message)
        self.path = path

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

CLEAN = "clean"
FLAGGED = "flagged"
UNREADABLE = "unreadable"
VALID_STATUSES = {CLEAN, FLAGGED, UNREADABLE}

ISSUE_TRAVERSAL = "traversal"
ISSUE_EXTRACTION = "extraction"
ISSUE_DEPTH = "depth_exceeded"
ISSUE_CLEANUP = "cleanup"


class KnownHashSet:
    """Read-only set of lowercase hex digests, each tagged with the list it came from."""

    def __init__(self, entries: Optional[Mapping[str, str]] = None) -> None:
        normalized: Dict[str, str] = {}
        for digest, name in (entries or {}).items():
            normalized.setdefault(str(digest).strip().lower(), str(name))
        self._entries = MappingProxyType(normalized)

    def __contains__(self, digest: object) -> bool:
        if not isinstance(digest, str):
            return False
        return digest.lower() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"KnownHashSet({len(self._entries)} digests)"

    def match(self, digest: str) -> Optional[str]:
        return self._entries.get(digest.lower())


@dataclass
class FailedHashList:
    path: Path
    reason: str


@dataclass
class HashListLoad:
    known: KnownHashSet
    files: List[Path] = field(default_factory=list)
    failed: List[FailedHashList] = field(default_factory=list)


@dataclass(frozen=True)
class Verdict:
    path: Path
    status: str
    display: str = ""
    digest: Optional[str] = None
    match: Optional[str] = None
    error: Optional[str] = None

    @property
    def flagged(self) -> bool:
        return self.status == FLAGGED


@dataclass(frozen=True)
class ScanIssue:
    path: Path
    kind: str
    reason: str

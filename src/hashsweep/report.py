from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import List, Optional, TextIO

from .models import (
    CLEAN,
    FLAGGED,
    ISSUE_DEPTH,
    ISSUE_EXTRACTION,
    UNREADABLE,
    ScanIssue,
    Verdict,
)


@dataclass
class ScanSummary:
    files_scanned: int = 0
    clean: int = 0
    flagged: int = 0
    unreadable: int = 0
    archives_extracted: int = 0
    archives_failed: int = 0
    issues: int = 0
    findings: List[Verdict] = field(default_factory=list)

    def record(self, verdict: Verdict) -> None:
        self.files_scanned += 1
        if verdict.status == FLAGGED:
            self.flagged += 1
            self.findings.append(verdict)
        elif verdict.status == UNREADABLE:
            self.unreadable += 1
        elif verdict.status == CLEAN:
            self.clean += 1

    def record_issue(self, issue: ScanIssue) -> None:
        self.issues += 1
        if issue.kind in {ISSUE_EXTRACTION, ISSUE_DEPTH}:
            self.archives_failed += 1


def summary_json(summary: ScanSummary) -> str:
    payload = {
        "event": "scan_summary",
        "files_scanned": summary.files_scanned,
        "clean": summary.clean,
        "flagged": summary.flagged,
        "unreadable": summary.unreadable,
        "archives_extracted": summary.archives_extracted,
        "archives_failed": summary.archives_failed,
        "issues": summary.issues,
        "findings": [
            {"path": v.display or str(v.path), "digest": v.digest, "match": v.match}
            for v in summary.findings
        ],
    }
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class ConsoleReporter:
    def __init__(self, stream: Optional[TextIO] = None, quiet: bool = False) -> None:
        self._stream = stream or sys.stdout
        self._quiet = quiet

    def verdict(self, verdict: Verdict) -> None:
        where = verdict.display or str(verdict.path)
        if verdict.status == FLAGGED:
            self._write(f"[!!] Malware found: {where} ({verdict.match})")
        elif verdict.status == UNREADABLE:
            self._write(f"[!] Could not hash {where}: {verdict.error}")
        elif not self._quiet:
            self._write(f"[OK] Clean: {where}")

    def issue(self, issue: ScanIssue) -> None:
        self._write(f"[!] {issue.reason}: {issue.path}")

    def line(self, text: str = "") -> None:
        self._write(text)

    def _write(self, text: str) -> None:
        print(text, file=self._stream)

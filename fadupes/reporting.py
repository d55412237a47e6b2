#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Output artifacts for fadupes: the duplicate log, the lazily created error
log and the console summary.
"""

from pathlib import Path
from typing import Any, Dict, IO, List, Optional, Set, Tuple, Union

from .config import ERRORS_LOG_NAME, IDENTICAL_LOG_NAME
from .models.checkpoint import FailedEntry
from .models.fingerprint import DuplicateGroup
from .scanning.scanner import ScanReport
from .utils.time import utc_now_str


class ErrorLog:
    """Appends one line per failure; the file is only created on first use."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.count = 0
        self._fh: Optional[IO[str]] = None

    def record(self, file_path: str, failure: FailedEntry):
        if self._fh is None:
            self._fh = self.path.open("a", encoding="utf-8")
        detail = " ".join(failure.detail.split())
        self._fh.write(f"{file_path}\t{failure.error.value}\t{detail}\n")
        self._fh.flush()
        self.count += 1

    def close(self):
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def write_duplicate_log(groups: List[DuplicateGroup], path: Union[str, Path]) -> int:
    """Append ``groups`` to the duplicate log; returns how many were written.

    A group with the same set of paths is written only once per call.
    """
    if not groups:
        return 0

    seen: Set[Tuple[str, ...]] = set()
    written = 0
    with Path(path).open("a", encoding="utf-8") as f:
        f.write("Identical Files Found:\n")
        for group in groups:
            if group.signature in seen:
                continue
            seen.add(group.signature)
            f.write("#\n")
            for member in group.paths:
                f.write(f"{member}\n")
            written += 1
    return written


def log_paths(log_dir: Union[str, Path]) -> Tuple[Path, Path]:
    log_dir = Path(log_dir)
    return log_dir / IDENTICAL_LOG_NAME, log_dir / ERRORS_LOG_NAME


def summary_dict(report: ScanReport) -> Dict[str, Any]:
    """JSON-friendly view of a scan report."""
    return {
        "finished_at": utc_now_str(),
        "interrupted": report.interrupted,
        "counters": report.counters.to_dict(),
        "extractions": report.extractions,
        "state_saved": report.state_saved,
        "cache_entries": report.cache_entries,
        "elapsed_seconds": round(report.elapsed, 3),
        "groups": [
            {"fingerprint": group.fingerprint.to_dict(), "paths": list(group.paths)}
            for group in report.groups
        ],
    }


def print_summary(report: ScanReport):
    """Print the final counts and the duplicate groups."""
    counters = report.counters
    print()
    print("=" * 80)
    status = "INTERRUPTED" if report.interrupted else "COMPLETED"
    print(f"SCAN {status} - {utc_now_str()}")
    print("=" * 80)
    print(f"Processed: {counters.processed:,}  Cached: {counters.cached:,}  "
          f"Skipped: {counters.skipped:,}  Errors: {counters.errored:,}  "
          f"({report.elapsed:.1f}s)")
    print()

    if not report.groups:
        print(f"Among {counters.total:,} files, no dupes were found.")
        return

    total_dupes = sum(len(group) for group in report.groups)
    print(f"Found {total_dupes:,} identical files in {len(report.groups):,} groups:")
    for group in report.groups:
        for member in group.paths:
            print(member)
        print()

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Data structures stored in the resume state file.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Union

from .file_record import SkipReason
from .fingerprint import AudioFingerprint


class ErrorKind(str, Enum):
    DECODE = "decode"
    IO = "io"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class FingerprintEntry:
    fingerprint: AudioFingerprint

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "fingerprint", "fingerprint": self.fingerprint.to_dict()}


@dataclass(frozen=True)
class SkippedEntry:
    reason: SkipReason

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "skipped", "reason": self.reason.value}


@dataclass(frozen=True)
class FailedEntry:
    error: ErrorKind
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"status": "failed", "error": self.error.value, "detail": self.detail}


ResumeEntry = Union[FingerprintEntry, SkippedEntry, FailedEntry]


def entry_from_dict(data: Dict[str, Any]) -> ResumeEntry:
    """Rebuild an entry from its ``to_dict`` form.

    Raises ValueError (or KeyError/TypeError) for anything else.
    """
    status = data["status"]
    if status == "fingerprint":
        return FingerprintEntry(AudioFingerprint.from_dict(data["fingerprint"]))
    if status == "skipped":
        return SkippedEntry(SkipReason(data["reason"]))
    if status == "failed":
        return FailedEntry(ErrorKind(data["error"]), str(data.get("detail", "")))
    raise ValueError(f"unknown entry status: {status!r}")


@dataclass
class ScanCounters:
    """Progress counters persisted alongside the cache."""
    processed: int = 0
    cached: int = 0
    skipped: int = 0
    errored: int = 0

    @property
    def total(self) -> int:
        return self.processed + self.cached + self.skipped + self.errored

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanCounters":
        return cls(**{key: int(data.get(key, 0)) for key in ("processed", "cached", "skipped", "errored")})

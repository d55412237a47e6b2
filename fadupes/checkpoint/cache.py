#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Persistent resume cache for fadupes.

Maps each file path to the size and modification time it had when it was
examined, plus the outcome (fingerprint, skip or failure). An entry is only
trusted while the file on disk still has that size and mtime.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from ..config import STATE_FORMAT_VERSION
from ..errors import StateLoadCorrupt, StateSaveFailed
from ..models.checkpoint import (
    ErrorKind, FailedEntry, ResumeEntry, ScanCounters, SkippedEntry, entry_from_dict,
)
from ..models.file_record import FileIdentity
from ..utils.time import utc_now_str

logger = logging.getLogger(__name__)

# Failures worth re-trying on the next run; decode failures are sticky
RETRYABLE_ERRORS = {ErrorKind.IO, ErrorKind.UNEXPECTED}


class ResumeCache:
    """Path -> (identity, entry) mapping. Not thread-safe: one owner only."""

    def __init__(self, entries: Optional[Dict[str, Tuple[FileIdentity, ResumeEntry]]] = None,
                 counters: Optional[ScanCounters] = None):
        self._entries: Dict[str, Tuple[FileIdentity, ResumeEntry]] = dict(entries or {})
        self.counters = counters or ScanCounters()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[Tuple[FileIdentity, ResumeEntry]]:
        return iter(self._entries.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResumeCache):
            return NotImplemented
        return self._entries == other._entries and self.counters == other.counters

    def lookup(self, identity: FileIdentity) -> Optional[ResumeEntry]:
        """Return the cached entry if it is still valid for ``identity``."""
        cached = self._entries.get(identity.path)
        if cached is None:
            return None
        stored, entry = cached
        if stored.size != identity.size or stored.mtime_ns != identity.mtime_ns:
            logger.debug("Stale cache entry for %s", identity.path)
            return None
        if isinstance(entry, SkippedEntry):
            return None
        if isinstance(entry, FailedEntry) and entry.error in RETRYABLE_ERRORS:
            return None
        return entry

    def is_current(self, identity: FileIdentity) -> bool:
        """True if an entry exists for the path with the same size and mtime."""
        cached = self._entries.get(identity.path)
        if cached is None:
            return False
        stored, _ = cached
        return stored.size == identity.size and stored.mtime_ns == identity.mtime_ns

    def prune_missing(self) -> int:
        """Drop entries whose file no longer exists; returns how many were dropped."""
        missing = [path for path in self._entries if not os.path.lexists(path)]
        for path in missing:
            del self._entries[path]
        return len(missing)

    def get(self, path: str) -> Optional[ResumeEntry]:
        """Raw access without validation."""
        cached = self._entries.get(path)
        return cached[1] if cached else None

    def record(self, identity: FileIdentity, entry: ResumeEntry) -> None:
        self._entries[identity.path] = (identity, entry)

    def snapshot(self) -> "ResumeCache":
        """Copy safe to serialize from another thread; entries are immutable."""
        return ResumeCache(self._entries, ScanCounters(**self.counters.to_dict()))

    def to_dict(self) -> Dict[str, Any]:
        entries = {}
        for path, (identity, entry) in self._entries.items():
            data = {"size": identity.size, "mtime_ns": identity.mtime_ns}
            data.update(entry.to_dict())
            entries[path] = data
        return {
            "version": STATE_FORMAT_VERSION,
            "saved_at": utc_now_str(),
            "counters": self.counters.to_dict(),
            "entries": entries,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResumeCache":
        """Rebuild a cache, raising StateLoadCorrupt on any structural problem."""
        try:
            if not isinstance(data, dict):
                raise TypeError("state root must be an object")
            version = data.get("version")
            if version != STATE_FORMAT_VERSION:
                raise ValueError(f"unsupported state version {version!r}")
            raw_entries = data["entries"]
            if not isinstance(raw_entries, dict):
                raise TypeError("'entries' must be an object")

            entries = {}
            for path, raw in raw_entries.items():
                identity = FileIdentity(path, int(raw["size"]), int(raw["mtime_ns"]))
                entries[path] = (identity, entry_from_dict(raw))
            counters = ScanCounters.from_dict(data.get("counters") or {})
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StateLoadCorrupt(f"invalid state structure: {e}") from e
        return cls(entries, counters)

    def serialize_to(self, path: Union[str, Path]) -> None:
        """Atomically replace ``path`` with the current state."""
        path = Path(path)
        directory = path.parent
        payload = json.dumps(self.to_dict(), ensure_ascii=False)

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile("w", encoding="utf-8", dir=directory,
                                             prefix=f".{path.name}.", suffix=".tmp",
                                             delete=False) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
            _fsync_directory(directory)
        except OSError as e:
            raise StateSaveFailed(f"could not write {path}: {e}") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass

    @classmethod
    def deserialize_from(cls, path: Union[str, Path]) -> "ResumeCache":
        """Load a state file; StateLoadCorrupt if it is not a valid state."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StateLoadCorrupt(f"{path} is not valid JSON: {e}") from e
        return cls.from_dict(data)


def _fsync_directory(directory: Path) -> None:
    """Persist the rename itself (POSIX only)."""
    if not hasattr(os, "O_DIRECTORY"):
        return
    try:
        fd = os.open(str(directory), os.O_RDONLY | os.O_DIRECTORY)
    except OSError as e:
        logger.debug("Cannot open %s for fsync: %s", directory, e)
        return
    try:
        os.fsync(fd)
    except OSError as e:
        logger.debug("Directory fsync not supported for %s: %s", directory, e)
    finally:
        os.close(fd)

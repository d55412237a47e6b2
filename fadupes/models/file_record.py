#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Data structures for discovered files in fadupes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SkipReason(str, Enum):
    TOO_LARGE = "too-large"
    SIZE_FILTER = "size-filter"
    UNIQUE_SIZE = "unique-size"


@dataclass(frozen=True)
class FileIdentity:
    """Key of the resume cache: a path plus the stat values it had."""
    path: str
    size: int
    mtime_ns: int


@dataclass(frozen=True)
class CandidateFile:
    """Immutable file record emitted by the walker."""
    path: str
    size: int
    mtime_ns: int
    is_symlink: bool
    canonical_path: str

    # Set when a walker filter rejected the file
    skip_reason: Optional[SkipReason] = None

    @property
    def identity(self) -> FileIdentity:
        return FileIdentity(self.path, self.size, self.mtime_ns)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Audio fingerprint and duplicate group structures.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class AudioFingerprint:
    """Exact-match duplicate key derived from decoded samples.

    Two files are duplicates iff every field compares equal. ``rms_db`` is
    already clamped to the configured floor, so silent files compare equal
    to each other and never produce ``-inf``.
    """
    sample_count: int
    sample_rate: int
    bit_depth: int
    channels: int
    peak: float
    rms_db: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AudioFingerprint":
        return cls(
            sample_count=int(data["sample_count"]),
            sample_rate=int(data["sample_rate"]),
            bit_depth=int(data["bit_depth"]),
            channels=int(data["channels"]),
            peak=float(data["peak"]),
            rms_db=float(data["rms_db"]),
        )


@dataclass(frozen=True)
class DuplicateGroup:
    """Paths sharing one fingerprint, in discovery order."""
    fingerprint: AudioFingerprint
    paths: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.paths)

    @property
    def signature(self) -> Tuple[str, ...]:
        """Order-independent identity of the group."""
        return tuple(sorted(self.paths))

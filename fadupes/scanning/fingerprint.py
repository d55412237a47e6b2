#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Streaming fingerprint computation for fadupes.

Samples arrive as blocks of floats already normalized to the format's full
scale, so peak and RMS need no further scaling.
"""

import math
from typing import Iterable

import numpy as np

from ..config import RMS_DB_FLOOR
from ..models.fingerprint import AudioFingerprint

RMS_REFERENCE = 1.0


def rms_to_db(rms: float) -> float:
    """Convert a linear RMS level to dB, clamped to RMS_DB_FLOOR."""
    if not rms > 0.0:
        return RMS_DB_FLOOR
    return max(20.0 * math.log10(rms / RMS_REFERENCE), RMS_DB_FLOOR)


class FingerprintComputer:
    """Accumulates peak and sum of squares over one pass of a stream."""

    def __init__(self, sample_rate: int, bit_depth: int, channels: int):
        self.sample_rate = sample_rate
        self.bit_depth = bit_depth
        self.channels = channels
        self.frames = 0
        self._samples = 0
        self._peak = 0.0
        self._sum_squares = 0.0

    def update(self, block: np.ndarray) -> None:
        """Feed one block of shape ``(frames, channels)`` or a flat block."""
        data = np.asarray(block, dtype=np.float64)
        if data.size == 0:
            return
        self.frames += data.shape[0] if data.ndim > 1 else data.size // max(self.channels, 1)
        self._samples += data.size
        flat = data.ravel()
        self._peak = max(self._peak, float(np.max(np.abs(flat))))
        self._sum_squares += float(np.sum(np.square(flat)))

    def finish(self) -> AudioFingerprint:
        if self._samples:
            rms = math.sqrt(self._sum_squares / self._samples)
        else:
            rms = 0.0
        return AudioFingerprint(
            sample_count=self.frames,
            sample_rate=self.sample_rate,
            bit_depth=self.bit_depth,
            channels=self.channels,
            peak=self._peak,
            rms_db=rms_to_db(rms),
        )


def compute_fingerprint(sample_rate: int, bit_depth: int, channels: int,
                        blocks: Iterable[np.ndarray]) -> AudioFingerprint:
    """Single streaming pass over ``blocks``."""
    computer = FingerprintComputer(sample_rate, bit_depth, channels)
    for block in blocks:
        computer.update(block)
    return computer.finish()

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Feature extraction for fadupes.
Thin adapter around soundfile (libsndfile) that decodes WAV/FLAC into
normalized PCM blocks and turns them into a fingerprint.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np
import soundfile as sf

from ..config import DEFAULT_BLOCK_FRAMES
from ..errors import DecodeError
from ..models.checkpoint import ErrorKind, FailedEntry, FingerprintEntry, ResumeEntry
from ..models.file_record import CandidateFile
from .fingerprint import FingerprintComputer

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {"WAV", "WAVEX", "RF64", "FLAC"}

SUBTYPE_BIT_DEPTHS = {
    "PCM_S8": 8,
    "PCM_U8": 8,
    "PCM_16": 16,
    "PCM_24": 24,
    "PCM_32": 32,
    "FLOAT": 32,
    "DOUBLE": 64,
}


@dataclass(frozen=True)
class StreamInfo:
    """Header metadata of a decoded stream."""
    sample_rate: int
    bit_depth: int
    channels: int
    frames: int
    format: str
    subtype: str


@contextmanager
def open_stream(path: str, block_frames: int = DEFAULT_BLOCK_FRAMES) -> Iterator[Tuple[StreamInfo, Iterator[np.ndarray]]]:
    """Open an audio file and yield its header plus a block iterator.

    OSError propagates for unreadable paths; anything libsndfile cannot
    decode is reported as DecodeError.
    """
    with open(path, "rb") as fh:
        try:
            snd = sf.SoundFile(fh)
        except (RuntimeError, ValueError, TypeError) as e:
            raise DecodeError(str(e)) from e

        with snd:
            if snd.format not in SUPPORTED_FORMATS:
                raise DecodeError(f"unsupported container: {snd.format}")
            bit_depth = SUBTYPE_BIT_DEPTHS.get(snd.subtype)
            if bit_depth is None:
                raise DecodeError(f"unsupported sample encoding: {snd.subtype}")

            info = StreamInfo(
                sample_rate=snd.samplerate,
                bit_depth=bit_depth,
                channels=snd.channels,
                frames=snd.frames,
                format=snd.format,
                subtype=snd.subtype,
            )
            yield info, _read_blocks(snd, block_frames)


def _read_blocks(snd: sf.SoundFile, block_frames: int) -> Iterator[np.ndarray]:
    try:
        for block in snd.blocks(blocksize=block_frames, dtype="float64", always_2d=True):
            yield block
    except (RuntimeError, ValueError) as e:
        raise DecodeError(str(e)) from e


class FeatureExtractor:
    """Stateless per-file extraction, safe to call from worker threads."""

    def __init__(self, block_frames: int = DEFAULT_BLOCK_FRAMES):
        self.block_frames = block_frames

    def extract(self, candidate: CandidateFile) -> ResumeEntry:
        """Decode one file; per-file problems come back as FailedEntry."""
        try:
            with open_stream(candidate.path, self.block_frames) as (info, blocks):
                computer = FingerprintComputer(info.sample_rate, info.bit_depth, info.channels)
                for block in blocks:
                    computer.update(block)
                if info.frames and computer.frames < info.frames:
                    raise DecodeError(f"truncated stream: {computer.frames} of {info.frames} frames decoded")
                return FingerprintEntry(computer.finish())
        except DecodeError as e:
            logger.debug("Decode failed for %s: %s", candidate.path, e)
            return FailedEntry(ErrorKind.DECODE, str(e))
        except OSError as e:
            logger.debug("I/O failed for %s: %s", candidate.path, e)
            return FailedEntry(ErrorKind.IO, str(e))

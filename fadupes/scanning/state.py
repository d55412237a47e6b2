#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Mutable state of one scan invocation.

A ScanState is created by the scanner and mutated only from the thread that
collects worker results, so none of it needs locking.
"""

from typing import Optional, Set

from ..checkpoint.cache import ResumeCache
from ..config import DEFAULT_CHECKPOINT_EVERY
from ..grouping import DuplicateGrouper
from ..models.checkpoint import FailedEntry, FingerprintEntry, ResumeEntry, ScanCounters, SkippedEntry
from ..models.file_record import CandidateFile, SkipReason


class ScanState:
    """Cache, grouper, counters and the checkpoint countdown."""

    def __init__(self, cache: Optional[ResumeCache] = None,
                 checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY):
        self.cache = cache if cache is not None else ResumeCache()
        self.previous_counters = ScanCounters(**self.cache.counters.to_dict())
        self.counters = ScanCounters()
        self.cache.counters = self.counters
        self.grouper = DuplicateGrouper()
        self.checkpoint_every = checkpoint_every
        self.until_checkpoint = checkpoint_every
        self.recorded_paths: Set[str] = set()

    def already_recorded(self, candidate: CandidateFile) -> bool:
        return candidate.path in self.recorded_paths

    def record_skip(self, candidate: CandidateFile, reason: SkipReason) -> bool:
        if not self._claim(candidate):
            return False
        # A result for the unchanged file outlives a filter that hides it this run
        if not self.cache.is_current(candidate.identity):
            self.cache.record(candidate.identity, SkippedEntry(reason))
        self.counters.skipped += 1
        return False

    def record_cache_hit(self, candidate: CandidateFile, entry: ResumeEntry) -> bool:
        """A valid cached entry; counts as progress but not towards a checkpoint.

        Cached failures are counted as errors, so reruns report them again.
        """
        if not self._claim(candidate):
            return False
        if isinstance(entry, FailedEntry):
            self.counters.errored += 1
            return False
        self.counters.cached += 1
        if isinstance(entry, FingerprintEntry):
            self.grouper.insert(entry.fingerprint, candidate.path)
        return False

    def record_result(self, candidate: CandidateFile, entry: ResumeEntry) -> bool:
        """A newly computed outcome. Returns True when a checkpoint is due."""
        if not self._claim(candidate):
            return False
        self.cache.record(candidate.identity, entry)
        if isinstance(entry, FingerprintEntry):
            self.counters.processed += 1
            self.grouper.insert(entry.fingerprint, candidate.path)
        elif isinstance(entry, FailedEntry):
            self.counters.errored += 1

        self.until_checkpoint -= 1
        if self.until_checkpoint <= 0:
            self.until_checkpoint = self.checkpoint_every
            return True
        return False

    def _claim(self, candidate: CandidateFile) -> bool:
        if candidate.path in self.recorded_paths:
            return False
        self.recorded_paths.add(candidate.path)
        return True

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main scanner for fadupes.
Dispatches candidate files to a worker pool and funnels every outcome back
through a single owner that updates the resume cache and the duplicate
grouper, checkpointing as it goes.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set

from tqdm import tqdm

from ..checkpoint.cache import ResumeCache
from ..checkpoint.manager import CheckpointManager
from ..config import DEFAULT_CHECKPOINT_EVERY, DEFAULT_WORKERS
from ..models.checkpoint import ErrorKind, FailedEntry, ResumeEntry, ScanCounters, SkippedEntry
from ..models.file_record import CandidateFile
from ..models.fingerprint import DuplicateGroup
from .extractor import FeatureExtractor
from .state import ScanState

logger = logging.getLogger(__name__)

# Seconds between cancellation checks while waiting on workers
POLL_INTERVAL = 0.2

ResultCallback = Callable[[CandidateFile, ResumeEntry, bool], None]


class ScanPhase(str, Enum):
    IDLE = "idle"
    LOADING_STATE = "loading-state"
    SCANNING = "scanning"
    CHECKPOINTING = "checkpointing"
    SHUTTING_DOWN = "shutting-down"
    FINALIZING = "finalizing"
    DONE = "done"


@dataclass
class ScanReport:
    """What a finished (or interrupted) scan hands back to the caller."""
    counters: ScanCounters
    groups: List[DuplicateGroup]
    interrupted: bool = False
    extractions: int = 0
    state_saved: bool = False
    cache_entries: int = 0
    previous_counters: Optional[ScanCounters] = None
    elapsed: float = 0.0
    phases: List[ScanPhase] = field(default_factory=list)

    @property
    def files_seen(self) -> int:
        return self.counters.total


class DuplicateScanner:
    """
    Orchestrates one scan run.

    The thread calling ``run`` is the only one that touches the scan state;
    worker threads only run ``extractor.extract`` and hand back the outcome
    through their futures.
    """

    def __init__(self, checkpoint_manager: Optional[CheckpointManager] = None,
                 workers: int = DEFAULT_WORKERS,
                 checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY,
                 extractor: Optional[FeatureExtractor] = None,
                 cancel_event: Optional[threading.Event] = None,
                 max_in_flight: Optional[int] = None,
                 on_result: Optional[ResultCallback] = None,
                 show_progress: bool = True):
        self.checkpoint_manager = checkpoint_manager
        self.workers = workers
        self.checkpoint_every = checkpoint_every
        self.extractor = extractor or FeatureExtractor()
        self.cancel_event = cancel_event or threading.Event()
        self.max_in_flight = max_in_flight or workers * 2
        self.on_result = on_result
        self.show_progress = show_progress

        self.phase = ScanPhase.IDLE
        self.phases: List[ScanPhase] = [ScanPhase.IDLE]
        self.state: Optional[ScanState] = None
        self.extractions = 0
        self._admitted: Set[str] = set()
        self._progress = None

    def _set_phase(self, phase: ScanPhase):
        if phase is not self.phase:
            logger.debug("Scan phase: %s -> %s", self.phase.value, phase.value)
            self.phase = phase
            self.phases.append(phase)

    def run(self, candidates: Iterable[CandidateFile]) -> ScanReport:
        """Scan ``candidates`` and return the duplicate groups found."""
        start_time = time.perf_counter()

        self._set_phase(ScanPhase.LOADING_STATE)
        cache = self.checkpoint_manager.load() if self.checkpoint_manager else ResumeCache()
        self.state = ScanState(cache, self.checkpoint_every)
        if len(cache):
            prev = self.state.previous_counters
            logger.info("Resuming with %d cached entries (previous run: %d processed, %d cached, "
                        "%d skipped, %d errored)", len(cache), prev.processed, prev.cached,
                        prev.skipped, prev.errored)

        total = len(candidates) if hasattr(candidates, "__len__") else None
        self._progress = tqdm(total=total, unit="file", desc="Scanning", disable=not self.show_progress)
        pending: Dict[Future, CandidateFile] = {}
        pool = ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="fadupes-worker")
        state_saved = False

        self._set_phase(ScanPhase.SCANNING)
        try:
            self._dispatch_all(candidates, pool, pending)
            while pending and not self.cancel_event.is_set():
                self._collect(pending, timeout=POLL_INTERVAL)
        except KeyboardInterrupt:
            self.cancel_event.set()
            raise
        finally:
            interrupted = self.cancel_event.is_set()
            if interrupted:
                self._set_phase(ScanPhase.SHUTTING_DOWN)
                self._abandon(pending)
            pool.shutdown(wait=not interrupted, cancel_futures=True)
            self._progress.close()

            if self.checkpoint_manager is not None:
                self._set_phase(ScanPhase.CHECKPOINTING)
                state_saved = self.checkpoint_manager.final_save(self.state.cache)

        if interrupted:
            logger.warning("Scan interrupted after %d files; their results were kept", len(self.state.recorded_paths))
        else:
            self._set_phase(ScanPhase.FINALIZING)
        groups = self.state.grouper.finalize()
        self._set_phase(ScanPhase.DONE)

        return ScanReport(
            counters=self.state.counters,
            groups=groups,
            interrupted=interrupted,
            extractions=self.extractions,
            state_saved=state_saved,
            cache_entries=len(self.state.cache),
            previous_counters=self.state.previous_counters,
            elapsed=time.perf_counter() - start_time,
            phases=list(self.phases),
        )

    def _dispatch_all(self, candidates: Iterable[CandidateFile], pool: ThreadPoolExecutor,
                      pending: Dict[Future, CandidateFile]):
        state = self.state
        for candidate in candidates:
            if self.cancel_event.is_set():
                break
            if candidate.path in self._admitted:
                continue
            self._admitted.add(candidate.path)

            if candidate.skip_reason is not None:
                state.record_skip(candidate, candidate.skip_reason)
                self._report(candidate, SkippedEntry(candidate.skip_reason), cached=False)
                continue

            hit = state.cache.lookup(candidate.identity)
            if hit is not None:
                state.record_cache_hit(candidate, hit)
                self._report(candidate, hit, cached=True)
                continue

            while len(pending) >= self.max_in_flight and not self.cancel_event.is_set():
                self._collect(pending, timeout=POLL_INTERVAL)
            if self.cancel_event.is_set():
                break

            pending[pool.submit(self.extractor.extract, candidate)] = candidate
            self._collect(pending, timeout=0)

    def _collect(self, pending: Dict[Future, CandidateFile], timeout: float):
        """Record every finished future; waits up to ``timeout`` for the first one."""
        if not pending:
            return
        done, _ = wait(list(pending), timeout=timeout, return_when=FIRST_COMPLETED)
        for future in done:
            self._record(future, pending.pop(future))

    def _record(self, future: Future, candidate: CandidateFile):
        try:
            entry = future.result()
        except Exception as e:
            logger.error("Unexpected error processing %s: %s", candidate.path, e, exc_info=True)
            entry = FailedEntry(ErrorKind.UNEXPECTED, f"{type(e).__name__}: {e}")

        self.extractions += 1
        checkpoint_due = self.state.record_result(candidate, entry)
        self._report(candidate, entry, cached=False)
        if checkpoint_due and self.checkpoint_manager is not None and not self.cancel_event.is_set():
            self._set_phase(ScanPhase.CHECKPOINTING)
            self.checkpoint_manager.checkpoint(self.state.cache)
            self._set_phase(ScanPhase.SCANNING)

    def _abandon(self, pending: Dict[Future, CandidateFile]):
        """Cancel queued work and keep whatever already finished."""
        for future in list(pending):
            if future.cancel():
                del pending[future]
        for future in [f for f in pending if f.done()]:
            self._record(future, pending.pop(future))
        if pending:
            logger.info("Abandoning %d in-flight files", len(pending))
            pending.clear()

    def _report(self, candidate: CandidateFile, entry: ResumeEntry, cached: bool):
        self._progress.update(1)
        if self.on_result is not None:
            self.on_result(candidate, entry, cached)

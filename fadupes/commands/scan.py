#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Scan command.
Wires the configuration to discovery, the scanner and the output artifacts,
and turns Ctrl+C into a cooperative cancellation request.
"""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Optional

from tqdm import tqdm

from ..checkpoint.manager import CheckpointManager
from ..config import HARD_SIZE_CAP_BYTES, ScanConfig
from ..models.checkpoint import FailedEntry, FingerprintEntry, ResumeEntry, SkippedEntry
from ..models.file_record import CandidateFile
from ..reporting import ErrorLog, log_paths, print_summary, write_duplicate_log
from ..scanning.discovery import FileDiscovery, SymlinkPolicy
from ..scanning.filters import SizeFilter, parse_size_filter
from ..scanning.scanner import DuplicateScanner, ScanReport
from ..utils.path import ensure_dir
from ..utils.time import utc_now_str

logger = logging.getLogger(__name__)


class ScanCommand:
    def __init__(self, config: ScanConfig):
        self.config = config
        self.cancel_event = threading.Event()
        self.size_filter: Optional[SizeFilter] = None
        self.checkpoint_manager: Optional[CheckpointManager] = None
        self._error_log: Optional[ErrorLog] = None

    def prepare(self) -> FileDiscovery:
        """Validate everything that can be fatal, before any scanning starts."""
        config = self.config
        config.validate()
        if config.ignore_size:
            self.size_filter = parse_size_filter(config.ignore_size)
        if config.resume:
            self.checkpoint_manager = CheckpointManager(config.state_file)
            self.checkpoint_manager.check_state_dir()
        ensure_dir(config.log_dir)

        return FileDiscovery(
            config.inputs,
            symlink_policy=SymlinkPolicy.FOLLOW if config.follow_symlinks else SymlinkPolicy.IGNORE,
            size_filter=self.size_filter,
            skip_unique_size=config.skip_unique_size,
            cancel_event=self.cancel_event,
        )

    def execute(self) -> ScanReport:
        """Run a full scan and write the output artifacts."""
        discovery = self.prepare()
        config = self.config
        identical_log, errors_log = log_paths(config.log_dir)

        if not config.json_output:
            self._print_scan_header()

        scanner = DuplicateScanner(
            checkpoint_manager=self.checkpoint_manager,
            workers=config.workers,
            checkpoint_every=config.checkpoint_every,
            cancel_event=self.cancel_event,
            on_result=self._on_result,
            show_progress=not config.json_output,
        )

        error_log = ErrorLog(errors_log)
        self._error_log = error_log
        with error_log, self._interrupt_handler():
            # The unique-size pre-filter needs the full listing anyway; it also gives the bar a total
            candidates = discovery.discover() if config.skip_unique_size else discovery
            report = scanner.run(candidates)

        if error_log.count:
            logger.info("%d new errors written to %s", error_log.count, errors_log)
        if report.groups and not report.interrupted:
            written = write_duplicate_log(report.groups, identical_log)
            logger.info("%d duplicate groups appended to %s", written, identical_log)
        if report.state_saved:
            logger.info("Resume state saved to %s (%d entries)", config.state_file, report.cache_entries)

        if not config.json_output:
            print_summary(report)
            if report.interrupted and config.resume:
                print(f"Scan interrupted; rerun the same command to resume from {config.state_file}")
        return report

    def _on_result(self, candidate: CandidateFile, entry: ResumeEntry, cached: bool):
        if isinstance(entry, FailedEntry) and not cached and self._error_log is not None:
            try:
                self._error_log.record(candidate.path, entry)
            except OSError as e:
                logger.warning("Cannot write error log %s, disabling it for this run: %s",
                               self._error_log.path, e)
                self._error_log.close()
                self._error_log = None

        if self.config.list_files and not self.config.json_output:
            tqdm.write(f"{_status_label(entry, cached):<18} {candidate.path}")

    @contextmanager
    def _interrupt_handler(self):
        """First Ctrl+C requests cancellation, a second one aborts."""
        if threading.current_thread() is not threading.main_thread():
            yield
            return

        def handler(signum, frame):
            if self.cancel_event.is_set():
                raise KeyboardInterrupt
            self.cancel_event.set()

        previous = signal.signal(signal.SIGINT, handler)
        try:
            yield
        finally:
            signal.signal(signal.SIGINT, previous)

    def _print_scan_header(self):
        config = self.config
        print("=" * 80)
        print(f"FADUPES SCAN - {utc_now_str()}")
        print("=" * 80)
        for path in config.inputs:
            print(f"Input: {path}")
        print(f"Workers: {config.workers}, symlinks: {'follow' if config.follow_symlinks else 'ignore'}")
        print(f"Size cap: {HARD_SIZE_CAP_BYTES // (1024 ** 2)} MB"
              + (f", size filter: {self.size_filter.describe()}" if self.size_filter else ""))
        print(f"Skip unique sizes: {config.skip_unique_size}")
        if config.resume:
            print(f"Resume state: {config.state_file} (checkpoint every {config.checkpoint_every} files)")
        else:
            print("Resume state: disabled")
        print()


def _status_label(entry: ResumeEntry, cached: bool) -> str:
    if isinstance(entry, SkippedEntry):
        return f"SKIP({entry.reason.value})"
    if isinstance(entry, FailedEntry):
        return f"ERROR({entry.error.value})"
    if isinstance(entry, FingerprintEntry) and cached:
        return "CACHED"
    return "OK"

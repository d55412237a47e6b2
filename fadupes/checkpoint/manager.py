#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Checkpoint manager for resumable scans in fadupes.
Loads the resume state at startup and persists it periodically and at
shutdown, never running two saves at once.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from ..errors import StateDirectoryError, StateLoadCorrupt, StateSaveFailed
from ..utils.path import ensure_dir
from ..utils.time import backup_stamp
from ..writer import StateWriter
from .cache import ResumeCache

logger = logging.getLogger(__name__)


class CheckpointManager:
    """Owns the state file on disk; the scan owns the in-memory cache."""

    def __init__(self, state_file: Union[str, Path], background: bool = True):
        self.state_file = Path(state_file)
        self.background = background
        self.saves = 0
        self.last_error: Optional[StateSaveFailed] = None
        self._writer = None
        self._finalized = False

    @property
    def state_dir(self) -> Path:
        return self.state_file.parent

    def check_state_dir(self):
        """Fail fast when the state directory cannot hold the state file."""
        try:
            ensure_dir(self.state_dir)
        except OSError as e:
            raise StateDirectoryError(f"cannot create state directory {self.state_dir}: {e}") from e
        if not os.access(self.state_dir, os.W_OK | os.X_OK):
            raise StateDirectoryError(f"state directory is not writable: {self.state_dir}")

    def load(self) -> ResumeCache:
        """Load the state file, backing it up and starting empty if it is corrupt."""
        self.check_state_dir()
        if not self.state_file.exists():
            logger.info("No resume state at %s, starting fresh", self.state_file)
            return ResumeCache()

        try:
            cache = ResumeCache.deserialize_from(self.state_file)
        except StateLoadCorrupt as e:
            backup = self.backup_corrupt()
            logger.warning("Resume state %s is corrupt (%s); moved it to %s and starting fresh",
                           self.state_file, e, backup)
            return ResumeCache()
        except OSError as e:
            raise StateDirectoryError(f"cannot read resume state {self.state_file}: {e}") from e

        dropped = cache.prune_missing()
        if dropped:
            logger.info("Dropped %d cached entries for files that no longer exist", dropped)
        logger.info("Loaded %d cached entries from %s", len(cache), self.state_file)
        return cache

    def backup_corrupt(self) -> Path:
        """Rename the state file aside with a timestamp suffix."""
        backup = self.state_file.with_name(f"{self.state_file.name}.corrupt-{backup_stamp()}")
        counter = 1
        while backup.exists():
            backup = self.state_file.with_name(f"{self.state_file.name}.corrupt-{backup_stamp()}-{counter}")
            counter += 1
        try:
            os.replace(self.state_file, backup)
        except OSError as e:
            raise StateDirectoryError(f"cannot move corrupt state file aside: {e}") from e
        return backup

    def checkpoint(self, cache: ResumeCache):
        """Persist a snapshot of ``cache``; in background mode this returns immediately."""
        if self._finalized:
            raise RuntimeError("checkpoint after final save")
        if not self.background:
            self._save(cache)
            return

        if self._writer is None:
            self._writer = StateWriter(self.state_file)
        self._writer.submit(cache.snapshot())

    def final_save(self, cache: ResumeCache) -> bool:
        """Drain any background save, then save synchronously one last time."""
        self.close()
        self._finalized = True
        return self._save(cache)

    def close(self):
        if self._writer is not None:
            self._writer.close()
            self.saves += self._writer.saves
            self.last_error = self._writer.last_error
            self._writer = None

    def _save(self, cache: ResumeCache) -> bool:
        try:
            cache.serialize_to(self.state_file)
        except StateSaveFailed as e:
            self.last_error = e
            logger.warning("Could not save resume state: %s", e)
            return False
        self.saves += 1
        self.last_error = None
        logger.debug("Resume state saved: %d entries", len(cache))
        return True

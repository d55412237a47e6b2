#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
File discovery logic for fadupes.
Expands input files and directories into a lazy stream of audio candidates,
following or ignoring symlinks without ever looping through them.
"""

import logging
import os
import threading
import time
from collections import Counter
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Set, Tuple, Union

from ..config import HARD_SIZE_CAP_BYTES
from ..models.file_record import CandidateFile, SkipReason
from ..utils.path import canonical_path, is_audio_file
from .filters import SizeFilter

logger = logging.getLogger(__name__)


class SymlinkPolicy(str, Enum):
    FOLLOW = "follow"
    IGNORE = "ignore"


# (absolute path, canonical path, canonical paths on the descent path incl. itself)
_Frame = Tuple[str, str, FrozenSet[str]]


class FileDiscovery:
    """Walks the inputs and yields CandidateFile records.

    Every iteration starts a fresh traversal, so the same instance can be
    iterated again from scratch. Directories are identified by their
    canonical path: one already on the active descent path, or already
    entered earlier in this scan, is never entered again.
    """

    def __init__(self, inputs: Iterable[Union[str, Path]],
                 symlink_policy: SymlinkPolicy = SymlinkPolicy.FOLLOW,
                 size_filter: Optional[SizeFilter] = None,
                 skip_unique_size: bool = False,
                 size_cap: int = HARD_SIZE_CAP_BYTES,
                 cancel_event: Optional[threading.Event] = None):
        self.inputs = [os.path.abspath(p) for p in inputs]
        self.symlink_policy = symlink_policy
        self.size_filter = size_filter
        self.skip_unique_size = skip_unique_size
        self.size_cap = size_cap
        self.cancel_event = cancel_event
        self.stats: Dict[str, int] = {}

    def __iter__(self) -> Iterator[CandidateFile]:
        if self.skip_unique_size:
            return self._mark_unique_sizes(self._walk())
        return self._walk()

    def discover(self) -> List[CandidateFile]:
        """Materialize the whole candidate list."""
        return list(self)

    def _walk(self) -> Iterator[CandidateFile]:
        self.stats = Counter()
        entered: Set[str] = set()
        emitted: Set[str] = set()
        root_canonicals = {canonical_path(p) for p in self.inputs}
        start_time = time.perf_counter()

        for root in self.inputs:
            if self._cancelled():
                break
            if os.path.isdir(root):
                root_canonical = canonical_path(root)
                if root_canonical in entered:
                    logger.debug("Input %s was already scanned, skipping", root)
                    continue
                yield from self._walk_tree(root, root_canonical, entered, emitted, root_canonicals)
            elif os.path.isfile(root):
                candidate = self._make_candidate(root, canonical_path(root), os.path.islink(root), emitted)
                if candidate is not None:
                    yield candidate
            else:
                logger.warning("Input %s is neither a file nor a directory, skipping", root)

        elapsed = time.perf_counter() - start_time
        logger.info("Discovery complete: %d audio files in %.1fs (%d directories, %d symlinks skipped, "
                    "%d permission errors)", self.stats['audio_files'], elapsed,
                    self.stats['directories'], self.stats['symlinks_skipped'],
                    self.stats['permission_errors'])

    def _walk_tree(self, root: str, root_canonical: str, entered: Set[str],
                   emitted: Set[str], root_canonicals: Set[str]) -> Iterator[CandidateFile]:
        """Iterative depth-first traversal of one input directory."""
        stack: List[_Frame] = [(root, root_canonical, frozenset([root_canonical]))]

        while stack and not self._cancelled():
            dir_path, dir_canonical, ancestors = stack.pop()
            if dir_canonical in entered:
                continue
            entered.add(dir_canonical)
            self.stats['directories'] += 1

            try:
                with os.scandir(dir_path) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.warning("Cannot read directory %s: %s", dir_path, e)
                self.stats['permission_errors'] += 1
                continue

            subdirs: List[_Frame] = []
            for entry in entries:
                try:
                    is_symlink = entry.is_symlink()
                    if is_symlink and self.symlink_policy is SymlinkPolicy.IGNORE:
                        self.stats['symlinks_skipped'] += 1
                        continue

                    if entry.is_dir():
                        child_canonical = (canonical_path(entry.path) if is_symlink
                                           else os.path.join(dir_canonical, entry.name))
                        if is_symlink and (child_canonical in ancestors or child_canonical in entered
                                           or child_canonical in root_canonicals):
                            logger.debug("Skipping symlink pointing to a scanned dir: %s", entry.path)
                            self.stats['symlinks_skipped'] += 1
                            continue
                        if child_canonical in entered:
                            logger.debug("Directory already scanned through another input: %s", entry.path)
                            continue
                        subdirs.append((entry.path, child_canonical, ancestors | {child_canonical}))

                    elif entry.is_file() and is_audio_file(entry.name):
                        file_canonical = (canonical_path(entry.path) if is_symlink
                                          else os.path.join(dir_canonical, entry.name))
                        candidate = self._make_candidate(entry.path, file_canonical, is_symlink, emitted)
                        if candidate is not None:
                            yield candidate
                except OSError as e:
                    logger.warning("Cannot inspect %s: %s", entry.path, e)
                    self.stats['permission_errors'] += 1

            # Reversed so that popping visits subdirectories in name order
            stack.extend(reversed(subdirs))

    def _cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _make_candidate(self, path: str, file_canonical: str, is_symlink: bool,
                        emitted: Set[str]) -> Optional[CandidateFile]:
        if not is_audio_file(path):
            logger.debug("Not a WAV/FLAC file, ignoring: %s", path)
            return None
        if file_canonical in emitted:
            logger.debug("Already discovered through another path: %s", path)
            self.stats['already_seen'] += 1
            return None

        try:
            st = os.stat(path)
        except OSError as e:
            logger.warning("Cannot stat %s: %s", path, e)
            self.stats['permission_errors'] += 1
            return None

        emitted.add(file_canonical)
        self.stats['audio_files'] += 1
        return CandidateFile(
            path=path,
            size=st.st_size,
            mtime_ns=st.st_mtime_ns,
            is_symlink=is_symlink,
            canonical_path=file_canonical,
            skip_reason=self._filter_reason(st.st_size),
        )

    def _filter_reason(self, size: int) -> Optional[SkipReason]:
        if size > self.size_cap:
            return SkipReason.TOO_LARGE
        if self.size_filter is not None and not self.size_filter.passes(size):
            return SkipReason.SIZE_FILTER
        return None

    def _mark_unique_sizes(self, candidates: Iterable[CandidateFile]) -> Iterator[CandidateFile]:
        """Mark files whose byte size occurs once across the whole input set."""
        materialized = list(candidates)
        size_counts = Counter(c.size for c in materialized if c.skip_reason is None)
        unique = sum(1 for count in size_counts.values() if count == 1)
        logger.info("Size analysis: %d unique sizes, %d repeated sizes", unique, len(size_counts) - unique)

        for candidate in materialized:
            if candidate.skip_reason is None and size_counts[candidate.size] == 1:
                candidate = replace(candidate, skip_reason=SkipReason.UNIQUE_SIZE)
            yield candidate


def discover_audio_files(inputs: Iterable[Union[str, Path]], **kwargs) -> List[CandidateFile]:
    """Convenience function for one-shot discovery."""
    return FileDiscovery(inputs, **kwargs).discover()

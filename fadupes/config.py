#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Global configuration and constants for fadupes.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set

# Audio file types
AUDIO_EXT: Set[str] = {".wav", ".flac"}

# Files strictly larger than this are always skipped (800 MiB)
HARD_SIZE_CAP_BYTES = 800 * 1024 * 1024

# Resume state
DEFAULT_STATE_FILE = "fadupes_state.json"
DEFAULT_CHECKPOINT_EVERY = 250
STATE_FORMAT_VERSION = 1

# Output artifacts
IDENTICAL_LOG_NAME = "identical_files.log"
ERRORS_LOG_NAME = "identical_files_errors.log"

# Fingerprinting
RMS_DB_FLOOR = -999.0
DEFAULT_BLOCK_FRAMES = 65536

# Processing defaults
DEFAULT_WORKERS = os.cpu_count() or 4

logger = logging.getLogger(__name__)


@dataclass
class ScanConfig:
    """Everything one scan invocation needs, built once from the CLI."""
    inputs: List[Path]
    follow_symlinks: bool = True
    checkpoint_every: int = DEFAULT_CHECKPOINT_EVERY
    skip_unique_size: bool = False
    ignore_size: Optional[str] = None
    state_file: Path = field(default_factory=lambda: Path(DEFAULT_STATE_FILE))
    resume: bool = True
    list_files: bool = True
    workers: int = DEFAULT_WORKERS
    log_dir: Path = field(default_factory=lambda: Path("."))
    json_output: bool = False

    @classmethod
    def from_args(cls, args) -> "ScanConfig":
        """Build a config from parsed argparse arguments."""
        if args.no_resume and args.state_file is not None:
            logger.warning("--no-resume given, ignoring --state-file %s", args.state_file)

        return cls(
            inputs=[Path(p) for p in args.input],
            follow_symlinks=not args.nosym,
            checkpoint_every=args.checkpoint,
            skip_unique_size=args.skip_unique_size,
            ignore_size=args.ignore_size,
            state_file=Path(args.state_file or DEFAULT_STATE_FILE),
            resume=not args.no_resume,
            list_files=not args.nolist,
            workers=args.threads,
            log_dir=Path(args.log_dir),
            json_output=args.json,
        )

    def validate(self) -> None:
        """Fail fast on values that would make the scan meaningless."""
        from .errors import ConfigurationError, InputPathError

        if self.checkpoint_every < 1:
            raise ConfigurationError("--checkpoint must be at least 1")
        if self.workers < 1:
            raise ConfigurationError("--threads must be at least 1")
        if not self.inputs:
            raise ConfigurationError("at least one --input path is required")
        for path in self.inputs:
            if not os.path.exists(path):
                raise InputPathError(f"input path does not exist: {path}")

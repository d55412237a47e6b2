#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Path utility functions for fadupes.
"""

import os
from pathlib import Path
from typing import Union

from ..config import AUDIO_EXT


def ensure_dir(p: Path) -> None:
    """Ensure directory exists, creating it if necessary."""
    p.mkdir(parents=True, exist_ok=True)


def canonical_path(p: Union[str, Path]) -> str:
    """Fully symlink-resolved absolute path."""
    return os.path.realpath(p)


def is_audio_file(name: str) -> bool:
    """Check if file name has a supported audio extension."""
    return os.path.splitext(name)[1].lower() in AUDIO_EXT

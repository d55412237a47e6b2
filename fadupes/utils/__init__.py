"""Utility functions for fadupes."""

from .time import utc_now_str, backup_stamp
from .path import ensure_dir, canonical_path, is_audio_file

__all__ = ['utc_now_str', 'backup_stamp', 'ensure_dir', 'canonical_path', 'is_audio_file']

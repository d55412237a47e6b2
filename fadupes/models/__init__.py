"""Data models for fadupes."""

from .file_record import CandidateFile, FileIdentity, SkipReason
from .fingerprint import AudioFingerprint, DuplicateGroup
from .checkpoint import (
    ErrorKind, FailedEntry, FingerprintEntry, ResumeEntry, ScanCounters,
    SkippedEntry, entry_from_dict,
)

__all__ = [
    'CandidateFile', 'FileIdentity', 'SkipReason',
    'AudioFingerprint', 'DuplicateGroup',
    'ErrorKind', 'FailedEntry', 'FingerprintEntry', 'ResumeEntry',
    'ScanCounters', 'SkippedEntry', 'entry_from_dict',
]

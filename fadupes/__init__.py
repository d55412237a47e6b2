"""fadupes - find audio files with identical content across formats and metadata."""

__version__ = "1.0.0"
__author__ = "fadupes developers"

# Import key classes for convenient top-level access
from .checkpoint import CheckpointManager, ResumeCache
from .commands import ScanCommand
from .config import ScanConfig
from .grouping import DuplicateGrouper
from .scanning import DuplicateScanner, FeatureExtractor, FileDiscovery, ScanReport
from .models import AudioFingerprint, CandidateFile, DuplicateGroup

# Common convenience imports
from .utils import utc_now_str, ensure_dir

__all__ = [
    # Core classes
    'ScanCommand',
    'ScanConfig',
    'CheckpointManager',
    'ResumeCache',
    'DuplicateScanner',
    'ScanReport',

    # Scanning components
    'FileDiscovery',
    'FeatureExtractor',
    'DuplicateGrouper',

    # Data models
    'AudioFingerprint',
    'CandidateFile',
    'DuplicateGroup',

    # Utilities
    'utc_now_str',
    'ensure_dir',

    # Package metadata
    '__version__',
    '__author__'
]

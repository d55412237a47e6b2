"""Discovery, fingerprinting and scan orchestration for fadupes."""

from .filters import SizeFilter, parse_size, parse_size_filter
from .fingerprint import FingerprintComputer, compute_fingerprint
from .extractor import FeatureExtractor
from .discovery import FileDiscovery, SymlinkPolicy, discover_audio_files
from .scanner import DuplicateScanner, ScanPhase, ScanReport

__all__ = [
    'SizeFilter',
    'parse_size',
    'parse_size_filter',
    'FingerprintComputer',
    'compute_fingerprint',
    'FeatureExtractor',
    'FileDiscovery',
    'SymlinkPolicy',
    'discover_audio_files',
    'DuplicateScanner',
    'ScanPhase',
    'ScanReport',
]

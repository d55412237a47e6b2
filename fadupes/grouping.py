"""In-memory aggregation of fingerprints into duplicate groups."""

from typing import Dict, List

from .models.fingerprint import AudioFingerprint, DuplicateGroup


class DuplicateGrouper:
    """Maps each fingerprint to the paths that produced it."""

    def __init__(self):
        self._groups: Dict[AudioFingerprint, List[str]] = {}

    def insert(self, fingerprint: AudioFingerprint, path: str) -> None:
        paths = self._groups.setdefault(fingerprint, [])
        if path not in paths:
            paths.append(path)

    def finalize(self) -> List[DuplicateGroup]:
        """Return every group with at least two members."""
        return [DuplicateGroup(fp, tuple(paths)) for fp, paths in self._groups.items() if len(paths) > 1]

    def __len__(self) -> int:
        return len(self._groups)

"""Resume state persistence for fadupes."""

from .cache import ResumeCache
from .manager import CheckpointManager

__all__ = ['ResumeCache', 'CheckpointManager']

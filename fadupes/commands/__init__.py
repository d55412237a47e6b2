"""CLI commands for fadupes."""

from .scan import ScanCommand

__all__ = ['ScanCommand']

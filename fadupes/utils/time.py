#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Time utility functions for fadupes.
"""

from datetime import datetime, timezone


def utc_now_str() -> str:
    """Return current UTC time in ISO-8601 format with 'Z'."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def backup_stamp() -> str:
    """Return a compact UTC timestamp usable in file names."""
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Shared pytest fixtures for the fadupes tests.
"""

import logging
from pathlib import Path

import pytest

from fadupes.tests.fixtures.audio_setup import create_test_library


@pytest.fixture
def library(tmp_path):
    """A small audio library plus a map of its interesting files."""
    root = tmp_path / "library"
    files = create_test_library(root)
    return root, files


@pytest.fixture
def state_file(tmp_path) -> Path:
    return tmp_path / "state" / "fadupes_state.json"


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)

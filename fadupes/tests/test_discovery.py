#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tests for walking input directories into audio candidates.
"""

import logging
import os
import shutil
import threading

import pytest

from fadupes.models.file_record import SkipReason
from fadupes.scanning.discovery import FileDiscovery, SymlinkPolicy, discover_audio_files
from fadupes.scanning.filters import parse_size_filter
from fadupes.tests.fixtures.audio_setup import tone, write_audio

needs_symlinks = pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")


def names(candidates):
    return sorted(os.path.basename(c.path) for c in candidates)


class TestFileDiscovery:
    def test_finds_only_audio_files(self, library):
        root, files = library
        found = discover_audio_files([root])

        assert names(found) == ["broken.wav", "other.wav", "silence_a.wav", "silence_b.wav",
                                "song.wav", "song_copy.flac"]
        assert all(c.skip_reason is None for c in found)

    def test_records_size_and_mtime(self, library):
        root, files = library
        found = {c.path: c for c in discover_audio_files([root])}
        song = found[str(files["song"])]
        st = os.stat(files["song"])

        assert song.size == st.st_size
        assert song.mtime_ns == st.st_mtime_ns
        assert not song.is_symlink

    def test_extension_match_is_case_insensitive(self, tmp_path):
        write_audio(tmp_path / "LOUD.WAV", tone(), format="WAV")
        write_audio(tmp_path / "quiet.Flac", tone(), format="FLAC")
        assert names(discover_audio_files([tmp_path])) == ["LOUD.WAV", "quiet.Flac"]

    def test_file_inputs_and_overlapping_inputs(self, library):
        root, files = library
        found = discover_audio_files([root, root / "a", files["song"]])
        assert len(found) == 6

    def test_is_reiterable(self, library):
        root, _ = library
        discovery = FileDiscovery([root])
        assert list(discovery) == list(discovery)

    def test_size_cap(self, library):
        root, files = library
        cap = os.path.getsize(files["broken"])
        found = {os.path.basename(c.path): c for c in FileDiscovery([root], size_cap=cap)}

        assert found["broken.wav"].skip_reason is None
        assert found["song.wav"].skip_reason is SkipReason.TOO_LARGE

    def test_size_filter(self, library):
        root, files = library
        size_filter = parse_size_filter(f"<{os.path.getsize(files['silence_a']) + 1}")
        found = {os.path.basename(c.path): c for c in FileDiscovery([root], size_filter=size_filter)}

        assert found["silence_a.wav"].skip_reason is None
        assert found["silence_b.wav"].skip_reason is None
        assert found["song.wav"].skip_reason is SkipReason.SIZE_FILTER

    def test_skip_unique_size(self, tmp_path):
        write_audio(tmp_path / "one.wav", tone(frames=1000))
        shutil.copy(tmp_path / "one.wav", tmp_path / "two.wav")
        write_audio(tmp_path / "three.wav", tone(frames=1500))

        found = {os.path.basename(c.path): c for c in FileDiscovery([tmp_path], skip_unique_size=True)}

        assert found["one.wav"].skip_reason is None
        assert found["two.wav"].skip_reason is None
        assert found["three.wav"].skip_reason is SkipReason.UNIQUE_SIZE

    def test_cancel_stops_the_walk(self, library):
        root, _ = library
        cancel = threading.Event()
        discovery = FileDiscovery([root], cancel_event=cancel)

        found = []
        for candidate in discovery:
            found.append(candidate)
            cancel.set()

        assert len(found) == 1
        assert discovery.stats["directories"] == 1

    def test_cancel_before_start_yields_nothing(self, library):
        root, _ = library
        cancel = threading.Event()
        cancel.set()

        assert FileDiscovery([root], cancel_event=cancel).discover() == []

    def test_overlapping_input_is_not_reported_as_symlink(self, library, caplog):
        root, _ = library
        caplog.set_level(logging.DEBUG, logger="fadupes.scanning.discovery")
        discovery = FileDiscovery([root / "a", root])
        found = discovery.discover()

        assert len(found) == 6
        assert "Directory already scanned through another input" in caplog.text
        assert "Skipping symlink" not in caplog.text
        assert discovery.stats["symlinks_skipped"] == 0

    def test_unreadable_directory_is_skipped(self, library):
        root, _ = library
        locked = root / "locked"
        locked.mkdir()
        write_audio(locked / "hidden.wav", tone())
        locked.chmod(0)
        try:
            if os.access(locked, os.R_OK):
                pytest.skip("running with privileges that ignore permissions")
            discovery = FileDiscovery([root])
            found = discovery.discover()
        finally:
            locked.chmod(0o755)

        assert "hidden.wav" not in names(found)
        assert discovery.stats["permission_errors"] == 1


@needs_symlinks
class TestSymlinks:
    def test_cycle_terminates_without_revisiting(self, library):
        root, _ = library
        os.symlink(root, root / "a" / "loop")
        os.symlink(root / "c", root / "d" / "c_again")

        found = discover_audio_files([root])

        assert len(found) == 6
        assert len({c.canonical_path for c in found}) == 6

    def test_file_symlink_is_deduplicated(self, library):
        root, files = library
        os.symlink(files["song"], root / "zz_link.wav")

        found = discover_audio_files([root])
        paths = {c.path for c in found}
        assert len(found) == 6
        assert len(paths & {str(files["song"]), str(root / "zz_link.wav")}) == 1

    def test_symlink_outside_inputs_is_followed(self, tmp_path, library):
        root, _ = library
        outside = tmp_path / "outside"
        write_audio(outside / "extra.wav", tone())
        os.symlink(outside, root / "linked")

        found = {os.path.basename(c.path): c for c in discover_audio_files([root])}
        assert "extra.wav" in found
        assert found["extra.wav"].canonical_path == os.path.realpath(outside / "extra.wav")

    def test_nosym_ignores_links(self, tmp_path, library):
        root, _ = library
        outside = tmp_path / "outside"
        write_audio(outside / "extra.wav", tone())
        os.symlink(outside, root / "linked")
        os.symlink(root, root / "a" / "loop")

        discovery = FileDiscovery([root], symlink_policy=SymlinkPolicy.IGNORE)
        found = discovery.discover()

        assert "extra.wav" not in names(found)
        assert len(found) == 6
        assert discovery.stats["symlinks_skipped"] == 2

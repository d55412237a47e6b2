#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Tests for the persistent resume cache.
"""

import json

import pytest

from fadupes.checkpoint.cache import ResumeCache
from fadupes.errors import StateLoadCorrupt, StateSaveFailed
from fadupes.models.checkpoint import ErrorKind, FailedEntry, FingerprintEntry, ScanCounters, SkippedEntry
from fadupes.models.file_record import FileIdentity, SkipReason
from fadupes.tests.fixtures.records import make_fingerprint


@pytest.fixture
def populated_cache():
    cache = ResumeCache(counters=ScanCounters(processed=2, cached=1, skipped=1, errored=2))
    cache.record(FileIdentity("/music/a.wav", 1000, 111), FingerprintEntry(make_fingerprint()))
    cache.record(FileIdentity("/music/b.flac", 800, 222), FingerprintEntry(make_fingerprint(rms_db=-999.0, peak=0.0)))
    cache.record(FileIdentity("/music/big.wav", 10 ** 9, 333), SkippedEntry(SkipReason.TOO_LARGE))
    cache.record(FileIdentity("/music/bad.wav", 12, 444), FailedEntry(ErrorKind.DECODE, "unknown format"))
    cache.record(FileIdentity("/music/gone.wav", 12, 555), FailedEntry(ErrorKind.IO, "permission denied"))
    cache.record(FileIdentity("/music/ünïcode.wav", 7, 666), FailedEntry(ErrorKind.UNEXPECTED, "boom"))
    return cache


class TestLookup:
    def test_valid_fingerprint_is_served(self, populated_cache):
        entry = populated_cache.lookup(FileIdentity("/music/a.wav", 1000, 111))
        assert entry == FingerprintEntry(make_fingerprint())

    @pytest.mark.parametrize("identity", [
        FileIdentity("/music/a.wav", 1001, 111),
        FileIdentity("/music/a.wav", 1000, 112),
        FileIdentity("/music/unknown.wav", 1000, 111),
    ])
    def test_stale_or_unknown_is_a_miss(self, populated_cache, identity):
        assert populated_cache.lookup(identity) is None

    def test_skips_are_never_served(self, populated_cache):
        assert populated_cache.lookup(FileIdentity("/music/big.wav", 10 ** 9, 333)) is None
        assert populated_cache.get("/music/big.wav") == SkippedEntry(SkipReason.TOO_LARGE)

    def test_decode_failures_are_sticky(self, populated_cache):
        entry = populated_cache.lookup(FileIdentity("/music/bad.wav", 12, 444))
        assert entry == FailedEntry(ErrorKind.DECODE, "unknown format")

    def test_io_and_unexpected_failures_are_retried(self, populated_cache):
        assert populated_cache.lookup(FileIdentity("/music/gone.wav", 12, 555)) is None
        assert populated_cache.lookup(FileIdentity("/music/ünïcode.wav", 7, 666)) is None

    def test_record_replaces(self, populated_cache):
        identity = FileIdentity("/music/a.wav", 2000, 999)
        populated_cache.record(identity, SkippedEntry(SkipReason.SIZE_FILTER))
        assert len(populated_cache) == 6
        assert populated_cache.get("/music/a.wav") == SkippedEntry(SkipReason.SIZE_FILTER)


    def test_is_current(self, populated_cache):
        assert populated_cache.is_current(FileIdentity("/music/big.wav", 10 ** 9, 333))
        assert not populated_cache.is_current(FileIdentity("/music/big.wav", 10 ** 9, 334))
        assert not populated_cache.is_current(FileIdentity("/music/new.wav", 1, 1))

    def test_prune_missing(self, tmp_path):
        present = tmp_path / "present.wav"
        present.write_bytes(b"x")
        cache = ResumeCache()
        cache.record(FileIdentity(str(present), 1, 1), SkippedEntry(SkipReason.UNIQUE_SIZE))
        cache.record(FileIdentity(str(tmp_path / "moved.wav"), 1, 1), SkippedEntry(SkipReason.UNIQUE_SIZE))

        assert cache.prune_missing() == 1
        assert str(present) in cache
        assert str(tmp_path / "moved.wav") not in cache


class TestPersistence:
    def test_round_trip(self, tmp_path, populated_cache):
        path = tmp_path / "state.json"
        populated_cache.serialize_to(path)

        loaded = ResumeCache.deserialize_from(path)
        assert loaded == populated_cache
        assert loaded.counters == ScanCounters(processed=2, cached=1, skipped=1, errored=2)

    def test_file_layout(self, tmp_path, populated_cache):
        path = tmp_path / "state.json"
        populated_cache.serialize_to(path)
        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["version"] == 1
        assert data["entries"]["/music/a.wav"]["status"] == "fingerprint"
        assert data["entries"]["/music/a.wav"]["mtime_ns"] == 111
        assert data["entries"]["/music/big.wav"] == {
            "size": 10 ** 9, "mtime_ns": 333, "status": "skipped", "reason": "too-large",
        }
        assert data["entries"]["/music/bad.wav"]["error"] == "decode"

    def test_save_leaves_no_temp_files(self, tmp_path, populated_cache):
        path = tmp_path / "state.json"
        populated_cache.serialize_to(path)
        populated_cache.serialize_to(path)

        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_save_replaces_whole_file(self, tmp_path, populated_cache):
        path = tmp_path / "state.json"
        path.write_text("x" * 100000)
        ResumeCache().serialize_to(path)

        assert len(ResumeCache.deserialize_from(path)) == 0

    def test_save_failure(self, tmp_path, populated_cache):
        with pytest.raises(StateSaveFailed):
            populated_cache.serialize_to(tmp_path / "missing" / "state.json")

    def test_snapshot_is_independent(self, populated_cache):
        snapshot = populated_cache.snapshot()
        populated_cache.record(FileIdentity("/music/new.wav", 1, 1), SkippedEntry(SkipReason.UNIQUE_SIZE))
        populated_cache.counters.processed += 1

        assert len(snapshot) == 6
        assert snapshot.counters.processed == 2

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        '{"version": 1}',
        '{"version": 99, "entries": {}}',
        '{"version": 1, "entries": {"/a.wav": {"size": 1, "mtime_ns": 1, "status": "weird"}}}',
        '{"version": 1, "entries": {"/a.wav": {"size": "x", "mtime_ns": 1, "status": "skipped", "reason": "too-large"}}}',
    ])
    def test_corrupt_state(self, tmp_path, content):
        path = tmp_path / "state.json"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(StateLoadCorrupt):
            ResumeCache.deserialize_from(path)

    def test_binary_garbage_is_corrupt(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_bytes(b"\xff\xfe\x00garbage")

        with pytest.raises(StateLoadCorrupt):
            ResumeCache.deserialize_from(path)

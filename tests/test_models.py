"""Tests for the value types."""

import datetime as dt

import pytest

from replica_sync.models import (
    LINK_HASH_PREFIX,
    UNREADABLE_HASH_PREFIX,
    Create,
    CreateDirectory,
    Delete,
    DeleteDirectory,
    FileMetadata,
    Update,
    marker_path,
)

T0 = dt.datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=dt.timezone.utc)
T1 = T0 + dt.timedelta(seconds=1)


class TestRequiresHash:
    def test_no_previous(self):
        assert FileMetadata("a.txt", 3, T0).requires_hash(None)

    def test_unchanged(self):
        prev = FileMetadata("a.txt", 3, T0, "abc")
        assert not FileMetadata("a.txt", 3, T0).requires_hash(prev)

    def test_size_changed(self):
        prev = FileMetadata("a.txt", 3, T0, "abc")
        assert FileMetadata("a.txt", 4, T0).requires_hash(prev)

    def test_mtime_changed(self):
        prev = FileMetadata("a.txt", 3, T0, "abc")
        assert FileMetadata("a.txt", 3, T1).requires_hash(prev)

    def test_previous_without_hash(self):
        prev = FileMetadata("a.txt", 3, T0)
        assert FileMetadata("a.txt", 3, T0).requires_hash(prev)

    def test_previous_unreadable_is_retried(self):
        prev = FileMetadata("a.txt", 3, T0, UNREADABLE_HASH_PREFIX + "x")
        assert FileMetadata("a.txt", 3, T0).requires_hash(prev)

    def test_previous_symlink_entry_is_rehashed(self):
        prev = FileMetadata("a.txt", 3, T0, LINK_HASH_PREFIX + "target.txt")
        assert FileMetadata("a.txt", 3, T0).requires_hash(prev)


def test_dir_marker():
    assert FileMetadata("empty/", 0, T0).is_dir_marker
    assert not FileMetadata("empty", 0, T0).is_dir_marker
    assert marker_path("a/b") == "a/b/"
    assert marker_path("a/b/") == "a/b/"


def test_frozen():
    meta = FileMetadata("a.txt", 3, T0)
    with pytest.raises(AttributeError):
        meta.size = 4  # type: ignore[misc]


def test_dict_round_trip_keeps_every_field():
    for meta in (FileMetadata("dir/a.txt", 10, T0, "0123abcd"), FileMetadata("empty/", 0, T1)):
        assert FileMetadata.from_dict(meta.to_dict()) == meta


def test_from_dict_naive_timestamp_is_utc():
    meta = FileMetadata.from_dict({"path": "a", "size": 1, "last_modified": "2024-05-01T12:00:00"})
    assert meta.last_modified.tzinfo == dt.timezone.utc
    assert meta.content_hash is None


def test_operation_actions():
    meta = FileMetadata("a.txt", 1, T0)
    assert Create("a.txt", meta).action == "CREATE"
    assert Update("a.txt", meta, meta).action == "UPDATE"
    assert Delete("a.txt").action == "DELETE"
    assert CreateDirectory("d").action == "MKDIR"
    assert DeleteDirectory("d").action == "RMDIR"
    assert CreateDirectory("d").is_dir and not Delete("a.txt").is_dir

"""
Value types shared by the scanner, reconciler, executor and coordinator.

- FileMetadata: one file (or empty-directory marker) relative to a scan root.
- Inventory: relative path -> FileMetadata for one root at one point in time.
- SyncOperation: closed family of operations, one subclass per kind.
- PassSummary: what one synchronization pass did.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import ClassVar, Optional

DIR_MARKER_SUFFIX = "/"

# Never valid hex digests, so they compare unequal to any real hash.
UNREADABLE_HASH_PREFIX = "unreadable:"
LINK_HASH_PREFIX = "link:"
_NO_REUSE_PREFIXES = (UNREADABLE_HASH_PREFIX, LINK_HASH_PREFIX)


@dataclass(frozen=True)
class FileMetadata:
    relative_path: str
    size: int
    last_modified: dt.datetime
    content_hash: Optional[str] = None

    @property
    def is_dir_marker(self) -> bool:
        return self.relative_path.endswith(DIR_MARKER_SUFFIX)

    def requires_hash(self, previous: Optional[FileMetadata]) -> bool:
        """True when the content hash cannot be carried over from ``previous``."""
        if previous is None or not previous.content_hash:
            return True
        if previous.content_hash.startswith(_NO_REUSE_PREFIXES):
            return True
        return self.size != previous.size or self.last_modified != previous.last_modified

    def with_hash(self, content_hash: Optional[str]) -> FileMetadata:
        return FileMetadata(self.relative_path, self.size, self.last_modified, content_hash)

    def to_dict(self) -> dict:
        return {
            "path": self.relative_path,
            "size": self.size,
            "last_modified": self.last_modified.isoformat(timespec="microseconds"),
            "content_hash": self.content_hash,
        }

    @classmethod
    def from_dict(cls, data: dict) -> FileMetadata:
        when = dt.datetime.fromisoformat(data["last_modified"])
        if when.tzinfo is None:
            when = when.replace(tzinfo=dt.timezone.utc)
        return cls(
            relative_path=str(data["path"]),
            size=int(data["size"]),
            last_modified=when,
            content_hash=data.get("content_hash"),
        )


Inventory = dict[str, FileMetadata]


def marker_path(relative_dir: str) -> str:
    return relative_dir.rstrip(DIR_MARKER_SUFFIX) + DIR_MARKER_SUFFIX


def utc_from_timestamp(ts: float) -> dt.datetime:
    return dt.datetime.fromtimestamp(ts, tz=dt.timezone.utc)


# -------------------------
# Operations
# -------------------------

@dataclass(frozen=True)
class SyncOperation:
    path: str

    action: ClassVar[str] = ""
    is_dir: ClassVar[bool] = False


@dataclass(frozen=True)
class Create(SyncOperation):
    metadata: FileMetadata

    action: ClassVar[str] = "CREATE"


@dataclass(frozen=True)
class Update(SyncOperation):
    old_metadata: FileMetadata
    new_metadata: FileMetadata

    action: ClassVar[str] = "UPDATE"


@dataclass(frozen=True)
class Delete(SyncOperation):
    action: ClassVar[str] = "DELETE"


@dataclass(frozen=True)
class CreateDirectory(SyncOperation):
    action: ClassVar[str] = "MKDIR"
    is_dir: ClassVar[bool] = True


@dataclass(frozen=True)
class DeleteDirectory(SyncOperation):
    action: ClassVar[str] = "RMDIR"
    is_dir: ClassVar[bool] = True


@dataclass(frozen=True)
class PassSummary:
    operations_total: int = 0
    succeeded: int = 0
    failed: int = 0
    ok: bool = True
    error: Optional[str] = None
    duration_seconds: float = 0.0

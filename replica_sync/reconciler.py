"""
Turns a source and a replica inventory into the operations that make the
replica match the source.

Order: creates and updates while walking the source, then deletes while
walking the replica. The list is not sorted by directory depth; the executor
creates missing parents itself.
"""

from __future__ import annotations

from .models import (
    DIR_MARKER_SUFFIX,
    Create,
    CreateDirectory,
    Delete,
    DeleteDirectory,
    FileMetadata,
    Inventory,
    SyncOperation,
    Update,
)


def content_differs(source: FileMetadata, replica: FileMetadata) -> bool:
    # Hashes win when both sides have one; otherwise size and mtime decide.
    if source.content_hash and replica.content_hash:
        return source.content_hash != replica.content_hash
    return source.size != replica.size or source.last_modified != replica.last_modified


def _ancestor_dirs(inventory: Inventory) -> set[str]:
    dirs: set[str] = set()
    for path in inventory:
        parts = path.rstrip(DIR_MARKER_SUFFIX).split("/")
        for depth in range(1, len(parts)):
            dirs.add("/".join(parts[:depth]))
    return dirs


def reconcile(source: Inventory, replica: Inventory) -> list[SyncOperation]:
    """
    A replica empty-directory marker whose directory now has content in the
    source is not deleted: the creates below it fill it instead.
    """
    operations: list[SyncOperation] = []
    source_dirs = _ancestor_dirs(source)

    for path, src_meta in source.items():
        rep_meta = replica.get(path)
        if src_meta.is_dir_marker:
            if rep_meta is None:
                operations.append(CreateDirectory(path.rstrip(DIR_MARKER_SUFFIX)))
        elif rep_meta is None:
            operations.append(Create(path, src_meta))
        elif content_differs(src_meta, rep_meta):
            operations.append(Update(path, rep_meta, src_meta))

    for path, rep_meta in replica.items():
        if path in source:
            continue
        if rep_meta.is_dir_marker:
            directory = path.rstrip(DIR_MARKER_SUFFIX)
            if directory not in source_dirs:
                operations.append(DeleteDirectory(directory))
        else:
            operations.append(Delete(path))

    return operations

"""
Metadata scanner.

Walks a directory tree depth-first and returns an Inventory keyed by
root-relative, forward-slash paths. Content hashes (MD5) are carried over
from the previous inventory of the same root when size and modification
time are unchanged; otherwise the file is streamed and hashed again.

Empty directories are recorded as marker entries ("dir/", size 0).
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .ignore import IgnoreMatcher
from .models import (
    LINK_HASH_PREFIX,
    UNREADABLE_HASH_PREFIX,
    FileMetadata,
    Inventory,
    marker_path,
    utc_from_timestamp,
)

HASH_CHUNK_SIZE = 1024 * 1024


def md5_file(path: Path, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    h = hashlib.md5()
    with path.open("rb") as f:
        while True:
            b = f.read(chunk_size)
            if not b:
                break
            h.update(b)
    return h.hexdigest()


def unreadable_hash() -> str:
    return f"{UNREADABLE_HASH_PREFIX}{uuid.uuid4().hex}"


def hash_or_fallback(path: Path, logger: logging.Logger) -> str:
    try:
        return md5_file(path)
    except OSError as e:
        logger.error("Error computing hash for %s: %s", path, e)
        return unreadable_hash()


@dataclass
class _Walk:
    root: Path
    logger: logging.Logger
    previous: Inventory
    ignore: Optional[IgnoreMatcher]
    record_links: bool = False
    inventory: Inventory = field(default_factory=dict)
    hashed: int = 0


def scan_directory(
    root: Path,
    logger: logging.Logger,
    previous: Optional[Inventory] = None,
    ignore: Optional[IgnoreMatcher] = None,
    record_links: bool = False,
) -> Inventory:
    """
    Return the inventory of ``root``.

    A missing root yields an empty inventory and a warning. Per-entry failures
    are logged and skipped; a failure of the walk itself keeps whatever was
    collected before it.

    With ``record_links`` every symlink, dangling ones included, is recorded
    as a file entry of its own instead of being followed or skipped, so a
    replica scan sees the links it has to remove.
    """
    root = Path(root)
    if not root.exists():
        logger.warning("Directory does not exist: %s", root)
        return {}
    if not root.is_dir():
        logger.warning("Not a directory: %s", root)
        return {}

    walk = _Walk(root=root, logger=logger, previous=previous or {}, ignore=ignore, record_links=record_links)
    try:
        _scan_recursive(walk, root, "")
    except Exception as e:
        logger.error("Error scanning directory %s: %s", root, e)

    logger.info("Scanned %s: %d entries (%d hashed)", root, len(walk.inventory), walk.hashed)
    return walk.inventory


def _scan_recursive(walk: _Walk, current: Path, rel_dir: str) -> Optional[int]:
    """Number of entries of ``current`` kept in the inventory, or None if it could not be listed."""
    logger = walk.logger
    try:
        entries = sorted(current.iterdir(), key=lambda p: p.name)
    except PermissionError as e:
        logger.warning("Access denied to %s: %s", current, e)
        return None
    except FileNotFoundError as e:
        logger.warning("Directory vanished during scan %s: %s", current, e)
        return None
    except OSError as e:
        logger.error("Error scanning directory %s: %s", current, e)
        return None

    kept = 0
    for entry in entries:
        rel = f"{rel_dir}{entry.name}"
        try:
            if walk.record_links and entry.is_symlink():
                kept += 1
                _record_link(walk, entry, rel)
            elif entry.is_dir():
                if entry.is_symlink():
                    logger.debug("Skipping symlinked directory: %s", entry)
                    continue
                if walk.ignore and walk.ignore.is_ignored(rel, is_dir=True):
                    continue
                kept += 1
                if _scan_recursive(walk, entry, rel + "/") == 0:
                    _record_marker(walk, entry, rel)
            elif entry.is_file():
                if walk.ignore and walk.ignore.is_ignored(rel):
                    continue
                # counted even when the stat below fails
                kept += 1
                _record_file(walk, entry, rel)
            else:
                logger.debug("Skipping special file: %s", entry)
        except PermissionError as e:
            logger.warning("Access denied to %s: %s", entry, e)
        except FileNotFoundError as e:
            logger.warning("Entry vanished during scan %s: %s", entry, e)
        except OSError as e:
            logger.error("Error processing %s: %s", entry, e)
    return kept


def _record_file(walk: _Walk, path: Path, rel: str) -> None:
    st = path.stat()
    meta = FileMetadata(rel, st.st_size, utc_from_timestamp(st.st_mtime))

    prev = walk.previous.get(rel)
    if meta.requires_hash(prev):
        meta = meta.with_hash(hash_or_fallback(path, walk.logger))
        walk.hashed += 1
    else:
        meta = meta.with_hash(prev.content_hash)

    walk.inventory[rel] = meta


def _record_marker(walk: _Walk, path: Path, rel: str) -> None:
    try:
        when = utc_from_timestamp(path.stat().st_mtime)
    except OSError as e:
        walk.logger.warning("Directory vanished during scan %s: %s", path, e)
        return
    key = marker_path(rel)
    walk.inventory[key] = FileMetadata(key, 0, when)


def _record_link(walk: _Walk, path: Path, rel: str) -> None:
    st = path.lstat()
    target = path.readlink().as_posix()
    walk.inventory[rel] = FileMetadata(
        rel, st.st_size, utc_from_timestamp(st.st_mtime), f"{LINK_HASH_PREFIX}{target}"
    )

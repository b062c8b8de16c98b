"""
Applies sync operations to the replica tree.

Each operation is applied on its own and logged exactly once, success or
failure. A failed operation bumps the failure counter and the run moves on to
the next one; the next pass retries whatever is still out of sync.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Callable, Optional

from .log import log_action
from .models import (
    Create,
    CreateDirectory,
    Delete,
    DeleteDirectory,
    SyncOperation,
    Update,
)


def join_relative(root: Path, rel: str) -> Path:
    parts = [p for p in rel.split("/") if p]
    return root.joinpath(*parts)


class Executor:
    def __init__(self, source_root: Path, replica_root: Path, logger: logging.Logger):
        self.source_root = Path(source_root)
        self.replica_root = Path(replica_root)
        self.logger = logger
        self.succeeded = 0
        self.failed = 0
        self.applied: list[SyncOperation] = []

    def execute(self, op: SyncOperation) -> bool:
        handler = self._handler_for(op)
        try:
            detail = handler(op)
        except Exception as e:
            self.failed += 1
            log_action(
                self.logger,
                op.action,
                f"FAILED {op.path} | {e}",
                path=op.path,
                is_dir=op.is_dir,
                level=logging.ERROR,
            )
            return False

        self.succeeded += 1
        self.applied.append(op)
        message = op.path if not detail else f"{op.path} ({detail})"
        log_action(self.logger, op.action, message, path=op.path, is_dir=op.is_dir)
        return True

    def _handler_for(self, op: SyncOperation) -> Callable[..., Optional[str]]:
        if isinstance(op, Create):
            return self._create
        if isinstance(op, Update):
            return self._update
        if isinstance(op, Delete):
            return self._delete
        if isinstance(op, CreateDirectory):
            return self._create_directory
        if isinstance(op, DeleteDirectory):
            return self._delete_directory
        raise TypeError(f"Unknown sync operation: {op!r}")

    # -------------------------
    # Handlers
    # -------------------------

    def _create(self, op: Create) -> Optional[str]:
        return self._copy(op.path)

    def _update(self, op: Update) -> Optional[str]:
        return self._copy(op.path)

    def _delete(self, op: Delete) -> Optional[str]:
        target = join_relative(self.replica_root, op.path)
        if target.is_symlink() or target.is_file():
            try:
                target.unlink()
            except FileNotFoundError:
                pass
        elif target.is_dir():
            return "is a directory, left in place"

        pruned = self._prune_empty_parents(target.parent)
        if pruned:
            return "removed empty: " + ", ".join(pruned)
        return None

    def _create_directory(self, op: CreateDirectory) -> Optional[str]:
        target = join_relative(self.replica_root, op.path)
        self._clear_file_ancestors(op.path, include_self=True)
        if target.is_dir():
            return "exists"
        target.mkdir(parents=True, exist_ok=True)
        return None

    def _delete_directory(self, op: DeleteDirectory) -> Optional[str]:
        target = join_relative(self.replica_root, op.path)
        if target.is_symlink():
            target.unlink()
        elif target.is_dir():
            if join_relative(self.source_root, op.path).is_dir():
                return "kept, source still has it"
            shutil.rmtree(target)
        else:
            return "already gone"

        pruned = self._prune_empty_parents(target.parent)
        if pruned:
            return "removed empty: " + ", ".join(pruned)
        return None

    # -------------------------
    # Filesystem helpers
    # -------------------------

    def _copy(self, rel: str) -> Optional[str]:
        src = join_relative(self.source_root, rel)
        dst = join_relative(self.replica_root, rel)

        self._clear_file_ancestors(rel)
        dst.parent.mkdir(parents=True, exist_ok=True)

        if dst.is_symlink():
            dst.unlink()
        elif dst.is_dir():
            shutil.rmtree(dst)

        # copy2 carries the source mtime over to the replica
        shutil.copy2(src, dst)
        return None

    def _clear_file_ancestors(self, rel: str, include_self: bool = False) -> None:
        """Remove files or symlinks sitting where a directory of ``rel`` must go."""
        parts = [p for p in rel.split("/") if p]
        if not include_self:
            parts = parts[:-1]
        current = self.replica_root
        for part in parts:
            current = current / part
            if current.is_symlink() or current.is_file():
                current.unlink()
                self.logger.debug("Removed %s to make room for a directory", current)
            elif not current.exists():
                return

    def _prune_empty_parents(self, directory: Path) -> list[str]:
        """
        Remove now-empty directories from ``directory`` up to (not including)
        the replica root. Stops at the first directory that is not empty,
        that the source still has, or that disappeared underneath us.
        """
        pruned: list[str] = []
        current = directory
        while current != self.replica_root and self.replica_root in current.parents:
            rel = current.relative_to(self.replica_root).as_posix()
            if join_relative(self.source_root, rel).is_dir():
                break
            try:
                current.rmdir()
            except OSError:
                break
            pruned.append(rel)
            current = current.parent
        return pruned

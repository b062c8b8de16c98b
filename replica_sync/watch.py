"""
Optional early trigger: filesystem events under the source root wake the
sync loop. Handlers never touch the replica; every change still goes
through a full, serialized pass.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .ignore import IgnoreMatcher

TRIGGER_EVENTS = {"created", "modified", "deleted", "moved"}


class SourceChangeHandler(FileSystemEventHandler):
    def __init__(
        self,
        source_root: Path,
        wake_event: threading.Event,
        logger: logging.Logger,
        ignore: Optional[IgnoreMatcher] = None,
    ):
        self.source_root = Path(source_root)
        self.wake_event = wake_event
        self.logger = logger
        self.ignore = ignore

    def _relative(self, raw_path) -> Optional[str]:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode(errors="replace")
        try:
            return Path(raw_path).relative_to(self.source_root).as_posix()
        except ValueError:
            return None

    def _is_relevant(self, raw_path, is_dir: bool) -> bool:
        rel = self._relative(raw_path)
        if rel is None or rel == ".":
            return False
        if self.ignore and self.ignore.is_ignored(rel, is_dir=is_dir):
            return False
        return True

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in TRIGGER_EVENTS:
            return
        is_dir = bool(event.is_directory)
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)
        if not any(self._is_relevant(p, is_dir) for p in paths):
            return
        if not self.wake_event.is_set():
            self.logger.debug("Source change: %s %s", event.event_type, event.src_path)
        self.wake_event.set()


def start_watcher(
    source_root: Path,
    wake_event: threading.Event,
    logger: logging.Logger,
    ignore: Optional[IgnoreMatcher] = None,
) -> Observer:
    handler = SourceChangeHandler(source_root, wake_event, logger, ignore)
    observer = Observer()
    observer.schedule(handler, str(source_root), recursive=True)
    observer.start()
    logger.info("Watching for changes: %s", source_root)
    return observer

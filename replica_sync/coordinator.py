"""
One synchronization pass, and the loop that repeats it.

A pass: scan source -> scan replica -> reconcile -> execute -> keep state.
The source inventory of a pass is the hashing hint for the next source scan.
The replica is rescanned every pass; its hint is the pre-execution replica
inventory with only the operations that actually succeeded applied to it.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Iterable, Optional

from .config import SyncConfiguration
from .executor import Executor
from .ignore import IgnoreMatcher
from .models import (
    Create,
    CreateDirectory,
    Delete,
    DeleteDirectory,
    Inventory,
    PassSummary,
    SyncOperation,
    Update,
    marker_path,
)
from .reconciler import reconcile
from .scanner import scan_directory
from .state import InventoryStore


def replica_hint(replica: Inventory, applied: Iterable[SyncOperation], source: Inventory) -> Inventory:
    """Replica inventory as it should look after ``applied`` went through."""
    hint = dict(replica)
    for op in applied:
        if isinstance(op, (Create, Update)):
            meta = source.get(op.path)
            if meta is not None:
                hint[op.path] = meta
        elif isinstance(op, Delete):
            hint.pop(op.path, None)
        elif isinstance(op, CreateDirectory):
            key = marker_path(op.path)
            meta = source.get(key)
            if meta is not None:
                hint[key] = meta
        elif isinstance(op, DeleteDirectory):
            prefix = marker_path(op.path)
            for path in [p for p in hint if p.startswith(prefix)]:
                del hint[path]
    return hint


class SyncCoordinator:
    def __init__(
        self,
        config: SyncConfiguration,
        logger: logging.Logger,
        ignore: Optional[IgnoreMatcher] = None,
        store: Optional[InventoryStore] = None,
    ):
        self.config = config
        self.logger = logger
        self.ignore = ignore if ignore is not None else IgnoreMatcher(config.exclude)
        self.store = store
        self.previous_source: Inventory = {}
        self.previous_replica: Inventory = {}
        if self.store is not None:
            self.previous_source, self.previous_replica = self.store.load()

    def run_once(self, stop_event: Optional[threading.Event] = None) -> PassSummary:
        started = time.monotonic()
        self.logger.info("--- Synchronization started ---")
        try:
            source_inv = scan_directory(self.config.source, self.logger, self.previous_source, self.ignore)
            replica_inv = scan_directory(
                self.config.replica, self.logger, self.previous_replica, record_links=True
            )

            operations = reconcile(source_inv, replica_inv)
            executor = Executor(self.config.source, self.config.replica, self.logger)

            if not operations:
                self.logger.info("No changes detected")
            else:
                self.logger.info("Executing %d operations...", len(operations))
                for index, op in enumerate(operations):
                    if stop_event is not None and stop_event.is_set():
                        self.logger.warning(
                            "Shutdown requested: %d operations left for the next pass", len(operations) - index
                        )
                        break
                    executor.execute(op)
                self.logger.info(
                    "Operations completed: %d successful, %d failed", executor.succeeded, executor.failed
                )

            self._persist(source_inv, replica_hint(replica_inv, executor.applied, source_inv))
        except Exception as e:
            self.logger.exception("Synchronization failed: %s", e)
            return PassSummary(ok=False, error=str(e), duration_seconds=time.monotonic() - started)

        self.logger.info("Synchronization completed")
        return PassSummary(
            operations_total=len(operations),
            succeeded=executor.succeeded,
            failed=executor.failed,
            duration_seconds=time.monotonic() - started,
        )

    def _persist(self, source: Inventory, replica: Inventory) -> None:
        self.previous_source = source
        self.previous_replica = replica
        if self.store is not None:
            self.store.save(source, replica)


class SyncLoop(threading.Thread):
    """
    Runs a pass, waits the full interval, repeats. The wait starts when the
    pass ends, so passes never overlap. ``wake_event`` (set by the watcher)
    cuts the wait short; ``stop_event`` ends the loop between passes.
    """

    def __init__(
        self,
        coordinator: SyncCoordinator,
        interval_sec: float,
        stop_event: threading.Event,
        wake_event: Optional[threading.Event] = None,
        debounce_sec: float = 1.0,
    ):
        super().__init__(name="replica-sync", daemon=True)
        self.coordinator = coordinator
        self.logger = coordinator.logger
        self.interval_sec = max(1.0, float(interval_sec))
        self.stop_event = stop_event
        self.wake_event = wake_event
        self.debounce_sec = debounce_sec
        self.passes = 0
        self.last_summary: Optional[PassSummary] = None

    def run(self) -> None:
        self.logger.info("SYNC LOOP: started (interval=%.0fs)", self.interval_sec)
        while not self.stop_event.is_set():
            if self.wake_event is not None:
                self.wake_event.clear()
            try:
                self.last_summary = self.coordinator.run_once(stop_event=self.stop_event)
            except Exception as e:
                self.logger.error("Synchronization error: %s", e)
            self.passes += 1
            self._wait_for_next_pass()
        self.logger.info("SYNC LOOP: stopped")

    def _wait_for_next_pass(self) -> None:
        deadline = time.monotonic() + self.interval_sec
        while not self.stop_event.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            if self.wake_event is None:
                self.stop_event.wait(remaining)
                continue
            if self.wake_event.wait(min(remaining, 0.5)):
                # let a burst of events settle before scanning
                self.stop_event.wait(self.debounce_sec)
                self.logger.info("Change detected in source, starting next pass early")
                return

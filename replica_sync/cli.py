"""
replica-sync: keep a replica folder identical to a source folder.

Usage
  replica-sync --source /src --replica /dst --interval 30 --log-file sync.log
  replica-sync /src /dst 30 sync.log
  replica-sync --once                      # one pass with the saved folders
  replica-sync --watch --exclude "*.tmp"   # also wake early on source changes

Values not given on the command line come from ~/.replica_sync/config.json,
which is rewritten after every successful start.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from .config import (
    CONFIG_PATH,
    build_effective_config,
    save_config_file,
    validate_config,
)
from .coordinator import SyncCoordinator, SyncLoop
from .ignore import IgnoreMatcher
from .log import setup_logger
from .state import InventoryStore
from .watch import start_watcher


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="replica-sync",
        description="One-way, periodic synchronization of a replica folder with a source folder.",
    )
    p.add_argument("source_pos", nargs="?", metavar="source", help="Source folder.")
    p.add_argument("replica_pos", nargs="?", metavar="replica", help="Replica folder.")
    p.add_argument("interval_pos", nargs="?", metavar="interval", help="Seconds between passes.")
    p.add_argument("log_pos", nargs="?", metavar="log_file", help="Log file.")
    p.add_argument("--source", type=str, default=None, help="Folder to copy from.")
    p.add_argument("--replica", type=str, default=None, help="Folder kept identical to the source.")
    p.add_argument("--interval", type=str, default=None, help="Seconds between synchronization passes.")
    p.add_argument("--log-file", type=str, default=None, help="File that receives the log.")
    p.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="PATTERN",
        help="gitignore-style pattern of source paths to leave out (repeatable).",
    )
    p.add_argument("--watch", action="store_true", help="Start a pass early when the source changes.")
    p.add_argument("--no-state", action="store_true", help="Do not keep the inventory file beside the replica.")
    p.add_argument("--once", action="store_true", help="Run a single pass and exit.")
    args = p.parse_args(argv)

    args.source = args.source or args.source_pos
    args.replica = args.replica or args.replica_pos
    args.interval = args.interval if args.interval is not None else args.interval_pos
    args.log_file = args.log_file or args.log_pos
    return args


def main(argv: Optional[list[str]] = None, config_path: Path = CONFIG_PATH) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)

    try:
        cfg = build_effective_config(args, config_path)
    except (ValueError, EOFError) as e:
        print(f"Error: {e or 'no folder given'}", file=sys.stderr)
        return 2

    try:
        logger = setup_logger(cfg.log_path.expanduser())
    except OSError as e:
        print(f"Error: cannot open log file {cfg.log_path}: {e}", file=sys.stderr)
        return 2

    try:
        cfg = validate_config(cfg)
    except ValueError as e:
        logger.error("Config error: %s", e)
        return 2

    logger.info("Starting folder synchronization...")
    logger.info("Source  : %s", cfg.source)
    logger.info("Replica : %s", cfg.replica)
    logger.info("Interval: %d seconds", cfg.interval_seconds)
    logger.info("Log file: %s", cfg.log_path)
    if cfg.exclude:
        logger.info("Exclude : %s", ", ".join(cfg.exclude))

    try:
        save_config_file(cfg, config_path)
        logger.info("Saved config: %s", config_path)
    except OSError as e:
        logger.error("Could not save config: %s", e)

    ignore = IgnoreMatcher(cfg.exclude)
    store = InventoryStore(cfg.source, cfg.replica, logger) if cfg.persist_state else None
    coordinator = SyncCoordinator(cfg, logger, ignore=ignore, store=store)

    if args.once:
        summary = coordinator.run_once()
        return 0 if summary.ok and summary.failed == 0 else 1

    stop_event = threading.Event()
    wake_event = threading.Event() if cfg.watch else None

    def _on_sigterm(signum, frame):
        stop_event.set()

    signal.signal(signal.SIGTERM, _on_sigterm)

    observer = None
    if wake_event is not None:
        try:
            observer = start_watcher(cfg.source, wake_event, logger, ignore)
        except OSError as e:
            logger.error("Could not watch %s, falling back to the interval only: %s", cfg.source, e)

    loop = SyncLoop(coordinator, cfg.interval_seconds, stop_event, wake_event)
    logger.info("Synchronizing every %d seconds... (Ctrl+C to stop)", cfg.interval_seconds)
    loop.start()

    try:
        while loop.is_alive() and not stop_event.is_set():
            loop.join(timeout=0.5)
    except KeyboardInterrupt:
        pass
    finally:
        logger.info("Shutdown signal received...")
        stop_event.set()
        if observer is not None:
            observer.stop()
            observer.join(timeout=10)
        # the current operation finishes; the rest waits for the next run
        loop.join()
        logger.info("Stopping folder synchronization...")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

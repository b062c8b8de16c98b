from __future__ import annotations

import argparse
import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

APP_DIR = Path.home() / ".replica_sync"
CONFIG_PATH = APP_DIR / "config.json"

DEFAULT_INTERVAL_SEC = 60
DEFAULT_LOG_FILE = Path("replica-sync.log")


@dataclass(frozen=True)
class SyncConfiguration:
    source: Path
    replica: Path
    interval_seconds: int
    log_path: Path
    exclude: tuple[str, ...] = field(default_factory=tuple)
    watch: bool = False
    persist_state: bool = True


def prompt_for_path(label: str, default: Optional[Path] = None) -> Path:
    while True:
        hint = f" [{default}]" if default else ""
        raw = input(f"{label}{hint}: ").strip().strip('"')
        if not raw and default:
            return default
        if raw:
            return Path(raw)
        print("Please enter a non-empty path.")


def load_config_file(config_path: Path = CONFIG_PATH) -> dict:
    try:
        if config_path.exists():
            data = json.loads(config_path.read_text(encoding="utf-8"))
            if isinstance(data, dict):
                return data
    except (OSError, ValueError):
        pass
    return {}


def save_config_file(cfg: SyncConfiguration, config_path: Path = CONFIG_PATH) -> None:
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "source": str(cfg.source),
        "replica": str(cfg.replica),
        "interval_seconds": cfg.interval_seconds,
        "log_file": str(cfg.log_path),
        "exclude": list(cfg.exclude),
    }
    config_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def parse_interval(raw) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise ValueError(f"Interval must be a positive integer: {raw!r}") from None
    if value <= 0:
        raise ValueError(f"Interval must be a positive integer: {raw!r}")
    return value


def _is_subpath(child: Path, parent: Path) -> bool:
    try:
        child.relative_to(parent)
        return True
    except ValueError:
        return False


def validate_config(cfg: SyncConfiguration) -> SyncConfiguration:
    """
    Check and normalize a configuration. Creates the replica folder and the
    log file's folder when missing. Raises ValueError describing the first problem.
    """
    source = cfg.source.expanduser().resolve()
    replica = cfg.replica.expanduser().resolve()
    log_path = cfg.log_path.expanduser().resolve()

    if not source.exists() or not source.is_dir():
        raise ValueError(f"Source directory does not exist or is not a folder: {source}")
    if source == replica:
        raise ValueError("Source and replica folders must be different.")
    if _is_subpath(replica, source):
        raise ValueError("Replica folder must NOT be inside source folder (would cause loops).")
    if _is_subpath(source, replica):
        raise ValueError("Source folder must NOT be inside replica folder (it would be deleted).")
    if isinstance(cfg.interval_seconds, bool) or not isinstance(cfg.interval_seconds, int) or cfg.interval_seconds <= 0:
        raise ValueError(f"Interval must be a positive integer: {cfg.interval_seconds!r}")

    try:
        replica.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ValueError(f"Cannot create replica directory: {e}") from e
    if not replica.is_dir():
        raise ValueError(f"Replica path is not a folder: {replica}")

    if _is_subpath(log_path, replica):
        raise ValueError("Log file must NOT be inside replica folder (it would be deleted).")
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ValueError(f"Invalid log file path: {e}") from e

    return replace(cfg, source=source, replica=replica, log_path=log_path)


def build_effective_config(args: argparse.Namespace, config_path: Path = CONFIG_PATH) -> SyncConfiguration:
    """Merge command-line values over the saved config; prompt for missing folders."""
    saved = load_config_file(config_path)

    saved_source = Path(saved["source"]) if saved.get("source") else None
    saved_replica = Path(saved["replica"]) if saved.get("replica") else None
    saved_log = Path(saved["log_file"]) if saved.get("log_file") else None
    saved_interval = saved.get("interval_seconds", DEFAULT_INTERVAL_SEC)
    saved_exclude = saved.get("exclude") or []

    source = Path(args.source) if args.source else saved_source
    replica = Path(args.replica) if args.replica else saved_replica
    log_path = Path(args.log_file) if args.log_file else (saved_log or DEFAULT_LOG_FILE)
    interval = parse_interval(args.interval if args.interval is not None else saved_interval)
    exclude = tuple(args.exclude) if args.exclude else tuple(str(p) for p in saved_exclude)

    if source is None:
        source = prompt_for_path("Source folder", saved_source)
    if replica is None:
        replica = prompt_for_path("Replica folder", saved_replica)

    return SyncConfiguration(
        source=source,
        replica=replica,
        interval_seconds=interval,
        log_path=log_path,
        exclude=exclude,
        watch=bool(args.watch),
        persist_state=not args.no_state,
    )

"""
Inventories persisted between process runs.

The file lives beside the replica root (never inside it, where the next scan
would see it as an extra file): ``<parent>/.<replica name>.replica-sync.json``.
Only used to skip rehashing unchanged files after a restart.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .models import FileMetadata, Inventory

STATE_VERSION = 1
STATE_SUFFIX = ".replica-sync.json"


def state_path_for(replica_root: Path) -> Path:
    replica_root = Path(replica_root)
    return replica_root.parent / f".{replica_root.name}{STATE_SUFFIX}"


def inventory_to_list(inventory: Inventory) -> list[dict]:
    return [inventory[k].to_dict() for k in sorted(inventory)]


def inventory_from_list(entries: list[dict]) -> Inventory:
    result: Inventory = {}
    for entry in entries:
        meta = FileMetadata.from_dict(entry)
        result[meta.relative_path] = meta
    return result


class InventoryStore:
    def __init__(self, source_root: Path, replica_root: Path, logger: logging.Logger, path: Optional[Path] = None):
        self.source_root = Path(source_root)
        self.replica_root = Path(replica_root)
        self.logger = logger
        self.path = Path(path) if path is not None else state_path_for(self.replica_root)

    def load(self) -> tuple[Inventory, Inventory]:
        if not self.path.exists():
            return {}, {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            self.logger.warning("Could not read saved inventory %s: %s", self.path, e)
            return {}, {}

        if not isinstance(payload, dict) or payload.get("version") != STATE_VERSION:
            self.logger.warning("Ignoring saved inventory with unknown format: %s", self.path)
            return {}, {}
        if payload.get("source") != str(self.source_root) or payload.get("replica") != str(self.replica_root):
            self.logger.warning("Ignoring saved inventory recorded for other folders: %s", self.path)
            return {}, {}

        try:
            inventories = payload["inventories"]
            source = inventory_from_list(inventories.get("source", []))
            replica = inventory_from_list(inventories.get("replica", []))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            self.logger.warning("Saved inventory is corrupt %s: %s", self.path, e)
            return {}, {}

        self.logger.info("Loaded saved inventory: %d source, %d replica entries", len(source), len(replica))
        return source, replica

    def save(self, source: Inventory, replica: Inventory) -> bool:
        payload = {
            "version": STATE_VERSION,
            "source": str(self.source_root),
            "replica": str(self.replica_root),
            "inventories": {
                "source": inventory_to_list(source),
                "replica": inventory_to_list(replica),
            },
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            self.logger.warning("Could not save inventory %s: %s", self.path, e)
            return False
        return True

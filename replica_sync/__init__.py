"""One-way, periodic synchronization of a replica folder with a source folder."""

from .config import SyncConfiguration
from .coordinator import SyncCoordinator, SyncLoop
from .executor import Executor
from .ignore import IgnoreMatcher
from .models import (
    Create,
    CreateDirectory,
    Delete,
    DeleteDirectory,
    FileMetadata,
    Inventory,
    PassSummary,
    SyncOperation,
    Update,
)
from .reconciler import reconcile
from .scanner import scan_directory
from .state import InventoryStore

__version__ = "1.0.0"

__all__ = [
    "Create",
    "CreateDirectory",
    "Delete",
    "DeleteDirectory",
    "Executor",
    "FileMetadata",
    "IgnoreMatcher",
    "Inventory",
    "InventoryStore",
    "PassSummary",
    "SyncConfiguration",
    "SyncCoordinator",
    "SyncLoop",
    "SyncOperation",
    "Update",
    "reconcile",
    "scan_directory",
]

"""Shared fixtures for replica-sync tests."""

import logging
import os

import pytest

from replica_sync.config import SyncConfiguration
from replica_sync.log import LOGGER_NAME, close_logger


def write_file(root, rel, content=b"", mtime=None):
    """Create ``root/rel`` (parents included) and optionally pin its mtime."""
    path = root.joinpath(*rel.split("/"))
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode()
    path.write_bytes(content)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def action_records(caplog, action=None):
    """Records emitted through log_action, optionally filtered by action."""
    records = [r for r in caplog.records if getattr(r, "action", None)]
    if action is not None:
        records = [r for r in records if r.action == action]
    return records


@pytest.fixture
def logger(caplog):
    # Outside the "replica_sync" hierarchy, which stops propagation once set up.
    log = logging.getLogger("replica_sync_tests")
    log.setLevel(logging.DEBUG)
    caplog.set_level(logging.DEBUG)
    return log


@pytest.fixture
def source(tmp_path):
    d = tmp_path / "source"
    d.mkdir()
    return d


@pytest.fixture
def replica(tmp_path):
    d = tmp_path / "replica"
    d.mkdir()
    return d


@pytest.fixture
def config(tmp_path, source, replica):
    return SyncConfiguration(
        source=source,
        replica=replica,
        interval_seconds=1,
        log_path=tmp_path / "logs" / "sync.log",
        persist_state=False,
    )


@pytest.fixture(autouse=True)
def _reset_app_logger():
    yield
    close_logger(logging.getLogger(LOGGER_NAME))

"""Tests for configuration building and validation."""

import argparse
import json

import pytest

from replica_sync.config import (
    DEFAULT_INTERVAL_SEC,
    SyncConfiguration,
    build_effective_config,
    load_config_file,
    parse_interval,
    save_config_file,
    validate_config,
)


def args(**overrides):
    base = dict(source=None, replica=None, interval=None, log_file=None, exclude=None, watch=False, no_state=False)
    base.update(overrides)
    return argparse.Namespace(**base)


def make(source, replica, tmp_path, interval=5):
    return SyncConfiguration(source, replica, interval, tmp_path / "logs" / "sync.log")


class TestValidate:
    def test_valid_config_is_normalized(self, source, tmp_path):
        replica = tmp_path / "new" / "replica"
        cfg = validate_config(make(source, replica, tmp_path))

        assert replica.is_dir()
        assert (tmp_path / "logs").is_dir()
        assert cfg.source.is_absolute() and cfg.replica.is_absolute()
        assert cfg.interval_seconds == 5

    def test_missing_source(self, tmp_path, replica):
        with pytest.raises(ValueError, match="does not exist"):
            validate_config(make(tmp_path / "missing", replica, tmp_path))

    def test_same_folder(self, source, tmp_path):
        with pytest.raises(ValueError, match="different"):
            validate_config(make(source, source, tmp_path))

    def test_replica_inside_source(self, source, tmp_path):
        with pytest.raises(ValueError, match="inside source"):
            validate_config(make(source, source / "mirror", tmp_path))

    def test_source_inside_replica(self, tmp_path):
        outer = tmp_path / "outer"
        inner = outer / "src"
        inner.mkdir(parents=True)
        with pytest.raises(ValueError, match="inside replica"):
            validate_config(make(inner, outer, tmp_path))

    @pytest.mark.parametrize("interval", [0, -3])
    def test_interval_must_be_positive(self, source, replica, tmp_path, interval):
        with pytest.raises(ValueError, match="positive integer"):
            validate_config(make(source, replica, tmp_path, interval=interval))

    def test_log_file_inside_replica(self, source, replica, tmp_path):
        cfg = SyncConfiguration(source, replica, 5, replica / "sync.log")
        with pytest.raises(ValueError, match="Log file"):
            validate_config(cfg)

    def test_replica_path_is_a_file(self, source, tmp_path):
        f = tmp_path / "file"
        f.write_text("x")
        with pytest.raises(ValueError):
            validate_config(make(source, f, tmp_path))


class TestParseInterval:
    def test_accepts_integers(self):
        assert parse_interval("30") == 30
        assert parse_interval(7) == 7

    @pytest.mark.parametrize("raw", ["", "abc", "1.5", "0", "-1", None])
    def test_rejects_others(self, raw):
        with pytest.raises(ValueError):
            parse_interval(raw)


class TestSavedConfig:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "cfg" / "config.json"
        cfg = SyncConfiguration(tmp_path / "s", tmp_path / "r", 9, tmp_path / "l.log", exclude=("*.tmp",))

        save_config_file(cfg, path)
        data = load_config_file(path)

        assert data["source"] == str(tmp_path / "s")
        assert data["interval_seconds"] == 9
        assert data["exclude"] == ["*.tmp"]

    def test_garbage_is_empty(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("[1, 2")
        assert load_config_file(path) == {}
        path.write_text("[1, 2]")
        assert load_config_file(path) == {}

    def test_missing_is_empty(self, tmp_path):
        assert load_config_file(tmp_path / "nope.json") == {}


class TestBuildEffectiveConfig:
    def test_command_line_wins(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"source": "/saved/s", "replica": "/saved/r", "interval_seconds": 99}))

        cfg = build_effective_config(
            args(source="/cli/s", replica="/cli/r", interval="3", log_file="x.log", exclude=["*.o"], watch=True),
            path,
        )

        assert cfg.source.as_posix() == "/cli/s"
        assert cfg.interval_seconds == 3
        assert cfg.exclude == ("*.o",)
        assert cfg.watch
        assert cfg.persist_state

    def test_falls_back_to_saved_values(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "source": "/saved/s",
            "replica": "/saved/r",
            "interval_seconds": 42,
            "log_file": "/saved/sync.log",
            "exclude": ["build/"],
        }))

        cfg = build_effective_config(args(no_state=True), path)

        assert cfg.source.as_posix().endswith("saved/s")
        assert cfg.replica.as_posix().endswith("saved/r")
        assert cfg.interval_seconds == 42
        assert cfg.exclude == ("build/",)
        assert not cfg.persist_state

    def test_default_interval(self, tmp_path):
        cfg = build_effective_config(args(source="s", replica="r"), tmp_path / "none.json")
        assert cfg.interval_seconds == DEFAULT_INTERVAL_SEC

    def test_prompts_for_missing_folders(self, tmp_path, monkeypatch):
        answers = iter(["/typed/source", "/typed/replica"])
        monkeypatch.setattr("builtins.input", lambda prompt: next(answers))

        cfg = build_effective_config(args(interval="5"), tmp_path / "none.json")

        assert cfg.source.as_posix().endswith("typed/source")
        assert cfg.replica.as_posix().endswith("typed/replica")

    def test_bad_interval(self, tmp_path):
        with pytest.raises(ValueError):
            build_effective_config(args(source="s", replica="r", interval="soon"), tmp_path / "none.json")

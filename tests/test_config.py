"""Tests for the config module."""

import os

import pytest
import yaml

from spill.config import (
    DEFAULT_KEEP,
    DEFAULT_MAX_SIZE,
    Config,
    load_config,
    load_yaml_config,
)


class TestConfigDefaults:
    def test_default_values(self):
        cfg = Config()
        assert cfg.tool == "unknown"
        assert cfg.backend == "sqlite"
        assert cfg.destination is None
        assert cfg.max_size == 10 * 1024 * 1024
        assert cfg.keep == 5

    def test_frozen(self):
        cfg = Config()
        with pytest.raises(AttributeError):
            cfg.tool = "crib"

    def test_enforcement_enabled(self):
        assert Config(max_size=1).enforcement_enabled is True
        assert Config(max_size=0).enforcement_enabled is False
        assert Config(max_size=-5).enforcement_enabled is False


class TestLoadConfig:
    def test_defaults_without_env(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cfg = load_config("crib")
        assert cfg.tool == "crib"
        assert cfg.backend == "sqlite"
        assert cfg.destination == os.path.join(str(tmp_path), ".state", "spill", "spill.db")
        assert cfg.max_size == DEFAULT_MAX_SIZE
        assert cfg.keep == DEFAULT_KEEP

    def test_jsonl_default_destination(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        cfg = load_config("crib", backend="jsonl")
        assert cfg.destination == os.path.join(str(tmp_path), ".state", "spill", "spill.jsonl")

    def test_empty_tool_uses_sentinel(self):
        assert load_config("").tool == "unknown"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("SPILL_DB", "/tmp/custom.db")
        monkeypatch.setenv("SPILL_MAX_SIZE", "2048")
        monkeypatch.setenv("SPILL_KEEP", "3")
        cfg = load_config("crib")
        assert cfg.destination == "/tmp/custom.db"
        assert cfg.max_size == 2048
        assert cfg.keep == 3

    def test_backend_env_selects_destination_var(self, monkeypatch):
        monkeypatch.setenv("SPILL_BACKEND", "jsonl")
        monkeypatch.setenv("SPILL_DB", "/tmp/ignored.db")
        monkeypatch.setenv("SPILL_LOG", "/tmp/spill.jsonl")
        cfg = load_config("crib")
        assert cfg.backend == "jsonl"
        assert cfg.destination == "/tmp/spill.jsonl"

    def test_explicit_beats_env(self, monkeypatch):
        monkeypatch.setenv("SPILL_DB", "/tmp/env.db")
        monkeypatch.setenv("SPILL_MAX_SIZE", "2048")
        cfg = load_config("crib", destination="/tmp/explicit.db", max_size=0, keep=1)
        assert cfg.destination == "/tmp/explicit.db"
        assert cfg.max_size == 0
        assert cfg.keep == 1

    def test_empty_destination_env_disables(self, monkeypatch):
        monkeypatch.setenv("SPILL_DB", "")
        assert load_config("crib").destination is None

    def test_rereads_env_each_call(self, monkeypatch):
        monkeypatch.setenv("SPILL_DB", "/tmp/first.db")
        first = load_config("crib")
        monkeypatch.setenv("SPILL_DB", "/tmp/second.db")
        second = load_config("crib")
        assert first.destination == "/tmp/first.db"
        assert second.destination == "/tmp/second.db"

    def test_invalid_int_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("SPILL_MAX_SIZE", "ten megs")
        cfg = load_config("crib")
        assert cfg.max_size == DEFAULT_MAX_SIZE
        assert "SPILL_MAX_SIZE" in caplog.text

    def test_unknown_backend_falls_back(self, monkeypatch, caplog):
        monkeypatch.setenv("SPILL_BACKEND", "postgres")
        assert load_config("crib").backend == "sqlite"
        assert "postgres" in caplog.text

    def test_negative_keep_clamped(self):
        assert load_config("crib", keep=-1).keep == 0


class TestYamlConfig:
    def _write(self, tmp_path, data) -> str:
        path = tmp_path / "spill.yml"
        path.write_text(yaml.safe_dump(data))
        return str(path)

    def test_missing_path_is_empty(self):
        assert load_yaml_config(None) == {}

    def test_missing_file_warns(self, tmp_path, caplog):
        assert load_yaml_config(str(tmp_path / "nope.yml")) == {}
        assert "not found" in caplog.text

    def test_invalid_yaml_is_empty(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("backend: [unclosed\n")
        assert load_yaml_config(str(path)) == {}

    def test_file_values_used(self, tmp_path, monkeypatch):
        path = self._write(tmp_path, {"backend": "jsonl", "log": "/tmp/y.jsonl", "max_size": 4096, "keep": 2})
        monkeypatch.setenv("SPILL_CONFIG", path)
        cfg = load_config("crib")
        assert cfg.backend == "jsonl"
        assert cfg.destination == "/tmp/y.jsonl"
        assert cfg.max_size == 4096
        assert cfg.keep == 2

    def test_env_beats_file(self, tmp_path, monkeypatch):
        path = self._write(tmp_path, {"db": "/tmp/file.db", "max_size": 4096})
        monkeypatch.setenv("SPILL_CONFIG", path)
        monkeypatch.setenv("SPILL_DB", "/tmp/env.db")
        cfg = load_config("crib")
        assert cfg.destination == "/tmp/env.db"
        assert cfg.max_size == 4096

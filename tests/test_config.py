"""Tests for proxycache.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from proxycache.config import (
    atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    load_global_config,
    load_project_config,
    reset_global_config,
    resolve_config,
    save_global_config,
)
from proxycache.exceptions import ConfigError
from proxycache.models import (
    CacheBackendKind,
    CacheConfig,
    GlobalConfig,
    OutputConfig,
    ServerConfig,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_json(path: Path, data: Any) -> None:
    """Write a dict as JSON to *path*, creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("proxycache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "proxycache"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setattr("proxycache.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        result = get_config_dir()
        assert result == custom / "proxycache"
        assert result.is_dir()

    def test_cache_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("proxycache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_cache_dir() == tmp_path / ".cache" / "proxycache"

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("proxycache.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

        assert get_data_dir() == tmp_path / "data" / "proxycache"


class TestXDGPathsFallback:
    """Fallback paths on non-XDG platforms (macOS, Windows)."""

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("proxycache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".proxycache"
        assert result.is_dir()

    def test_cache_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("proxycache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_cache_dir() == tmp_path / ".proxycache" / "cache"

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("proxycache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".proxycache" / "logs"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_bytes_written_unchanged(self, tmp_path: Path) -> None:
        target = tmp_path / "body"
        atomic_write(target, b"\x00\xff\x10")
        assert target.read_bytes() == b"\x00\xff\x10"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "c" / "test.txt"
        atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        atomic_write(target, "content")
        assert list(tmp_path.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        with patch("proxycache.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                atomic_write(target, "will fail")
        assert list(tmp_path.iterdir()) == []

    def test_failed_write_keeps_previous_content(self, tmp_path: Path) -> None:
        target = tmp_path / "status"
        atomic_write(target, "200\n")
        with patch("proxycache.config.os.replace", side_effect=OSError("rename failed")):
            with pytest.raises(OSError):
                atomic_write(target, "404\n")
        assert target.read_text(encoding="utf-8") == "200\n"


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self, isolated_config: Path) -> None:
        assert load_global_config() == GlobalConfig()

    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        config = GlobalConfig(
            server=ServerConfig(port=9090, origin="http://localhost:3000"),
            cache=CacheConfig(backend=CacheBackendKind.DISK, ttl_seconds=120),
        )
        save_global_config(config)
        assert load_global_config() == config

    def test_saved_config_is_valid_json(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig())
        path = isolated_config / "config" / "proxycache" / "config.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["server"]["port"] == 8080
        assert data["cache"]["backend"] == "memory"

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        path = isolated_config / "config" / "proxycache" / "config.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(
            isolated_config / "config" / "proxycache" / "config.json",
            {"cache": {"ttl_seconds": -5}},
        )
        with pytest.raises(ConfigError):
            load_global_config()

    def test_reset_restores_defaults(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(server=ServerConfig(port=1234)))
        assert reset_global_config() == GlobalConfig()
        assert load_global_config().server.port == 8080


# ---------------------------------------------------------------------------
# Project config
# ---------------------------------------------------------------------------


class TestProjectConfig:
    def test_load_returns_none_when_missing(self, isolated_config: Path) -> None:
        assert load_project_config() is None

    def test_load_valid_project_config(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "proxycache.json", {"server": {"port": 7000}})
        assert load_project_config() == {"server": {"port": 7000}}

    def test_load_invalid_json_raises_config_error(self, isolated_config: Path) -> None:
        (isolated_config / "proxycache.json").write_text("nope", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_project_config()

    def test_non_object_raises_config_error(self, isolated_config: Path) -> None:
        _write_json(isolated_config / "proxycache.json", [1, 2, 3])
        with pytest.raises(ConfigError, match="expected a JSON object"):
            load_project_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, isolated_config: Path) -> None:
        config = resolve_config()
        assert config.server.port == 8080
        assert config.server.origin == "http://dummyjson.com"
        assert config.cache.backend == CacheBackendKind.MEMORY
        assert config.cache.ttl_seconds == 3600
        assert config.cache.effective_cleanup_interval == 3600

    def test_global_applies(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig(server=ServerConfig(port=9000)))
        assert resolve_config().server.port == 9000

    def test_project_overrides_global_field_by_field(self, isolated_config: Path) -> None:
        save_global_config(
            GlobalConfig(server=ServerConfig(port=9000, origin="http://global.test"))
        )
        _write_json(isolated_config / "proxycache.json", {"server": {"port": 7000}})

        config = resolve_config()
        assert config.server.port == 7000
        assert config.server.origin == "http://global.test"

    def test_env_overrides_project(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write_json(isolated_config / "proxycache.json", {"server": {"port": 7000}})
        monkeypatch.setenv("PROXYCACHE_PORT", "7500")
        monkeypatch.setenv("PROXYCACHE_TTL", "30")
        monkeypatch.setenv("PROXYCACHE_BACKEND", "disk")

        config = resolve_config()
        assert config.server.port == 7500
        assert config.cache.ttl_seconds == 30
        assert config.cache.backend == CacheBackendKind.DISK

    def test_cli_overrides_env(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PROXYCACHE_ORIGIN", "http://env.test")
        config = resolve_config(cli_overrides={"server": {"origin": "http://cli.test/"}})
        assert config.server.origin == "http://cli.test"

    def test_cli_none_values_ignored(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PROXYCACHE_PORT", "7500")
        config = resolve_config(
            cli_overrides={"server": {"port": None}, "cache": {"ttl_seconds": None}}
        )
        assert config.server.port == 7500
        assert config.cache.ttl_seconds == 3600

    def test_project_output_format(self, isolated_config: Path) -> None:
        (isolated_config / "proxycache.json").write_text('{"output": {"format": "plain"}}')
        assert resolve_config().output.format == "plain"

    def test_env_cache_dir(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PROXYCACHE_CACHE_DIR", str(isolated_config / "responses"))
        assert resolve_config().cache.directory == str(isolated_config / "responses")

    @pytest.mark.parametrize(
        "var, value",
        [
            ("PROXYCACHE_PORT", "not-a-port"),
            ("PROXYCACHE_TTL", "0"),
            ("PROXYCACHE_BACKEND", "redis"),
        ],
    )
    def test_invalid_env_raises_config_error(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch, var: str, value: str
    ) -> None:
        monkeypatch.setenv(var, value)
        with pytest.raises(ConfigError, match="Invalid configuration"):
            resolve_config()


# ---------------------------------------------------------------------------
# Model validation
# ---------------------------------------------------------------------------


class TestModels:
    @pytest.mark.parametrize("port", [-1, 65536])
    def test_port_range(self, port: int) -> None:
        with pytest.raises(ValueError):
            ServerConfig(port=port)

    def test_explicit_cleanup_interval(self) -> None:
        config = CacheConfig(ttl_seconds=60, cleanup_interval_seconds=5)
        assert config.effective_cleanup_interval == 5

    @pytest.mark.parametrize("field", ["ttl_seconds", "cleanup_interval_seconds"])
    def test_non_positive_durations_rejected(self, field: str) -> None:
        with pytest.raises(ValueError):
            CacheConfig(**{field: 0})

    def test_zero_shards_rejected(self) -> None:
        with pytest.raises(ValueError):
            CacheConfig(shards=0)

    def test_output_format_normalised(self) -> None:
        assert OutputConfig(format="JSON").format == "json"

    def test_unknown_output_format_rejected(self) -> None:
        with pytest.raises(ValueError):
            OutputConfig(format="yaml")

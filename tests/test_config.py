"""Tests for netnotes.toml loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from netnotes.config import (
    CONFIG_FILENAME,
    NetnotesConfig,
    StorageBackend,
    load_config,
    parse_config,
    resolve_env_vars,
)
from netnotes.errors import ConfigError

pytestmark = pytest.mark.unit


def _write(tmp_path: Path, body: str) -> Path:
    (tmp_path / CONFIG_FILENAME).write_text(body)
    return tmp_path


class TestLoadConfig:
    def test_full_file(self, tmp_path):
        _write(
            tmp_path,
            """
[netnotes]
name = "jots"
port = 41000

[netnotes.logging]
level = "debug"
format = "JSON"

[capture]
name_confidence_threshold = 0.5
location_timeout_s = 2
placeholder_name = "Mystery"

[storage]
backend = "postgres"
dsn = "postgres://localhost/netnotes"

[geocoder]
enabled = true
home_lat = 55.67
home_lng = 12.57
""",
        )
        config = load_config(tmp_path)
        assert config.name == "jots"
        assert config.port == 41000
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"
        assert config.capture.name_confidence_threshold == 0.5
        assert config.capture.location_timeout_s == 2.0
        assert config.capture.placeholder_name == "Mystery"
        assert config.storage.backend is StorageBackend.POSTGRES
        assert config.storage.dsn == "postgres://localhost/netnotes"
        assert config.geocoder.enabled is True
        assert (config.geocoder.home_lat, config.geocoder.home_lng) == (55.67, 12.57)

    def test_empty_file_gives_defaults(self, tmp_path):
        _write(tmp_path, "")
        assert load_config(tmp_path) == NetnotesConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path)
        assert load_config(tmp_path, missing_ok=True) == NetnotesConfig()

    def test_invalid_toml(self, tmp_path):
        _write(tmp_path, "[netnotes\nname =")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(tmp_path)


class TestValidation:
    @pytest.mark.parametrize(
        ("data", "message"),
        [
            ({"netnotes": {"port": 0}}, "netnotes.port"),
            ({"netnotes": {"port": "80"}}, "netnotes.port"),
            ({"netnotes": {"name": "  "}}, "netnotes.name"),
            ({"netnotes": {"logging": {"format": "xml"}}}, "logging.format"),
            ({"capture": {"name_confidence_threshold": 1.5}}, "name_confidence_threshold"),
            ({"capture": {"location_timeout_s": 0}}, "location_timeout_s"),
            ({"capture": {"location_timeout_s": True}}, "location_timeout_s"),
            ({"storage": {"backend": "sqlite"}}, "storage.backend"),
            ({"storage": {"backend": "postgres"}}, "storage.dsn"),
            ({"geocoder": {"home_lat": 1.0}}, "home_lat"),
            ({"capture": "fast"}, r"\[capture\]"),
        ],
    )
    def test_rejects(self, data, message):
        with pytest.raises(ConfigError, match=message):
            parse_config(data)


class TestEnvVars:
    def test_substitution(self, monkeypatch):
        monkeypatch.setenv("NETNOTES_DSN", "postgres://db/notes")
        config = parse_config({"storage": {"backend": "postgres", "dsn": "${NETNOTES_DSN}"}})
        assert config.storage.dsn == "postgres://db/notes"

    def test_nested_values(self, monkeypatch):
        monkeypatch.setenv("A", "1")
        assert resolve_env_vars({"x": ["${A}", 2, {"y": "v${A}"}]}) == {
            "x": ["1", 2, {"y": "v1"}]
        }

    def test_missing_variables_reported_together(self, monkeypatch):
        monkeypatch.delenv("NOPE_ONE", raising=False)
        monkeypatch.delenv("NOPE_TWO", raising=False)
        with pytest.raises(ConfigError, match="NOPE_ONE, NOPE_TWO"):
            resolve_env_vars("${NOPE_ONE}:${NOPE_TWO}")

"""netnotes configuration loading and validation.

Reads ``netnotes.toml`` from a config directory, parses all sections, and
returns a validated :class:`NetnotesConfig` dataclass. Every section is
optional; a missing file yields defaults only when ``load_config`` is asked to
tolerate it.
"""

from __future__ import annotations

import enum
import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from netnotes.errors import ConfigError

CONFIG_FILENAME = "netnotes.toml"

# Pattern matching ${VAR_NAME}; supports alphanumeric + underscore variable names.
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class StorageBackend(enum.StrEnum):
    MEMORY = "memory"
    POSTGRES = "postgres"


@dataclass
class LoggingConfig:
    """Logging configuration from [netnotes.logging] section."""

    level: str = "INFO"
    format: str = "text"  # "text" or "json"
    log_root: str | None = None


@dataclass
class CaptureConfig:
    """Capture workflow tuning from [capture] section.

    ``name_confidence_threshold`` is the parser confidence below which the
    user is asked to confirm the name. ``location_timeout_s`` bounds every
    location and geocoding call.
    """

    name_confidence_threshold: float = 0.4
    location_timeout_s: float = 5.0
    placeholder_name: str = "Someone"


@dataclass
class StorageConfig:
    """Storage backend from [storage] section."""

    backend: StorageBackend = StorageBackend.MEMORY
    dsn: str | None = None


@dataclass
class GeocoderConfig:
    """Geocoder settings from [geocoder] section. Disabled unless enabled = true."""

    enabled: bool = False
    base_url: str = "https://nominatim.openstreetmap.org"
    user_agent: str = "netnotes/0.1"
    timeout_s: float = 5.0
    home_lat: float | None = None
    home_lng: float | None = None


@dataclass
class NetnotesConfig:
    """Parsed and validated netnotes configuration."""

    name: str = "netnotes"
    port: int = 40300
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    geocoder: GeocoderConfig = field(default_factory=GeocoderConfig)


def resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${VAR_NAME}`` references in config values.

    Raises
    ------
    ConfigError
        If a referenced environment variable is not set.
    """
    if isinstance(value, dict):
        return {k: resolve_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [resolve_env_vars(item) for item in value]

    if isinstance(value, str):
        return _resolve_string(value)

    # int, float, bool, None pass through unchanged.
    return value


def _resolve_string(s: str) -> str:
    """Replace all ``${VAR_NAME}`` occurrences in *s* with env var values.

    Collects all missing variable names and reports them in a single error.
    """
    missing: list[str] = []

    def _replace(match: re.Match) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            missing.append(var_name)
            return match.group(0)
        return env_value

    result = _ENV_VAR_PATTERN.sub(_replace, s)

    if missing:
        vars_str = ", ".join(missing)
        raise ConfigError(
            f"Unresolved environment variable(s) in config value: {vars_str} (original: {s!r})"
        )

    return result


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"[{key}] must be a table")
    return value


def _number(section: dict[str, Any], key: str, default: float, *, where: str) -> float:
    raw = section.get(key, default)
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        raise ConfigError(f"{where}.{key} must be a number, got {raw!r}")
    return float(raw)


def _parse_logging(netnotes_section: dict[str, Any]) -> LoggingConfig:
    logging_section = _section(netnotes_section, "logging")
    log_level = str(logging_section.get("level", "INFO")).upper()
    log_format = str(logging_section.get("format", "text")).lower()
    if log_format not in ("text", "json"):
        raise ConfigError(
            f"Invalid netnotes.logging.format: {log_format!r}. Expected 'text' or 'json'."
        )
    return LoggingConfig(
        level=log_level,
        format=log_format,
        log_root=logging_section.get("log_root"),
    )


def _parse_capture(data: dict[str, Any]) -> CaptureConfig:
    section = _section(data, "capture")
    threshold = _number(section, "name_confidence_threshold", 0.4, where="capture")
    if not 0.0 <= threshold <= 1.0:
        raise ConfigError("capture.name_confidence_threshold must be within [0, 1]")
    timeout = _number(section, "location_timeout_s", 5.0, where="capture")
    if timeout <= 0:
        raise ConfigError("capture.location_timeout_s must be positive")
    placeholder = str(section.get("placeholder_name", "Someone")).strip()
    if not placeholder:
        raise ConfigError("capture.placeholder_name must be a non-empty string")
    return CaptureConfig(
        name_confidence_threshold=threshold,
        location_timeout_s=timeout,
        placeholder_name=placeholder,
    )


def _parse_storage(data: dict[str, Any]) -> StorageConfig:
    section = _section(data, "storage")
    raw_backend = str(section.get("backend", StorageBackend.MEMORY)).lower()
    try:
        backend = StorageBackend(raw_backend)
    except ValueError:
        raise ConfigError(
            f"Invalid storage.backend: {raw_backend!r}. Expected 'memory' or 'postgres'."
        ) from None
    dsn = section.get("dsn")
    if backend is StorageBackend.POSTGRES and not dsn:
        raise ConfigError("storage.dsn is required when storage.backend is 'postgres'")
    return StorageConfig(backend=backend, dsn=dsn)


def _parse_geocoder(data: dict[str, Any]) -> GeocoderConfig:
    section = _section(data, "geocoder")
    home_lat = section.get("home_lat")
    home_lng = section.get("home_lng")
    if (home_lat is None) != (home_lng is None):
        raise ConfigError("geocoder.home_lat and geocoder.home_lng must be set together")
    return GeocoderConfig(
        enabled=bool(section.get("enabled", False)),
        base_url=str(section.get("base_url", GeocoderConfig.base_url)),
        user_agent=str(section.get("user_agent", GeocoderConfig.user_agent)),
        timeout_s=_number(section, "timeout_s", 5.0, where="geocoder"),
        home_lat=float(home_lat) if home_lat is not None else None,
        home_lng=float(home_lng) if home_lng is not None else None,
    )


def parse_config(data: dict[str, Any]) -> NetnotesConfig:
    """Validate an already-decoded TOML document."""
    data = resolve_env_vars(data)

    netnotes_section = _section(data, "netnotes")
    name = str(netnotes_section.get("name", "netnotes")).strip()
    if not name:
        raise ConfigError("netnotes.name must be a non-empty string")
    port = netnotes_section.get("port", 40300)
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ConfigError(f"netnotes.port must be an integer in 1..65535, got {port!r}")

    return NetnotesConfig(
        name=name,
        port=port,
        logging=_parse_logging(netnotes_section),
        capture=_parse_capture(data),
        storage=_parse_storage(data),
        geocoder=_parse_geocoder(data),
    )


def load_config(config_dir: Path, *, missing_ok: bool = False) -> NetnotesConfig:
    """Load and validate ``netnotes.toml`` from *config_dir*.

    Raises
    ------
    ConfigError
        If the file is missing (unless *missing_ok*), contains invalid TOML,
        or holds invalid values.
    """
    toml_path = Path(config_dir) / CONFIG_FILENAME

    if not toml_path.exists():
        if missing_ok:
            return NetnotesConfig()
        raise ConfigError(f"Config file not found: {toml_path}")

    try:
        data = tomllib.loads(toml_path.read_bytes().decode())
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {toml_path}: {exc}") from exc

    return parse_config(data)

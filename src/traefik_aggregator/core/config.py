"""Configuration loading and typed source descriptors.

The aggregator reads one YAML (or TOML) file at startup:

    poll_interval: 30s
    http_timeout: 10s
    log_level: info
    downstream:
      - name: team-a
        api_url: http://traefik-a:8080
        tls:
          cert_resolver: letsencrypt

Process-level settings (listen address, config path) come from environment
variables with the TRAEFIK_AGGREGATOR_ prefix.
"""

from __future__ import annotations

import re
import tomllib
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from traefik_aggregator.core.exceptions import ConfigError

logger = structlog.get_logger()

DEFAULT_POLL_INTERVAL = "30s"
DEFAULT_POLL_INTERVAL_SECONDS = 30.0
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse a Go-style duration string (``1h30m``, ``500ms``) into seconds.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    if text == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    return sign * total


def load_config_from_file(path: str | Path) -> dict[str, Any]:
    """Load raw configuration from a YAML or TOML file.

    Raises:
        ConfigError: If the file is missing, unreadable, or not valid YAML/TOML.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content) or {}
        elif path.suffix == ".toml":
            data = tomllib.loads(content)
        else:
            raise ConfigError(f"Unsupported config format: {path.suffix}")
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


class TLSConfig(BaseModel):
    """TLS policy applied to every route of a downstream."""

    cert_resolver: str = ""
    strip_resolver: bool = False


class DownstreamConfig(BaseModel):
    """One upstream Traefik instance whose routers are aggregated."""

    model_config = ConfigDict(frozen=True)

    name: str
    api_url: str
    api_key: str = Field(default="", repr=False)
    backend_override: str = ""
    tls: TLSConfig | None = None
    entrypoints: list[str] = Field(default_factory=list)
    middlewares: list[str] = Field(default_factory=list)
    ignore_entrypoints: list[str] = Field(default_factory=list)
    wildcard_fix: bool = False
    passthrough: bool = False
    server_transport: str = ""

    @field_validator("entrypoints", "middlewares", "ignore_entrypoints", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("api_key", "backend_override", "server_transport", mode="before")
    @classmethod
    def none_as_blank(cls, value: Any) -> Any:
        return "" if value is None else value


class Config(BaseModel):
    """Top-level aggregator configuration."""

    downstream: list[DownstreamConfig] = Field(default_factory=list)
    poll_interval: str = DEFAULT_POLL_INTERVAL
    http_timeout: str = ""
    log_level: str = "info"

    @field_validator("downstream", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("poll_interval", mode="before")
    @classmethod
    def default_poll_interval(cls, value: Any) -> Any:
        return value or DEFAULT_POLL_INTERVAL

    @property
    def poll_interval_seconds(self) -> float:
        """Poll interval in seconds; invalid or non-positive values fall back to 30s."""
        try:
            seconds = parse_duration(self.poll_interval)
        except ValueError:
            return DEFAULT_POLL_INTERVAL_SECONDS
        return seconds if seconds > 0 else DEFAULT_POLL_INTERVAL_SECONDS

    @property
    def http_timeout_seconds(self) -> float | None:
        """Per-request timeout in seconds.

        Defaults to 10s when unset or invalid. Zero or a negative duration
        disables the timeout (None).
        """
        if not self.http_timeout:
            return DEFAULT_HTTP_TIMEOUT_SECONDS
        try:
            seconds = parse_duration(self.http_timeout)
        except ValueError:
            return DEFAULT_HTTP_TIMEOUT_SECONDS
        return seconds if seconds > 0 else None


def load_config(path: str | Path) -> Config:
    """Load and validate the aggregator configuration file.

    Raises:
        ConfigError: If the file cannot be loaded or fails validation.
    """
    data = load_config_from_file(path)
    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    seen: set[str] = set()
    for ds in config.downstream:
        if ds.name in seen:
            logger.warning("Duplicate downstream name, later entries overwrite earlier ones", name=ds.name)
        seen.add(ds.name)

    return config


class AggregatorSettings(BaseSettings):
    """Process settings read from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="TRAEFIK_AGGREGATOR_",
        case_sensitive=False,
        extra="ignore",
    )

    listen_addr: str = Field(
        default="0.0.0.0:8080",
        description="host:port the HTTP endpoints bind to.",
    )
    config_path: str = Field(
        default="config.yml",
        validation_alias=AliasChoices("TRAEFIK_AGGREGATOR_CONFIG_PATH", "CONFIG_PATH"),
        description="Path to the YAML configuration file.",
    )


_settings: AggregatorSettings | None = None


def get_settings() -> AggregatorSettings:
    """Get the cached process settings.

    To re-read the environment (e.g., in tests), call clear_settings() first.
    """
    global _settings
    if _settings is None:
        _settings = AggregatorSettings()
    return _settings


def clear_settings() -> None:
    """Clear the cached settings."""
    global _settings
    _settings = None

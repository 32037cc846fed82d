"""Core: configuration, errors and logging."""

from .config import (
    AggregatorSettings,
    Config,
    DownstreamConfig,
    TLSConfig,
    get_settings,
    load_config,
    parse_duration,
)
from .exceptions import (
    AggregatorError,
    ConfigError,
    DecodeError,
    FetchError,
    InvalidAddressError,
    TransportError,
    UnexpectedStatusError,
)
from .logging import configure_logging

__all__ = [
    # Config
    "AggregatorSettings",
    "Config",
    "DownstreamConfig",
    "TLSConfig",
    "get_settings",
    "load_config",
    "parse_duration",
    # Errors
    "AggregatorError",
    "ConfigError",
    "FetchError",
    "InvalidAddressError",
    "TransportError",
    "UnexpectedStatusError",
    "DecodeError",
    # Logging
    "configure_logging",
]

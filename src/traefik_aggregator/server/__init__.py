"""HTTP endpoints serving the aggregated configuration."""

from traefik_aggregator.server.app import (
    AggregatorServer,
    create_app,
    parse_bind,
    run_server,
)

__all__ = [
    "AggregatorServer",
    "create_app",
    "parse_bind",
    "run_server",
]

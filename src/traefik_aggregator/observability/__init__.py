"""Prometheus metrics for aggregation cycles."""

from traefik_aggregator.observability.metrics import (
    CYCLE_DURATION,
    CYCLES,
    MIDDLEWARES,
    ROUTERS,
    SERVICES,
    SOURCE_ERRORS,
    generate_metrics,
    get_content_type,
    record_cycle,
)

__all__ = [
    "CYCLES",
    "SOURCE_ERRORS",
    "ROUTERS",
    "SERVICES",
    "MIDDLEWARES",
    "CYCLE_DURATION",
    "record_cycle",
    "generate_metrics",
    "get_content_type",
]

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

if TYPE_CHECKING:
    from traefik_aggregator.aggregator.engine import CycleReport

CYCLES = Counter(
    "traefik_aggregator_cycles_total",
    "Completed aggregation cycles",
)

SOURCE_ERRORS = Counter(
    "traefik_aggregator_source_errors_total",
    "Downstream fetch failures",
    ["source", "code"],
)

ROUTERS = Gauge(
    "traefik_aggregator_routers",
    "Routers in the published document",
)

SERVICES = Gauge(
    "traefik_aggregator_services",
    "Services in the published document",
)

MIDDLEWARES = Gauge(
    "traefik_aggregator_middlewares",
    "Middlewares in the published document",
)

CYCLE_DURATION = Histogram(
    "traefik_aggregator_cycle_duration_seconds",
    "Aggregation cycle latency",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)


def record_cycle(report: CycleReport) -> None:
    CYCLES.inc()
    CYCLE_DURATION.observe(report.duration)
    ROUTERS.set(report.routers)
    SERVICES.set(report.services)
    MIDDLEWARES.set(report.middlewares)
    for source in report.sources:
        if source.error is not None:
            SOURCE_ERRORS.labels(source=source.name, code=source.error.code).inc()


def generate_metrics() -> bytes:
    return generate_latest()


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST

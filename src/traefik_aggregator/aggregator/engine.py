"""Aggregation engine.

One cycle fetches every configured downstream, transforms the results into
a fresh document and publishes it to the ConfigStore:

    store = ConfigStore()
    aggregator = Aggregator(config, client, store)
    report = await aggregator.aggregate_configs()
    document = store.get()

Downstreams are fetched concurrently but folded into the document strictly
in declaration order, so a later downstream overwrites an earlier one on a
name collision exactly as sequential processing would. A failing downstream
contributes nothing for the cycle and never aborts it.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

import httpx
import structlog

from traefik_aggregator.aggregator.backend import get_backend_url
from traefik_aggregator.aggregator.fetch import fetch_downstream_routers, fetch_passthrough_config
from traefik_aggregator.aggregator.filters import should_ignore_router
from traefik_aggregator.aggregator.namespace import (
    merge_passthrough,
    resolve_entrypoints,
    router_name,
    service_name,
    strip_provider_suffix,
)
from traefik_aggregator.aggregator.store import ConfigStore
from traefik_aggregator.aggregator.tls import build_tls_config
from traefik_aggregator.aggregator.types import (
    HTTPProxyConfig,
    HTTPRouter,
    HTTPService,
    LoadBalancer,
    Server,
    TraefikRouter,
)
from traefik_aggregator.core.config import Config, DownstreamConfig
from traefik_aggregator.core.exceptions import FetchError
from traefik_aggregator.observability.metrics import record_cycle

logger = structlog.get_logger()

FetchResult = list[TraefikRouter] | HTTPProxyConfig | FetchError


@dataclass
class SourceReport:
    """What one downstream contributed to a cycle."""

    name: str
    passthrough: bool = False
    routers: int = 0
    services: int = 0
    middlewares: int = 0
    skipped: int = 0
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class CycleReport:
    """Summary of one aggregation cycle."""

    sources: list[SourceReport] = field(default_factory=list)
    routers: int = 0
    services: int = 0
    middlewares: int = 0
    duration: float = 0.0

    @property
    def failures(self) -> list[SourceReport]:
        return [s for s in self.sources if not s.ok]


class Aggregator:
    """Builds and publishes aggregated documents from configured downstreams."""

    def __init__(
        self,
        config: Config,
        client: httpx.AsyncClient,
        store: ConfigStore | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self.store = store if store is not None else ConfigStore()

    def get_cached_config(self) -> HTTPProxyConfig:
        """Return the last published document."""
        return self.store.get()

    async def aggregate_configs(self) -> CycleReport:
        """Run one full cycle and publish its document.

        Returns:
            Per-downstream counts and failures for the cycle.
        """
        started = time.monotonic()
        downstreams = list(self.config.downstream)

        results = await asyncio.gather(*(self._fetch(ds) for ds in downstreams))

        document = HTTPProxyConfig()
        report = CycleReport()

        for ds, result in zip(downstreams, results, strict=True):
            report.sources.append(self._fold(ds, result, document))

        report.routers, report.services, report.middlewares = document.counts()
        report.duration = time.monotonic() - started

        self.store.publish(document)
        record_cycle(report)

        logger.info(
            "Config aggregation complete",
            routers=report.routers,
            services=report.services,
            middlewares=report.middlewares,
            failed_sources=len(report.failures),
            duration=round(report.duration, 3),
        )
        return report

    async def _fetch(self, ds: DownstreamConfig) -> FetchResult:
        try:
            if ds.passthrough:
                return await fetch_passthrough_config(ds, self.client)
            return await fetch_downstream_routers(ds, self.client)
        except FetchError as e:
            return e

    def _fold(self, ds: DownstreamConfig, result: FetchResult, document: HTTPProxyConfig) -> SourceReport:
        report = SourceReport(name=ds.name, passthrough=ds.passthrough)

        if isinstance(result, FetchError):
            report.error = result
            logger.error(
                "Error fetching downstream",
                source=ds.name,
                passthrough=ds.passthrough,
                code=result.code,
                error=result.message,
            )
            return report

        if isinstance(result, HTTPProxyConfig):
            counts = merge_passthrough(ds.name, result, document)
            report.routers = counts.routers
            report.services = counts.services
            report.middlewares = counts.middlewares
            logger.info(
                "Passthrough merged",
                source=ds.name,
                routers=counts.routers,
                services=counts.services,
                middlewares=counts.middlewares,
            )
            return report

        logger.info("Processing downstream", source=ds.name, routers=len(result))
        for router in result:
            if should_ignore_router(router, ds.ignore_entrypoints):
                logger.debug("Skipping router (ignored entrypoint)", source=ds.name, router=router.name)
                report.skipped += 1
                continue
            add_router(ds, router, document)
            report.routers += 1
            report.services += 1

        return report


def add_router(ds: DownstreamConfig, router: TraefikRouter, document: HTTPProxyConfig) -> None:
    """Transform one upstream router into a router/service pair in ``document``."""
    # Only the upstream's own TLS options decide the backend scheme.
    use_tls = bool(router.tls)
    backend_url = get_backend_url(ds, use_tls)

    base_name = strip_provider_suffix(router.name)
    http_router_name = router_name(ds.name, base_name)
    http_service_name = service_name(ds.name, base_name)

    http_router = HTTPRouter(
        rule=router.rule,
        service=http_service_name,
        entry_points=resolve_entrypoints(ds, router),
        middlewares=list(ds.middlewares),
    )

    if ds.tls is not None or router.tls:
        tls_config = build_tls_config(ds, router.rule, router.tls)
        if tls_config:
            http_router.tls = tls_config

    document.http.routers[http_router_name] = http_router
    document.http.services[http_service_name] = HTTPService(
        load_balancer=LoadBalancer(
            servers=[Server(url=backend_url)],
            servers_transport=ds.server_transport,
        )
    )

    logger.debug(
        "Added HTTP route",
        source=ds.name,
        router=http_router_name,
        rule=router.rule,
        backend=backend_url,
        tls=use_tls,
    )

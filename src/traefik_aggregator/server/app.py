"""HTTP surface of the aggregator.

Endpoints:
    GET /traefik-config   current aggregated document (Traefik HTTP provider)
    GET /health           liveness, plain "OK"
    GET /stats            publish time and document counts
    GET /metrics          Prometheus exposition
"""

from __future__ import annotations

import asyncio
import contextlib

import httpx
import structlog
from aiohttp import web

from traefik_aggregator.aggregator.engine import Aggregator
from traefik_aggregator.aggregator.fetch import create_client
from traefik_aggregator.aggregator.scheduler import start_poll_task
from traefik_aggregator.aggregator.store import ConfigStore
from traefik_aggregator.core.config import Config
from traefik_aggregator.observability.metrics import generate_metrics, get_content_type

logger = structlog.get_logger()

STORE_KEY = web.AppKey("store", ConfigStore)


async def handle_traefik_config(request: web.Request) -> web.Response:
    """Serve the last published document."""
    document = request.app[STORE_KEY].get()
    return web.json_response(document.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    return web.Response(text="OK")


async def handle_stats(request: web.Request) -> web.Response:
    store = request.app[STORE_KEY]
    document = store.get()
    routers, services, middlewares = document.counts()
    return web.json_response(
        {
            "published_at": store.published_at,
            "publish_count": store.publish_count,
            "routers": routers,
            "services": services,
            "middlewares": middlewares,
        }
    )


async def handle_metrics(request: web.Request) -> web.Response:
    return web.Response(
        body=generate_metrics(),
        headers={"Content-Type": get_content_type()},
    )


def create_app(store: ConfigStore) -> web.Application:
    """Build the aiohttp application serving ``store``."""
    app = web.Application()
    app[STORE_KEY] = store
    app.router.add_get("/traefik-config", handle_traefik_config)
    app.router.add_get("/health", handle_health)
    app.router.add_get("/stats", handle_stats)
    app.router.add_get("/metrics", handle_metrics)
    return app


def parse_bind(bind: str) -> tuple[str, int]:
    """Parse ``host:port`` (or a bare port) into host and port."""
    if ":" in bind:
        host, port = bind.rsplit(":", 1)
        return host or "0.0.0.0", int(port)
    return "0.0.0.0", int(bind)


class AggregatorServer:
    """Runs the poll loop and the HTTP endpoints around one ConfigStore."""

    def __init__(self, config: Config, listen_addr: str = "0.0.0.0:8080") -> None:
        self.config = config
        self.listen_addr = listen_addr
        self.store = ConfigStore()
        self._client: httpx.AsyncClient | None = None
        self._runner: web.AppRunner | None = None
        self._poll_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start polling downstreams and serving HTTP."""
        self._client = create_client(self.config)
        aggregator = Aggregator(self.config, self._client, self.store)

        self._runner = web.AppRunner(create_app(self.store))
        await self._runner.setup()

        host, port = parse_bind(self.listen_addr)
        site = web.TCPSite(self._runner, host, port)
        await site.start()

        self._poll_task = start_poll_task(aggregator, self.config.poll_interval_seconds)

        logger.info(
            "Aggregator server started",
            host=host,
            port=port,
            sources=len(self.config.downstream),
            poll_interval=self.config.poll_interval_seconds,
            http_timeout=self.config.http_timeout_seconds,
        )

    async def stop(self) -> None:
        """Stop polling and close listeners and the HTTP client."""
        logger.info("Stopping aggregator server...")

        if self._poll_task:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None

        if self._runner:
            await self._runner.cleanup()
            self._runner = None

        if self._client:
            await self._client.aclose()
            self._client = None

        logger.info("Aggregator server stopped")


async def run_server(config: Config, listen_addr: str) -> None:
    """Run the aggregator until cancelled."""
    server = AggregatorServer(config, listen_addr)
    try:
        await server.start()
        await asyncio.Event().wait()
    finally:
        await server.stop()

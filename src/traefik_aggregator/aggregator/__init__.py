"""Traefik configuration aggregation engine.

Fetches routers from several downstream Traefik instances, namespaces them
by downstream name and publishes one combined dynamic-configuration
document.

Usage:
    from traefik_aggregator.aggregator import Aggregator, ConfigStore

    store = ConfigStore()
    async with httpx.AsyncClient(timeout=10.0) as client:
        aggregator = Aggregator(config, client, store)
        await aggregator.aggregate_configs()

    document = store.get().to_dict()
"""

from traefik_aggregator.aggregator.backend import get_backend_url
from traefik_aggregator.aggregator.domains import (
    convert_regexp_to_wildcard,
    extract_domains_from_rule,
)
from traefik_aggregator.aggregator.engine import (
    Aggregator,
    CycleReport,
    SourceReport,
    add_router,
)
from traefik_aggregator.aggregator.fetch import (
    ROUTERS_PATH,
    fetch_downstream_routers,
    fetch_passthrough_config,
)
from traefik_aggregator.aggregator.filters import should_ignore_router
from traefik_aggregator.aggregator.namespace import (
    merge_passthrough,
    resolve_entrypoints,
    strip_provider_suffix,
)
from traefik_aggregator.aggregator.scheduler import run_poll_loop, start_poll_task
from traefik_aggregator.aggregator.store import ConfigStore
from traefik_aggregator.aggregator.tls import build_tls_config
from traefik_aggregator.aggregator.types import (
    AggregatedDocument,
    HTTPBlock,
    HTTPProxyConfig,
    HTTPRouter,
    HTTPService,
    LoadBalancer,
    Server,
    TLSDomain,
    TraefikRouter,
)

__all__ = [
    # Engine
    "Aggregator",
    "CycleReport",
    "SourceReport",
    "add_router",
    "ConfigStore",
    "run_poll_loop",
    "start_poll_task",
    # Transforms
    "extract_domains_from_rule",
    "convert_regexp_to_wildcard",
    "build_tls_config",
    "get_backend_url",
    "should_ignore_router",
    "strip_provider_suffix",
    "resolve_entrypoints",
    "merge_passthrough",
    # Fetching
    "ROUTERS_PATH",
    "fetch_downstream_routers",
    "fetch_passthrough_config",
    # Types
    "AggregatedDocument",
    "HTTPProxyConfig",
    "HTTPBlock",
    "HTTPRouter",
    "HTTPService",
    "LoadBalancer",
    "Server",
    "TLSDomain",
    "TraefikRouter",
]

"""Collision-safe naming for aggregated routers, services and middlewares.

Every identifier contributed by a downstream is prefixed with the
downstream's configured name:

    normal mode       router  "svc@docker"  -> "team-a-svc"
                      service (synthesised) -> "service-team-a-svc"
    passthrough mode  router  "svc"         -> "team-b-svc"
                      service "svc-backend" -> "team-b-svc-backend"
                      middleware "auth"     -> "team-b-auth"

Colliding names are not detected; the last write wins.
"""

from __future__ import annotations

from dataclasses import dataclass

from traefik_aggregator.aggregator.types import HTTPProxyConfig, TraefikRouter
from traefik_aggregator.core.config import DownstreamConfig

PROVIDER_SEPARATOR = "@"


def strip_provider_suffix(name: str) -> str:
    """Drop the ``@provider`` suffix from an upstream router name."""
    return name.split(PROVIDER_SEPARATOR, 1)[0]


def prefix(source: str, name: str) -> str:
    """Prefix ``name`` with the source name."""
    return f"{source}-{name}"


def router_name(source: str, base_name: str) -> str:
    """Aggregated router name for a normal-mode router."""
    return prefix(source, base_name)


def service_name(source: str, base_name: str) -> str:
    """Synthesised service name for a normal-mode router."""
    return f"service-{source}-{base_name}"


def resolve_entrypoints(ds: DownstreamConfig, router: TraefikRouter) -> list[str]:
    """Use the downstream's entry point override if set, else the router's own."""
    if ds.entrypoints:
        return list(ds.entrypoints)
    return list(router.entry_points)


@dataclass
class MergeCounts:
    routers: int = 0
    services: int = 0
    middlewares: int = 0


def merge_passthrough(
    source: str,
    document: HTTPProxyConfig,
    into: HTTPProxyConfig,
) -> MergeCounts:
    """Merge a passthrough document into ``into`` under the ``source`` prefix.

    Router service references and middleware references are rewritten to
    their prefixed form. Services are copied unchanged apart from their key.
    ``document`` is left untouched.

    Returns:
        How many routers, services and middlewares the document contributed.
    """
    http = into.http

    for name, middleware in document.http.middlewares.items():
        http.middlewares[prefix(source, name)] = middleware

    for name, router in document.http.routers.items():
        http.routers[prefix(source, name)] = router.model_copy(
            update={
                "service": prefix(source, router.service),
                "middlewares": [prefix(source, mw) for mw in router.middlewares],
            }
        )

    for name, service in document.http.services.items():
        http.services[prefix(source, name)] = service

    return MergeCounts(
        routers=len(document.http.routers),
        services=len(document.http.services),
        middlewares=len(document.http.middlewares),
    )

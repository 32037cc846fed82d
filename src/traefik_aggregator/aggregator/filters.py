"""Entry point based router filtering."""

from __future__ import annotations

from collections.abc import Sequence

from traefik_aggregator.aggregator.types import TraefikRouter


def should_ignore_router(router: TraefikRouter, ignore_entrypoints: Sequence[str] | None) -> bool:
    """Return True if any of the router's entry points is in the ignore list."""
    if not ignore_entrypoints:
        return False
    ignored = set(ignore_entrypoints)
    return any(ep in ignored for ep in router.entry_points)

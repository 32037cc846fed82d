"""TLS block construction for aggregated routers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from traefik_aggregator.aggregator.domains import extract_domains_from_rule
from traefik_aggregator.aggregator.types import TLSDomain
from traefik_aggregator.core.config import DownstreamConfig

CERT_RESOLVER_KEY = "certResolver"
DOMAINS_KEY = "domains"


def build_tls_config(
    ds: DownstreamConfig,
    rule: str,
    existing_tls: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the TLS options for a router.

    Existing options are kept except ``domains``, which is always rebuilt
    from the rule. The downstream's ``cert_resolver`` overrides any existing
    resolver, and ``strip_resolver`` removes the resolver whatever its origin.

    Args:
        ds: The downstream the router came from.
        rule: The router's rule text.
        existing_tls: TLS options reported by the upstream, if any.

    Returns:
        The TLS options, possibly empty. Callers attach it only when non-empty.
    """
    tls_config: dict[str, Any] = {}

    if existing_tls:
        for key, value in existing_tls.items():
            if key != DOMAINS_KEY:
                tls_config[key] = value

    if ds.tls is not None and ds.tls.cert_resolver:
        tls_config[CERT_RESOLVER_KEY] = ds.tls.cert_resolver

    if ds.tls is not None and ds.tls.strip_resolver:
        tls_config.pop(CERT_RESOLVER_KEY, None)

    domains = extract_domains_from_rule(rule, ds.wildcard_fix)
    if domains:
        tls_config[DOMAINS_KEY] = [TLSDomain(main=domains[0], sans=domains[1:]).to_dict()]

    return tls_config

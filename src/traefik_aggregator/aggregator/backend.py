"""Backend URL resolution for aggregated services."""

from __future__ import annotations

from traefik_aggregator.core.config import DownstreamConfig

HTTP_SCHEME = "http://"
HTTPS_SCHEME = "https://"
_SCHEMES = (HTTP_SCHEME, HTTPS_SCHEME)


def get_backend_url(ds: DownstreamConfig, use_tls: bool) -> str:
    """Return the URL the aggregated service should forward to.

    An override that already carries a scheme is returned unchanged. An
    override without a scheme gets the scheme implied by ``use_tls``.
    Without an override, the host (and port, if any) of the downstream's API
    URL is used; a missing port becomes 443 or 80 depending on ``use_tls``,
    an existing port is kept.

    Examples:
        >>> ds = DownstreamConfig(name="a", api_url="http://traefik-host")
        >>> get_backend_url(ds, use_tls=False)
        'http://traefik-host:80'
        >>> get_backend_url(ds, use_tls=True)
        'https://traefik-host:443'
    """
    if use_tls:
        scheme, default_port = HTTPS_SCHEME, ":443"
    else:
        scheme, default_port = HTTP_SCHEME, ":80"

    if ds.backend_override:
        if ds.backend_override.startswith(_SCHEMES):
            return ds.backend_override
        return scheme + ds.backend_override

    host = ds.api_url
    for prefix in _SCHEMES:
        host = host.removeprefix(prefix)

    host = host.split("/", 1)[0]

    if ":" not in host:
        host += default_port

    return scheme + host

"""Fetching router data from downstream Traefik instances.

Two retrieval modes:

- normal: GET ``<api_url>/api/http/routers`` and decode a list of routers.
- passthrough: GET ``<api_url>`` and decode a complete dynamic-configuration
  document.

Redirects are followed. Every failure is raised as a FetchError subclass
carrying the source name.
"""

from __future__ import annotations

import httpx
from pydantic import TypeAdapter, ValidationError

from traefik_aggregator.aggregator.types import HTTPProxyConfig, TraefikRouter
from traefik_aggregator.core.config import Config, DownstreamConfig
from traefik_aggregator.core.exceptions import (
    DecodeError,
    InvalidAddressError,
    TransportError,
    UnexpectedStatusError,
)

ROUTERS_PATH = "/api/http/routers"
MAX_REDIRECTS = 10

_ROUTER_LIST = TypeAdapter(list[TraefikRouter] | None)


def create_client(config: Config) -> httpx.AsyncClient:
    """Build the HTTP client shared by every source fetch."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        follow_redirects=True,
        max_redirects=MAX_REDIRECTS,
    )


def build_api_url(api_url: str, path: str = "") -> httpx.URL:
    """Parse ``api_url`` and append ``path`` to its path component.

    Raises:
        InvalidAddressError: If the address is not an absolute http(s) URL.
    """
    try:
        url = httpx.URL(api_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise InvalidAddressError(f"invalid API URL {api_url!r}: {e}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidAddressError(f"invalid API URL {api_url!r}: expected http(s)://host[:port]")

    if path:
        url = url.copy_with(path=url.path.rstrip("/") + "/" + path.lstrip("/"))
    return url


def _auth_headers(ds: DownstreamConfig) -> dict[str, str]:
    if ds.api_key:
        return {"Authorization": f"Bearer {ds.api_key}"}
    return {}


async def _get(ds: DownstreamConfig, client: httpx.AsyncClient, url: httpx.URL) -> httpx.Response:
    try:
        response = await client.get(url, headers=_auth_headers(ds), follow_redirects=True)
    except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
        raise InvalidAddressError(f"invalid API URL {str(url)!r}: {e}", ds.name) from e
    except httpx.DecodingError as e:
        raise DecodeError(f"cannot decode response from {url}: {e}", ds.name) from e
    except httpx.RequestError as e:
        raise TransportError(f"request to {url} failed: {str(e) or type(e).__name__}", ds.name) from e

    if not response.is_success:
        raise UnexpectedStatusError(response.status_code, response.text, ds.name)

    return response


async def fetch_downstream_routers(
    ds: DownstreamConfig,
    client: httpx.AsyncClient,
) -> list[TraefikRouter]:
    """Fetch the router list of a downstream Traefik API.

    Raises:
        FetchError: On an invalid address, transport failure, non-2xx
            status, or a body that is not a JSON list of routers.
    """
    try:
        url = build_api_url(ds.api_url, ROUTERS_PATH)
    except InvalidAddressError as e:
        e.source = ds.name
        raise

    response = await _get(ds, client, url)

    try:
        routers = _ROUTER_LIST.validate_json(response.content)
    except ValidationError as e:
        raise DecodeError(f"cannot decode routers from {url}: {e}", ds.name) from e

    return routers or []


async def fetch_passthrough_config(
    ds: DownstreamConfig,
    client: httpx.AsyncClient,
) -> HTTPProxyConfig:
    """Fetch a complete dynamic-configuration document from ``ds.api_url``.

    Raises:
        FetchError: On an invalid address, transport failure, non-2xx
            status, or a body that is not a configuration document.
    """
    try:
        url = build_api_url(ds.api_url)
    except InvalidAddressError as e:
        e.source = ds.name
        raise

    response = await _get(ds, client, url)

    try:
        return HTTPProxyConfig.model_validate_json(response.content)
    except ValidationError as e:
        raise DecodeError(f"cannot decode configuration from {url}: {e}", ds.name) from e

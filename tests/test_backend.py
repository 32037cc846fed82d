"""Tests for backend URL resolution."""

from __future__ import annotations

import pytest

from traefik_aggregator.aggregator.backend import get_backend_url
from traefik_aggregator.core.config import DownstreamConfig


def _ds(api_url: str = "http://traefik-host", backend_override: str = "") -> DownstreamConfig:
    return DownstreamConfig(name="test", api_url=api_url, backend_override=backend_override)


class TestBackendOverride:
    """Overrides win over the API URL."""

    def test_full_url_http(self):
        assert get_backend_url(_ds(backend_override="http://custom-backend:9000"), False) == (
            "http://custom-backend:9000"
        )

    def test_full_url_https(self):
        assert get_backend_url(_ds(backend_override="https://secure-backend:443"), True) == (
            "https://secure-backend:443"
        )

    def test_host_only_http(self):
        assert get_backend_url(_ds(backend_override="custom-backend:9000"), False) == (
            "http://custom-backend:9000"
        )

    def test_host_only_https(self):
        assert get_backend_url(_ds(backend_override="secure-backend:443"), True) == (
            "https://secure-backend:443"
        )

    def test_host_only_gets_no_port(self):
        """Scheme-less overrides are only prefixed, never given a port."""
        assert get_backend_url(_ds(backend_override="custom-backend"), True) == "https://custom-backend"

    @pytest.mark.parametrize("use_tls", [True, False])
    def test_explicit_scheme_ignores_tls_flag(self, use_tls):
        assert get_backend_url(_ds(backend_override="https://secure-backend:443"), use_tls) == (
            "https://secure-backend:443"
        )
        assert get_backend_url(_ds(backend_override="http://plain-backend:80"), use_tls) == (
            "http://plain-backend:80"
        )


class TestFromAPIURL:
    """Backend derived from the downstream's API URL."""

    def test_default_port_http(self):
        assert get_backend_url(_ds("http://host"), False) == "http://host:80"

    def test_default_port_https(self):
        assert get_backend_url(_ds("http://host"), True) == "https://host:443"

    def test_existing_port_preserved(self):
        assert get_backend_url(_ds("http://host:8080"), False) == "http://host:8080"

    def test_existing_port_preserved_with_tls(self):
        assert get_backend_url(_ds("http://traefik-host:8082"), True) == "https://traefik-host:8082"

    def test_https_api_url(self):
        assert get_backend_url(_ds("https://traefik-host:8081"), False) == "http://traefik-host:8081"

    def test_path_removed(self):
        assert get_backend_url(_ds("http://traefik-host:8081/api/v1"), False) == (
            "http://traefik-host:8081"
        )

    def test_tls_changes_scheme(self):
        ds = _ds("http://traefik-host")
        assert get_backend_url(ds, False).startswith("http://")
        assert get_backend_url(ds, True).startswith("https://")

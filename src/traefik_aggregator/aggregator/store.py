"""Publish/read slot for the current aggregated document."""

from __future__ import annotations

import threading
import time

from traefik_aggregator.aggregator.types import HTTPProxyConfig


class ConfigStore:
    """Holds the last published document.

    Publishing swaps a reference under a lock; reading takes the same lock
    only long enough to copy the reference. Documents are built completely
    before being published and are never modified afterwards, so a reader
    always sees one whole cycle's output.

    Safe to share between the event loop and worker threads.
    """

    def __init__(self, initial: HTTPProxyConfig | None = None) -> None:
        self._lock = threading.Lock()
        self._document = initial if initial is not None else HTTPProxyConfig()
        self._published_at: float | None = None
        self._publish_count = 0

    def publish(self, document: HTTPProxyConfig) -> None:
        """Make ``document`` the current one. The caller must not modify it afterwards."""
        with self._lock:
            self._document = document
            self._published_at = time.time()
            self._publish_count += 1

    def get(self) -> HTTPProxyConfig:
        """Return the current document."""
        with self._lock:
            return self._document

    @property
    def published_at(self) -> float | None:
        """Unix time of the last publish, or None before the first cycle."""
        with self._lock:
            return self._published_at

    @property
    def publish_count(self) -> int:
        with self._lock:
            return self._publish_count

"""Error taxonomy for source fetches and bootstrap.

Fetch errors are scoped to a single source within a single aggregation
cycle: the engine logs them and moves on to the next source. ConfigError is
raised while bootstrapping and is fatal to the process.
"""

from __future__ import annotations

MAX_ERROR_BODY_LEN = 256
TRUNCATION_MARKER = "...(truncated)"


class AggregatorError(Exception):
    """Base class for all aggregator errors."""

    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(AggregatorError):
    """Configuration file missing, unreadable or invalid."""

    code = "config"


class FetchError(AggregatorError):
    """A source could not be fetched or decoded."""

    code = "fetch"

    def __init__(self, message: str, source: str = "") -> None:
        super().__init__(message)
        self.source = source


class InvalidAddressError(FetchError):
    """The source's API address cannot be turned into a request URL."""

    code = "invalid_address"


class TransportError(FetchError):
    """Connection failure or timeout while talking to the source."""

    code = "transport"


class UnexpectedStatusError(FetchError):
    """The source answered with a non-2xx status."""

    code = "unexpected_status"

    def __init__(self, status_code: int, body: str, source: str = "") -> None:
        self.status_code = status_code
        self.body = truncate_body(body)
        super().__init__(f"API returned status {status_code}: {self.body}", source)


class DecodeError(FetchError):
    """The response body does not have the expected shape."""

    code = "decode"


def truncate_body(body: str, limit: int = MAX_ERROR_BODY_LEN) -> str:
    """Cut an error body down to ``limit`` characters, marking the cut."""
    if len(body) > limit:
        return body[:limit] + TRUNCATION_MARKER
    return body


def format_error_for_user(error: BaseException) -> str:
    """Render an exception as a one-line message suitable for the console."""
    if isinstance(error, AggregatorError):
        return error.message
    return f"{type(error).__name__}: {error}"

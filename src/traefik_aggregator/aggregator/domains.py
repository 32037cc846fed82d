"""Domain extraction from Traefik rule strings.

Rules are scanned with fixed textual patterns, not parsed:

    Host(`example.com`) && PathPrefix(`/api`)      -> ["example.com"]
    HostRegexp(`^[a-zA-Z0-9-]+\\.example\\.com$`)   -> ["*.example.com"]  (wildcard_fix)

Literal hosts always come first, followed by converted regex hosts.
"""

from __future__ import annotations

import re

_HOST_RE = re.compile(r"Host\(`([^`]+)`\)")
_HOST_REGEXP_RE = re.compile(r"HostRegexp\(`([^`]+)`\)")

# Checked in order with a plain prefix test.
WILDCARD_PREFIXES = (
    r"^[a-zA-Z0-9-]+\.",
    r"^[a-zA-Z0-9_-]+\.",
    r"^[^.]+\.",
    r"^.+\.",
    r"^.*\.",
)


def convert_regexp_to_wildcard(pattern: str) -> str:
    """Convert a HostRegexp pattern to a wildcard domain.

    Args:
        pattern: The regular expression inside ``HostRegexp(`...`)``.

    Returns:
        The wildcard domain, or an empty string when the pattern does not
        start with a recognised single-label prefix.

    Examples:
        >>> convert_regexp_to_wildcard(r"^[a-zA-Z0-9-]+\\.pages\\.example\\.com$")
        '*.pages.example.com'
        >>> convert_regexp_to_wildcard(r"^api\\.example\\.com$")
        ''
    """
    for prefix in WILDCARD_PREFIXES:
        if pattern.startswith(prefix):
            remainder = pattern[len(prefix) :]
            remainder = remainder.removesuffix("$")
            return "*." + remainder.replace(r"\.", ".")
    return ""


def extract_domains_from_rule(rule: str, wildcard_fix: bool = False) -> list[str]:
    """Collect the domains a rule matches on.

    Args:
        rule: Traefik rule text.
        wildcard_fix: Also convert ``HostRegexp`` matchers into wildcard
            domains. When false they are ignored.

    Returns:
        Literal ``Host`` values in text order, then converted ``HostRegexp``
        values in text order. Patterns that cannot be converted are skipped.
    """
    domains = [match.group(1) for match in _HOST_RE.finditer(rule)]

    if wildcard_fix:
        for match in _HOST_REGEXP_RE.finditer(rule):
            domain = convert_regexp_to_wildcard(match.group(1))
            if domain:
                domains.append(domain)

    return domains

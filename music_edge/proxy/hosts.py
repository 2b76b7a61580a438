"""Allow-listing of upstream media hosts for the ``target`` proxy."""

import re
from typing import Iterable

# Kuwo main site plus its image CDN (img1.kwcdn.kuwo.cn and friends)
KUWO_DOMAINS = ("kuwo.cn", "kwcdn.kuwo.cn")
# Audio CDN used by the extended index route
KUWO_AUDIO_DOMAINS = KUWO_DOMAINS + ("sycdn.kuwo.cn",)


def build_host_pattern(domains: Iterable[str]) -> re.Pattern:
    """
    Compile a suffix allow-list into a pattern matching each domain and its
    subdomains, anchored at a label boundary.

    The pattern must be used with ``fullmatch``.
    """
    alternatives = "|".join(re.escape(d.strip(".").lower()) for d in domains if d)
    if not alternatives:
        raise ValueError("host allow-list must not be empty")
    return re.compile(rf"(?:[^/\s]*\.)?(?:{alternatives})", re.IGNORECASE)


DEFAULT_HOST_PATTERN = build_host_pattern(KUWO_DOMAINS)


def is_allowed_host(hostname, pattern: re.Pattern = DEFAULT_HOST_PATTERN) -> bool:
    """Return True if ``hostname`` equals or is a subdomain of an allow-listed domain."""
    if not hostname or not isinstance(hostname, str):
        return False
    return pattern.fullmatch(hostname) is not None

import re
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from music_edge.proxy.hosts import (
    DEFAULT_HOST_PATTERN,
    KUWO_AUDIO_DOMAINS,
    build_host_pattern,
)
from music_edge.vars import API_BASE_URL, API_BASE_URL_2

SAFE_RESPONSE_HEADERS = (
    "content-type",
    "cache-control",
    "accept-ranges",
    "content-length",
    "content-range",
    "etag",
    "last-modified",
    "expires",
)
EXTENDED_RESPONSE_HEADERS = SAFE_RESPONSE_HEADERS + ("content-disposition",)

# 514 is Kuwo's own "wrong protocol" rejection
FALLBACK_STATUS_CODES = frozenset({514, 403, 404})

# Query parameters that steer the proxy and are never sent upstream
PROXY_CONTROL_PARAMS = frozenset({"target", "callback"})

API_CACHE_CONTROL = "no-store"
MEDIA_CACHE_CONTROL = "public, max-age=3600"


@dataclass(frozen=True)
class RouteConfig:
    """Everything that distinguishes one proxy route from another."""

    name: str
    upstream_base_url: str
    allowed_host_pattern: re.Pattern = DEFAULT_HOST_PATTERN
    required_param: Optional[str] = None
    fallback_status_codes: FrozenSet[int] = FALLBACK_STATUS_CODES
    response_header_allow_list: Tuple[str, ...] = SAFE_RESPONSE_HEADERS
    expose_headers: bool = False
    excluded_params: FrozenSet[str] = PROXY_CONTROL_PARAMS


PRIMARY_ROUTE = RouteConfig(
    name="primary",
    upstream_base_url=API_BASE_URL,
    required_param="types",
)

SECONDARY_ROUTE = RouteConfig(
    name="secondary",
    upstream_base_url=API_BASE_URL_2,
)

EXTENDED_ROUTE = RouteConfig(
    name="extended",
    upstream_base_url=API_BASE_URL_2,
    allowed_host_pattern=build_host_pattern(KUWO_AUDIO_DOMAINS),
    response_header_allow_list=EXTENDED_RESPONSE_HEADERS,
    expose_headers=True,
)

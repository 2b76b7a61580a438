"""
Header handling for both directions of the proxy.

Outbound: the header sets sent to upstreams, built from a small subset of the
inbound request plus the fixed values Kuwo's anti-leech checks expect.

Inbound: response headers relayed to the browser are limited to an
allow-list, always carry CORS headers and get a default Cache-Control.
"""

from typing import Dict, Iterable, Mapping, Optional

from starlette.requests import Request

DEFAULT_USER_AGENT = "Mozilla/5.0"
DEFAULT_ACCEPT = "*/*"
DEFAULT_ACCEPT_LANGUAGE = "zh-CN,zh;q=0.9,en;q=0.8"

KUWO_REFERER = "https://www.kuwo.cn/"
KUWO_ORIGIN = "https://www.kuwo.cn"

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,HEAD,OPTIONS",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Max-Age": "86400",
}


def cors_headers() -> Dict[str, str]:
    """Headers for locally generated responses that have no upstream."""
    return {"Access-Control-Allow-Origin": "*"}


def preflight_headers() -> Dict[str, str]:
    return dict(PREFLIGHT_HEADERS)


def build_target_request_headers(request: Request) -> Dict[str, str]:
    """Headers for a direct media fetch from a Kuwo host."""
    headers = {
        "User-Agent": request.headers.get("user-agent") or DEFAULT_USER_AGENT,
        "Referer": KUWO_REFERER,
        "Origin": KUWO_ORIGIN,
        "Accept": request.headers.get("accept") or DEFAULT_ACCEPT,
        "Accept-Language": request.headers.get("accept-language")
        or DEFAULT_ACCEPT_LANGUAGE,
    }
    # Byte ranges are what make seeking work in <audio>
    range_header = request.headers.get("range")
    if range_header:
        headers["Range"] = range_header
    return headers


def build_api_request_headers(request: Request) -> Dict[str, str]:
    """Headers for a metadata API call; TuneHub answers type=url with text/plain."""
    return {
        "User-Agent": request.headers.get("user-agent") or DEFAULT_USER_AGENT,
        "Accept": request.headers.get("accept") or DEFAULT_ACCEPT,
    }


def build_response_headers(
    upstream_headers: Optional[Mapping[str, str]] = None,
    *,
    allow_list: Iterable[str],
    default_cache_control: str,
    expose: bool = False,
) -> Dict[str, str]:
    """
    Build the headers relayed to the caller.

    Only headers named in ``allow_list`` are copied from ``upstream_headers``
    (case-insensitive). When the upstream gave no Cache-Control,
    ``default_cache_control`` is used. CORS headers are always added.
    """
    allow_list = tuple(name.lower() for name in allow_list)
    upstream = {}
    if upstream_headers:
        upstream = {name.lower(): value for name, value in upstream_headers.items()}

    headers: Dict[str, str] = {}
    for name in allow_list:
        if name in upstream:
            headers[name] = upstream[name]

    # The body is relayed decoded, so a compressed length would be wrong
    encoding = upstream.get("content-encoding", "").strip().lower()
    if encoding and encoding != "identity":
        headers.pop("content-length", None)

    if "cache-control" not in headers:
        headers["cache-control"] = default_cache_control

    headers["access-control-allow-origin"] = "*"
    if expose:
        headers["access-control-expose-headers"] = ", ".join(allow_list)
    return headers

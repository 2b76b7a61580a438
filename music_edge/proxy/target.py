"""
Direct media proxy for ``?target=<url>`` requests.

Kuwo's CDN serves most assets over plain http and rejects some of them over
https (and vice versa), so every target is tried over http first and, when
the upstream answers with one of the route's fallback statuses, once more
over https.
"""

import logging
import re
from typing import Tuple

import httpx
from fastapi.responses import StreamingResponse
from opentelemetry import trace
from starlette.requests import Request

from music_edge.proxy.errors import InvalidTarget
from music_edge.proxy.headers import build_response_headers, build_target_request_headers
from music_edge.proxy.hosts import is_allowed_host
from music_edge.proxy.route_config import MEDIA_CACHE_CONTROL, RouteConfig
from music_edge.proxy.upstream import create_client, relay_response, send_upstream
from music_edge.utils import strip_query
from music_edge.utils.traced_requests import traced_request

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")


def parse_target(raw_target: str, host_pattern: re.Pattern) -> httpx.URL:
    """Parse and validate a caller supplied target URL, raising InvalidTarget."""
    try:
        url = httpx.URL(raw_target)
    except httpx.InvalidURL as e:
        raise InvalidTarget() from e

    if url.scheme not in ("http", "https"):
        raise InvalidTarget()
    if not is_allowed_host(url.host, host_pattern):
        raise InvalidTarget()
    return url


def protocol_candidates(url: httpx.URL) -> Tuple[httpx.URL, httpx.URL]:
    """The same resource over http and over https, in the order they are tried."""
    return url.copy_with(scheme="http"), url.copy_with(scheme="https")


async def proxy_target(
    raw_target: str, request: Request, config: RouteConfig
) -> StreamingResponse:
    target = parse_target(raw_target, config.allowed_host_pattern)
    http_url, https_url = protocol_candidates(target)
    headers = build_target_request_headers(request)

    with traced_request(
        tracer,
        operation="proxy_target",
        route=config.name,
        start_message=f"[Target] {request.method} {strip_query(str(target))}",
        extra_attrs={"proxy.target_url": strip_query(str(target))},
    ) as span:
        client = create_client()
        try:
            upstream = await send_upstream(client, request.method, str(http_url), headers)
            if upstream.status_code in config.fallback_status_codes:
                logger.info(
                    f"Upstream answered {upstream.status_code} over http for "
                    f"{target.host}, retrying over https"
                )
                span.set_attribute("proxy.fallback", True)
                await upstream.aclose()
                upstream = await send_upstream(
                    client, request.method, str(https_url), headers
                )
        except Exception as e:
            span.set_attribute("proxy.error", type(e).__name__)
            await client.aclose()
            raise

        span.set_attribute("proxy.status_code", upstream.status_code)
        response_headers = build_response_headers(
            upstream.headers,
            allow_list=config.response_header_allow_list,
            default_cache_control=MEDIA_CACHE_CONTROL,
            expose=config.expose_headers,
        )
        return relay_response(upstream, client, response_headers)

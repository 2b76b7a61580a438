import logging
from typing import Dict

import httpx
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from music_edge.proxy.errors import UpstreamTimeout, UpstreamUnreachable
from music_edge.utils import strip_query
from music_edge.vars import PROXY_FOLLOW_REDIRECTS, PROXY_TIMEOUT

logger = logging.getLogger("uvicorn.error")


def create_client() -> httpx.AsyncClient:
    """One client per inbound request; closed after the body has been relayed."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(PROXY_TIMEOUT),
        follow_redirects=PROXY_FOLLOW_REDIRECTS,
    )


async def send_upstream(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    headers: Dict[str, str],
) -> httpx.Response:
    """
    Issue one outbound request and return the response with its body unread.

    Transport failures are mapped to local errors; upstream statuses are not.
    """
    logger.debug(f"Upstream {method} {strip_query(url)}")
    request = client.build_request(method=method, url=url, headers=headers)
    try:
        return await client.send(request, stream=True)
    except httpx.TimeoutException as e:
        logger.error(f"Upstream timeout for {strip_query(url)}: {e}")
        raise UpstreamTimeout() from e
    except httpx.RequestError as e:
        logger.error(f"Failed to reach upstream {strip_query(url)}: {e!r}")
        raise UpstreamUnreachable() from e


async def _close(upstream: httpx.Response, client: httpx.AsyncClient) -> None:
    try:
        await upstream.aclose()
    finally:
        await client.aclose()


def relay_response(
    upstream: httpx.Response,
    client: httpx.AsyncClient,
    headers: Dict[str, str],
) -> StreamingResponse:
    """Stream the upstream body through unchanged with the sanitized headers."""
    return StreamingResponse(
        upstream.aiter_bytes(),
        status_code=upstream.status_code,
        headers=headers,
        background=BackgroundTask(_close, upstream, client),
    )

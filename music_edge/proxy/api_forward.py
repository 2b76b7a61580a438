from typing import Iterable

import httpx
from fastapi.responses import StreamingResponse
from opentelemetry import trace
from starlette.datastructures import URL, QueryParams
from starlette.requests import Request

from music_edge.proxy.errors import MissingRequiredParameter
from music_edge.proxy.headers import build_api_request_headers, build_response_headers
from music_edge.proxy.route_config import API_CACHE_CONTROL, RouteConfig
from music_edge.proxy.upstream import create_client, relay_response, send_upstream
from music_edge.utils import strip_query
from music_edge.utils.traced_requests import traced_request

tracer = trace.get_tracer(__name__)


def build_upstream_url(
    base_url: str, inbound_params: QueryParams, excluded: Iterable[str]
) -> httpx.URL:
    """
    Copy the inbound query onto ``base_url``.

    Parameters named in ``excluded`` are dropped, the rest overwrite
    same-named parameters of the base URL. A repeated inbound parameter
    keeps its last value.
    """
    excluded = set(excluded)
    overrides = {}
    for key, value in inbound_params.multi_items():
        if key in excluded:
            continue
        overrides[key] = value
    return httpx.URL(base_url).copy_merge_params(overrides)


async def proxy_api(
    inbound_url: URL, request: Request, config: RouteConfig
) -> StreamingResponse:
    upstream_url = build_upstream_url(
        config.upstream_base_url,
        QueryParams(inbound_url.query),
        config.excluded_params,
    )
    if config.required_param and config.required_param not in upstream_url.params:
        raise MissingRequiredParameter(config.required_param)

    with traced_request(
        tracer,
        operation="proxy_api",
        route=config.name,
        start_message=f"[API] {config.name} -> {strip_query(str(upstream_url))}",
        extra_attrs={"proxy.upstream_url": strip_query(str(upstream_url))},
    ) as span:
        client = create_client()
        try:
            upstream = await send_upstream(
                client, "GET", str(upstream_url), build_api_request_headers(request)
            )
        except Exception as e:
            span.set_attribute("proxy.error", type(e).__name__)
            await client.aclose()
            raise

        span.set_attribute("proxy.status_code", upstream.status_code)
        response_headers = build_response_headers(
            upstream.headers,
            allow_list=config.response_header_allow_list,
            default_cache_control=API_CACHE_CONTROL,
            expose=config.expose_headers,
        )
        return relay_response(upstream, client, response_headers)

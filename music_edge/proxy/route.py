import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

from music_edge.proxy.api_forward import proxy_api
from music_edge.proxy.errors import MethodNotAllowed, ProxyError
from music_edge.proxy.headers import cors_headers, preflight_headers
from music_edge.proxy.route_config import (
    EXTENDED_ROUTE,
    PRIMARY_ROUTE,
    SECONDARY_ROUTE,
    RouteConfig,
)
from music_edge.proxy.target import proxy_target

router = APIRouter()
logger = logging.getLogger("uvicorn.error")

# Every method is routed here so that the 405 carries CORS headers
ROUTED_METHODS = ["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]
SUPPORTED_METHODS = {"GET", "HEAD"}


def preflight_response() -> Response:
    return Response(status_code=204, headers=preflight_headers())


def error_response(error: ProxyError) -> Response:
    return PlainTextResponse(
        error.detail, status_code=error.status_code, headers=cors_headers()
    )


async def handle_request(request: Request, config: RouteConfig) -> Response:
    """Dispatch one inbound request to the target proxy or the API forwarder."""
    if request.method == "OPTIONS":
        return preflight_response()

    try:
        if request.method not in SUPPORTED_METHODS:
            raise MethodNotAllowed()

        target = request.query_params.get("target")
        if target:
            return await proxy_target(target, request, config)
        return await proxy_api(request.url, request, config)
    except ProxyError as e:
        logger.warning(
            f"[{config.name}] {request.method} {request.url.path} rejected: "
            f"{e.status_code} {e.detail}"
        )
        return error_response(e)


@router.api_route("/api.php", methods=ROUTED_METHODS)
async def primary_api(request: Request):
    return await handle_request(request, PRIMARY_ROUTE)


@router.api_route("/api/api_index", methods=ROUTED_METHODS)
async def extended_api(request: Request):
    return await handle_request(request, EXTENDED_ROUTE)


@router.api_route("/api", methods=ROUTED_METHODS)
@router.api_route("/api/index", methods=ROUTED_METHODS)
@router.api_route("/api/{path}", methods=ROUTED_METHODS)
async def secondary_api(request: Request):
    return await handle_request(request, SECONDARY_ROUTE)

import dataclasses

import pytest
from unittest.mock import AsyncMock, patch
from httpx import AsyncClient, ConnectError
from starlette.datastructures import QueryParams

from music_edge.proxy.api_forward import build_upstream_url, proxy_api
from music_edge.proxy.errors import MissingRequiredParameter, UpstreamUnreachable
from music_edge.proxy.route_config import (
    PRIMARY_ROUTE,
    PROXY_CONTROL_PARAMS,
    SECONDARY_ROUTE,
)

BASE_URL = "https://music-api.example.com/api.php?source=kuwo&count=20"


class TestBuildUpstreamUrl:
    def test_inbound_params_override_defaults(self):
        url = build_upstream_url(
            BASE_URL,
            QueryParams("types=search&name=x&count=5"),
            PROXY_CONTROL_PARAMS,
        )

        assert dict(url.params) == {
            "source": "kuwo",
            "count": "5",
            "types": "search",
            "name": "x",
        }
        assert url.host == "music-api.example.com"
        assert url.path == "/api.php"

    def test_proxy_control_params_are_excluded(self):
        url = build_upstream_url(
            BASE_URL,
            QueryParams("types=search&name=x&target=http://a&callback=jsonp1"),
            PROXY_CONTROL_PARAMS,
        )

        assert "target" not in url.params
        assert "callback" not in url.params
        assert dict(url.params) == {
            "source": "kuwo",
            "count": "20",
            "types": "search",
            "name": "x",
        }

    def test_repeated_param_keeps_last_value(self):
        url = build_upstream_url(
            BASE_URL, QueryParams("name=a&name=b"), PROXY_CONTROL_PARAMS
        )
        assert url.params.get_list("name") == ["b"]

    def test_values_are_reencoded(self):
        url = build_upstream_url(
            "https://music-dl.example.com/api/",
            QueryParams("keyword=%E5%91%A8%E6%9D%B0%E4%BC%A6&type=search"),
            PROXY_CONTROL_PARAMS,
        )
        assert url.params["keyword"] == "周杰伦"


class TestProxyApi:
    @pytest.mark.asyncio
    async def test_forwards_query_to_primary_upstream(
        self, make_request, upstream_response, read_body
    ):
        config = dataclasses.replace(PRIMARY_ROUTE, upstream_base_url=BASE_URL)
        request = make_request(
            query="types=search&name=x&callback=cb",
            headers={"user-agent": "player/1.0"},
        )

        with patch.object(AsyncClient, "send", new_callable=AsyncMock) as mock_send:
            mock_send.return_value = upstream_response(
                200,
                headers={"content-type": "application/json", "x-powered-by": "php"},
                content=b'[{"id": 1}]',
            )

            result = await proxy_api(request.url, request, config)
            body = await read_body(result)

        sent = mock_send.call_args.args[0]
        assert sent.method == "GET"
        assert sent.url.params["types"] == "search"
        assert sent.url.params["name"] == "x"
        assert "callback" not in sent.url.params
        assert sent.headers["user-agent"] == "player/1.0"
        assert sent.headers["accept"] == "*/*"
        assert result.status_code == 200
        assert result.headers["content-type"] == "application/json"
        assert result.headers["cache-control"] == "no-store"
        assert "x-powered-by" not in result.headers
        assert body == b'[{"id": 1}]'

    @pytest.mark.asyncio
    async def test_head_is_forwarded_as_get(
        self, make_request, upstream_response, read_body
    ):
        request = make_request(method="HEAD", query="types=pic&id=1")

        with patch.object(AsyncClient, "send", new_callable=AsyncMock) as mock_send:
            mock_send.return_value = upstream_response(200)

            result = await proxy_api(request.url, request, PRIMARY_ROUTE)
            await read_body(result)

        assert mock_send.call_args.args[0].method == "GET"

    @pytest.mark.asyncio
    async def test_missing_types_makes_no_call(self, make_request):
        request = make_request(query="name=x")

        with patch.object(AsyncClient, "send", new_callable=AsyncMock) as mock_send:
            with pytest.raises(MissingRequiredParameter) as exc_info:
                await proxy_api(request.url, request, PRIMARY_ROUTE)

        mock_send.assert_not_called()
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Missing types"

    @pytest.mark.asyncio
    async def test_required_param_may_come_from_base_url(
        self, make_request, upstream_response, read_body
    ):
        config = dataclasses.replace(
            PRIMARY_ROUTE,
            upstream_base_url="https://music-api.example.com/api.php?types=search",
        )
        request = make_request(query="name=x")

        with patch.object(AsyncClient, "send", new_callable=AsyncMock) as mock_send:
            mock_send.return_value = upstream_response(200)

            result = await proxy_api(request.url, request, config)
            await read_body(result)

        assert mock_send.call_count == 1

    @pytest.mark.asyncio
    async def test_secondary_route_forwards_unconditionally(
        self, make_request, upstream_response, read_body
    ):
        request = make_request(path="/api/index", query="")

        with patch.object(AsyncClient, "send", new_callable=AsyncMock) as mock_send:
            mock_send.return_value = upstream_response(
                404, headers={"cache-control": "max-age=60"}
            )

            result = await proxy_api(request.url, request, SECONDARY_ROUTE)
            await read_body(result)

        sent = mock_send.call_args.args[0]
        assert str(sent.url).startswith(SECONDARY_ROUTE.upstream_base_url)
        assert result.status_code == 404
        assert result.headers["cache-control"] == "max-age=60"

    @pytest.mark.asyncio
    async def test_no_retry_on_upstream_error(
        self, make_request, upstream_response, read_body
    ):
        request = make_request(query="types=url&id=1")

        with patch.object(AsyncClient, "send", new_callable=AsyncMock) as mock_send:
            mock_send.return_value = upstream_response(514)

            result = await proxy_api(request.url, request, PRIMARY_ROUTE)
            await read_body(result)

        assert mock_send.call_count == 1
        assert result.status_code == 514

    @pytest.mark.asyncio
    async def test_connection_error(self, make_request):
        request = make_request(query="types=search")

        with patch.object(AsyncClient, "send", new_callable=AsyncMock) as mock_send:
            mock_send.side_effect = ConnectError("Name or service not known")

            with pytest.raises(UpstreamUnreachable):
                await proxy_api(request.url, request, PRIMARY_ROUTE)

import httpx
import pytest
from starlette.requests import Request


@pytest.fixture
def make_request():
    """Build a real Starlette Request so header lookups stay case-insensitive."""

    def _make_request(method="GET", path="/api.php", query="", headers=None):
        raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ]
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "server": ("proxy.example.com", 80),
            "client": ("192.168.1.100", 50000),
            "root_path": "",
            "path": path,
            "query_string": query.encode("latin-1"),
            "headers": raw_headers,
        }
        return Request(scope)

    return _make_request


@pytest.fixture
def upstream_response():
    """Create an httpx Response as an upstream would return it."""

    def _create_response(status_code=200, headers=None, content=b"upstream body"):
        return httpx.Response(status_code, headers=headers or {}, content=content)

    return _create_response


@pytest.fixture
def read_body():
    """Drain a relayed StreamingResponse and run its close task."""

    async def _read_body(response) -> bytes:
        chunks = [chunk async for chunk in response.body_iterator]
        if response.background is not None:
            await response.background()
        return b"".join(chunks)

    return _read_body

"""Tests for the HTTP transport."""

from __future__ import annotations

import json

import httpx
import pytest

from rtdb_cache.client import HttpTransport, TransportResponse
from rtdb_cache.exceptions import ConnectionError_, InvalidUsageError
from rtdb_cache.models import HttpMethod, QueryOptions


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class Recorder:
    """MockTransport handler that records requests and replies with a fixed answer."""

    def __init__(self, status: int = 200, text: str = "null") -> None:
        self.status = status
        self.text = text
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, text=self.text)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def _transport(recorder, **kwargs) -> HttpTransport:
    return HttpTransport("proj-default-rtdb", "abc", transport=httpx.MockTransport(recorder), **kwargs)


# ---------------------------------------------------------------------------
# URL construction
# ---------------------------------------------------------------------------


class TestUrls:
    def test_default_base_url(self) -> None:
        transport = HttpTransport("proj-default-rtdb", "abc")
        assert transport.base_url == "https://proj-default-rtdb.firebaseio.com"

    def test_base_url_override_strips_trailing_slash(self) -> None:
        transport = HttpTransport("db", "abc", base_url="http://localhost:9000/")
        assert transport.build_url("users") == "http://localhost:9000/users.json"

    @pytest.mark.parametrize(
        "path, expected",
        [
            ("users", "https://proj-default-rtdb.firebaseio.com/users.json"),
            ("/users/steve/", "https://proj-default-rtdb.firebaseio.com/users/steve.json"),
            ("", "https://proj-default-rtdb.firebaseio.com/.json"),
        ],
    )
    def test_build_url(self, path: str, expected: str) -> None:
        assert HttpTransport("proj-default-rtdb", "abc").build_url(path) == expected

    def test_auth_comes_first_then_options(self) -> None:
        params = HttpTransport("db", "abc").build_params({"shallow": True, "timeout": "3s"})
        assert list(params.items()) == [("auth", "abc"), ("shallow", "true"), ("timeout", "3s")]


# ---------------------------------------------------------------------------
# send_request
# ---------------------------------------------------------------------------


class TestSendRequest:
    @pytest.mark.asyncio
    async def test_get_request_shape(self) -> None:
        recorder = Recorder(text='{"steve": true}')
        async with _transport(recorder) as transport:
            response = await transport.send_request("users", "Get", QueryOptions(shallow=True))

        assert response == TransportResponse(status=200, body='{"steve": true}')
        assert response.ok
        assert response.json() == {"steve": True}

        request = recorder.last
        assert request.method == "GET"
        assert request.url.host == "proj-default-rtdb.firebaseio.com"
        assert request.url.path == "/users.json"
        assert request.url.params["auth"] == "abc"
        assert request.url.params["shallow"] == "true"
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_put_sends_body(self) -> None:
        recorder = Recorder(text='{"name": "Steve"}')
        async with _transport(recorder) as transport:
            await transport.send_request(
                "users/steve", HttpMethod.PUT, None, json.dumps({"name": "Steve"})
            )

        assert recorder.last.method == "PUT"
        assert json.loads(recorder.last.content) == {"name": "Steve"}

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self) -> None:
        recorder = Recorder(status=401, text='{"error": "Permission denied"}')
        async with _transport(recorder) as transport:
            response = await transport.send_request("secret", "Get")
        assert response.status == 401
        assert not response.ok
        assert "Permission denied" in response.body

    @pytest.mark.asyncio
    async def test_query_values_are_url_encoded(self) -> None:
        recorder = Recorder()
        transport = HttpTransport(
            "db", "a b&c", base_url="http://localhost:9000", transport=httpx.MockTransport(recorder)
        )
        await transport.send_request("users", "Get")
        await transport.aclose()
        assert "&c" not in recorder.last.url.query.decode()
        assert recorder.last.url.params["auth"] == "a b&c"

    @pytest.mark.asyncio
    async def test_network_error_maps_to_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = HttpTransport("db", "abc", transport=httpx.MockTransport(handler))
        with pytest.raises(ConnectionError_, match="refused"):
            await transport.send_request("users", "Get")
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_unknown_method_rejected(self) -> None:
        recorder = Recorder()
        transport = _transport(recorder)
        with pytest.raises(InvalidUsageError):
            await transport.send_request("users", "Delete")
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_invalid_options_rejected(self) -> None:
        recorder = Recorder()
        transport = _transport(recorder)
        with pytest.raises(InvalidUsageError):
            await transport.send_request("users", "Get", {"print": "loud"})
        assert recorder.requests == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_client_created_lazily_and_closed(self) -> None:
        recorder = Recorder()
        transport = _transport(recorder)
        assert transport._client is None
        await transport.send_request("users", "Get")
        assert transport._client is not None
        await transport.aclose()
        assert transport._client is None

    @pytest.mark.asyncio
    async def test_aclose_without_requests_is_noop(self) -> None:
        transport = _transport(Recorder())
        await transport.aclose()
        assert transport._client is None

"""Shared test fixtures for rtdb_cache.

Provides an in-memory :class:`FakeDatabase` served through
:class:`httpx.MockTransport`, a controllable millisecond clock for TTL
tests, and a factory for store controllers wired to the fake.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import httpx
import pytest
import pytest_asyncio

from rtdb_cache.client import HttpTransport
from rtdb_cache.output import OutputManager, reset_output, set_output
from rtdb_cache.store import StoreController


DB_NAME = "proj-default-rtdb"
DB_SECRET = "abc"


# ---------------------------------------------------------------------------
# Fake database
# ---------------------------------------------------------------------------


def _request_path(request: httpx.Request) -> str:
    return request.url.path.strip("/").removesuffix(".json").strip("/")


class FakeDatabase:
    """Minimal REST database backed by a nested dict.

    * ``GET <path>.json`` returns the JSON at *path* (``null`` when absent);
      ``shallow=true`` replaces child objects with ``true``.
    * ``PUT <path>.json`` stores the decoded body (``null`` deletes).
    * ``statuses[(method, path)]`` forces an error status for a request.
    * ``validation_status`` is returned for the root shallow read.
    * ``validation_gate``, when set, holds the root shallow read until the
      event fires.
    * ``broken`` paths raise :class:`httpx.ConnectError`.
    * ``gates[(method, path)]`` holds an already computed response until the
      event fires, like an answer still in flight.
    """

    def __init__(self, data: Optional[dict[str, Any]] = None) -> None:
        self.data: dict[str, Any] = data if data is not None else {}
        self.requests: list[httpx.Request] = []
        self.statuses: dict[tuple[str, str], int] = {}
        self.validation_status = 200
        self.validation_gate: Optional[asyncio.Event] = None
        self.broken: set[str] = set()
        self.gates: dict[tuple[str, str], asyncio.Event] = {}

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = await self._respond(request)
        gate = self.gates.get((request.method, _request_path(request)))
        if gate is not None:
            await gate.wait()
        return response

    async def _respond(self, request: httpx.Request) -> httpx.Response:
        path = _request_path(request)
        method = request.method
        shallow = request.url.params.get("shallow") == "true"

        if path in self.broken:
            raise httpx.ConnectError("connection refused", request=request)

        if method == "GET" and path == "" and shallow:
            if self.validation_gate is not None:
                await self.validation_gate.wait()
            if self.validation_status != 200:
                return httpx.Response(
                    self.validation_status, text=json.dumps({"error": "validation failed"})
                )

        forced = self.statuses.get((method, path))
        if forced is not None:
            return httpx.Response(forced, text=json.dumps({"error": f"HTTP {forced}"}))

        if method == "GET":
            value = self.read(path)
            if shallow and isinstance(value, dict):
                value = {key: True for key in value}
            return httpx.Response(200, text=json.dumps(value))

        if method == "PUT":
            value = json.loads(request.content)
            self.write(path, value)
            return httpx.Response(200, text=request.content.decode())

        return httpx.Response(405, text=json.dumps({"error": "method not allowed"}))

    # -- data access ------------------------------------------------------

    def read(self, path: str) -> Any:
        node: Any = self.data
        for segment in filter(None, path.split("/")):
            if not isinstance(node, dict) or segment not in node:
                return None
            node = node[segment]
        return node

    def write(self, path: str, value: Any) -> None:
        segments = [s for s in path.split("/") if s]
        if not segments:
            self.data = value if isinstance(value, dict) else {}
            return
        node = self.data
        for segment in segments[:-1]:
            node = node.setdefault(segment, {})
        if value is None:
            node.pop(segments[-1], None)
        else:
            node[segments[-1]] = value

    # -- request log ------------------------------------------------------

    def count(self, method: str, path: str) -> int:
        """Number of *method* requests issued for *path* (root validation excluded)."""
        total = 0
        for request in self.requests:
            req_path = _request_path(request)
            is_validation = req_path == "" and request.url.params.get("shallow") == "true"
            if request.method == method and req_path == path and not is_validation:
                total += 1
        return total


class FakeClock:
    """Monotonic millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _quiet_output():
    """Install a quiet, colourless output manager for every test."""
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


@pytest.fixture
def fake_db() -> FakeDatabase:
    return FakeDatabase(
        {
            "users": {"steve": {"name": "Steve"}},
            "counter": 1,
        }
    )


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    """Replace the cache node clock with a :class:`FakeClock`."""
    fake = FakeClock()
    monkeypatch.setattr("rtdb_cache.cache.node._now", fake)
    return fake


def _make_transport(fake: FakeDatabase, name: str = DB_NAME, secret: str = DB_SECRET) -> HttpTransport:
    return HttpTransport(name, secret, transport=httpx.MockTransport(fake.handler))


@pytest_asyncio.fixture
async def transport(fake_db: FakeDatabase):
    """An HttpTransport served by ``fake_db``, closed afterwards."""
    client = _make_transport(fake_db)
    yield client
    await client.aclose()


@pytest_asyncio.fixture
async def make_store(fake_db: FakeDatabase):
    """Factory for controllers served by ``fake_db``; closes them afterwards."""
    opened: list[tuple[StoreController, HttpTransport]] = []

    def _make(ttl: int = 300_000, name: str = DB_NAME, secret: str = DB_SECRET) -> StoreController:
        transport = _make_transport(fake_db, name.strip(), secret.strip())
        store = StoreController(name, secret, ttl, transport=transport)
        opened.append((store, transport))
        return store

    yield _make

    for store, transport in opened:
        await store.aclose()
        await transport.aclose()


@pytest_asyncio.fixture
async def store(make_store) -> StoreController:
    """A validated controller with the default TTL."""
    controller = make_store()
    await controller.wait_ready()
    return controller

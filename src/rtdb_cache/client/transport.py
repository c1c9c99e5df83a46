"""Request transport for the database REST API, built on :class:`httpx.AsyncClient`.

:class:`HttpTransport` is the only network-facing component.  Every read
and write issued by :class:`~rtdb_cache.store.StoreController` and its
:class:`~rtdb_cache.cache.node.CacheNode` instances goes through
:meth:`HttpTransport.send_request`, which:

* joins the database base URL, the path, and a ``.json`` suffix,
* appends ``auth=<secret>`` followed by the query options,
* sends ``Content-Type: application/json``,
* returns the raw status and body -- non-200 answers are *returned*, not
  raised, so that each caller applies its own policy.

Network-level failures are mapped to
:class:`~rtdb_cache.exceptions.ConnectionError_`.  There is no retry.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Union

import httpx

from rtdb_cache.exceptions import ConnectionError_
from rtdb_cache.models import HttpMethod, QueryOptions
from rtdb_cache.output import get_output


OptionsLike = Union[QueryOptions, Mapping[str, Any], None]


@dataclass(frozen=True)
class TransportResponse:
    """Raw status/body pair returned by :meth:`HttpTransport.send_request`."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        """True for the only status the database uses for success (200)."""
        return self.status == 200

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.body)


class Transport(Protocol):
    """Anything the store controller can route requests through."""

    async def send_request(
        self,
        path: str,
        method: Union[HttpMethod, str],
        options: OptionsLike = None,
        body: Optional[str] = None,
    ) -> TransportResponse: ...

    async def aclose(self) -> None: ...


class HttpTransport:
    """Issue requests against ``https://<name>.firebaseio.com``.

    The underlying :class:`httpx.AsyncClient` is created on the first
    request and released by :meth:`aclose` (or ``async with``).

    Args:
        name: Database name, e.g. ``my-project-default-rtdb``.
        secret: Database secret sent as the ``auth`` query parameter.
        base_url: Override for the default base URL (local emulator, proxy).
        timeout: HTTP timeout in seconds.
        verify_ssl: Verify SSL certificates.
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        async with HttpTransport("proj-default-rtdb", secret) as t:
            resp = await t.send_request("users", "Get", {"shallow": True})
    """

    def __init__(
        self,
        name: str,
        secret: str,
        *,
        base_url: Optional[str] = None,
        timeout: float = 30,
        verify_ssl: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._name = name
        self._secret = secret
        self._base_url = (base_url or f"https://{name}.firebaseio.com").rstrip("/")
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client, if one was opened."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def build_url(self, path: str) -> str:
        """Return the ``.json`` endpoint URL for *path* (without query string)."""
        return f"{self._base_url}/{path.strip('/')}.json"

    def build_params(self, options: OptionsLike = None) -> dict[str, str]:
        """Return the query parameters: ``auth`` first, then the options."""
        params = {"auth": self._secret}
        params.update(QueryOptions.coerce(options).to_params())
        return params

    async def send_request(
        self,
        path: str,
        method: Union[HttpMethod, str],
        options: OptionsLike = None,
        body: Optional[str] = None,
    ) -> TransportResponse:
        """Send one request and return its raw status and body.

        Args:
            path: Database path, e.g. ``users/steve``. ``""`` is the root.
            method: :class:`HttpMethod` or ``"Get"`` / ``"Put"``.
            options: Query options (model, mapping, or ``None``).
            body: Serialised JSON request body for writes.

        Returns:
            The :class:`TransportResponse`; non-200 statuses are not raised.

        Raises:
            InvalidUsageError: On an unknown method or invalid options.
            ConnectionError_: On network or timeout errors.
        """
        http_method = HttpMethod.coerce(method)
        url = self.build_url(path)
        params = self.build_params(options)

        get_output().debug(f"{http_method.value} {url}")

        kwargs: dict[str, Any] = {
            "method": http_method.value,
            "url": url,
            "params": params,
            "headers": {"Content-Type": "application/json"},
        }
        if body is not None:
            kwargs["content"] = body

        try:
            response = await self._get_client().request(**kwargs)
        except httpx.TransportError as exc:
            raise ConnectionError_(
                f"{http_method.value} {url} failed: {exc}"
            ) from exc

        get_output().debug(f"{http_method.value} {url} -> {response.status_code}")
        return TransportResponse(status=response.status_code, body=response.text)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            kwargs: dict[str, Any] = {
                "timeout": self._timeout,
                "verify": self._verify_ssl,
            }
            if self._transport is not None:
                kwargs["transport"] = self._transport
            self._client = httpx.AsyncClient(**kwargs)
        return self._client

"""Store controller: database identity, readiness, and the root cache table.

:class:`StoreController` is the single root object of the cache.  On
construction it starts validating the database (a shallow read of the
root) without blocking; every method that talks to the database waits
for that validation first.  A failed validation is terminal -- every
dependent call re-raises the validation error.

Top-level reads are memoized: the first :meth:`StoreController.get` of a
path fetches it once, materializes a :class:`~rtdb_cache.cache.node.CacheNode`
tree, and keeps it for the controller's lifetime.  Staleness is handled
per node by its own TTL, never by evicting table entries.
"""

from __future__ import annotations

import inspect
import json
from typing import Any, Callable, Optional, Union

from rtdb_cache.cache.node import CacheNode
from rtdb_cache.cache.tree import normalize_path
from rtdb_cache.cache.values import CacheValue, Scalar
from rtdb_cache.client.transport import HttpTransport, OptionsLike, Transport, TransportResponse
from rtdb_cache.exceptions import (
    ConnectionError_,
    InvalidUsageError,
    NotFoundError,
    PermissionError_,
    ValidationError,
)
from rtdb_cache.models import DEFAULT_TTL_MS, HttpMethod, QueryOptions, StoreConfig
from rtdb_cache.output import debug, warning
from rtdb_cache.readiness import ReadyBarrier


class StoreController:
    """Client-side cache over one database.

    Args:
        name: Database name, e.g. ``[PROJECT_ID]-default-rtdb``. Whitespace is trimmed.
        secret: Database secret. Whitespace is trimmed.
        ttl: Time-to-live of cached nodes in milliseconds.
        transport: Alternative request transport. When omitted, an
            :class:`~rtdb_cache.client.transport.HttpTransport` is created
            and owned (closed by :meth:`aclose`).
        base_url: Base URL override for the default transport.
        timeout: HTTP timeout in seconds for the default transport.
        verify_ssl: SSL verification for the default transport.

    Example::

        async with StoreController("proj-default-rtdb", secret) as db:
            await db.wait_ready()
            users = await db.get("users")          # SubtreeMap
            steve = users["steve"]
            print(await steve.get())
    """

    def __init__(
        self,
        name: str,
        secret: str,
        ttl: int = DEFAULT_TTL_MS,
        *,
        transport: Optional[Transport] = None,
        base_url: Optional[str] = None,
        timeout: float = 30,
        verify_ssl: bool = True,
    ) -> None:
        self._name = name.strip()
        self._secret = secret.strip()
        self._ttl = ttl
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpTransport(
            self._name,
            self._secret,
            base_url=base_url,
            timeout=timeout,
            verify_ssl=verify_ssl,
        )
        self._root_cache: dict[str, CacheNode] = {}
        self._ready = ReadyBarrier(self._validate)

    @classmethod
    def from_config(
        cls, config: StoreConfig, transport: Optional[Transport] = None
    ) -> StoreController:
        """Build a controller from a resolved :class:`~rtdb_cache.models.StoreConfig`."""
        return cls(
            config.name,
            config.secret,
            config.ttl_ms,
            transport=transport,
            base_url=config.base_url,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        )

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def name(self) -> str:
        return self._name

    @property
    def ttl(self) -> int:
        """Node time-to-live in milliseconds."""
        return self._ttl

    @property
    def ready(self) -> bool:
        """``True`` once validation succeeded."""
        return self._ready.done and not self._ready.failed

    def cached_paths(self) -> list[str]:
        """Top-level paths currently memoized in the root cache table."""
        return list(self._root_cache)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> StoreController:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel a pending validation and close the owned transport."""
        self._ready.cancel()
        if self._owns_transport:
            await self._transport.aclose()

    # ------------------------------------------------------------------ #
    # Readiness
    # ------------------------------------------------------------------ #

    async def wait_ready(self) -> None:
        """Wait until validation succeeded.

        Raises:
            NotFoundError: The database does not exist (HTTP 404).
            PermissionError_: The secret was rejected (HTTP 401).
            ValidationError: Any other non-200 validation answer.
            ConnectionError_: The validation request never reached the database.
        """
        await self._ready.wait()

    async def on_ready(self, callback: Optional[Callable[[], Any]] = None) -> None:
        """Wait for readiness, then invoke *callback* (sync or async) if given."""
        await self.wait_ready()
        if callback is not None:
            result = callback()
            if inspect.isawaitable(result):
                await result

    async def _validate(self) -> None:
        response = await self.send_request("", HttpMethod.GET, QueryOptions(shallow=True))
        if response.ok:
            debug(f"Database \"{self._name}\" validated")
            return

        if response.status == 404:
            raise NotFoundError(f"Database not found: \"{self._name}\"")
        if response.status == 401:
            raise PermissionError_(f"Access denied to database \"{self._name}\"")
        raise ValidationError(
            f"Error validating database \"{self._name}\" (HTTP {response.status}): {response.body}",
            body=response.body,
        )

    # ------------------------------------------------------------------ #
    # Cached reads
    # ------------------------------------------------------------------ #

    async def get(self, path: str) -> Optional[CacheValue]:
        """Return the cached value for top-level *path*, fetching it on first use.

        A cache hit on an object returns the memoized subtree as is; its
        child nodes refresh themselves on their own TTL.  A scalar has no
        children to do that, so a scalar hit goes through the root node's
        :meth:`~rtdb_cache.cache.node.CacheNode.get` and is re-read once
        expired.

        Returns:
            A :class:`~rtdb_cache.cache.values.SubtreeMap` for objects, a
            :class:`~rtdb_cache.cache.values.Scalar` otherwise, or ``None``
            when the read failed (not found, error status, network failure).
        """
        node = await self.node(path)
        if node is None:
            return None
        if isinstance(node.value, Scalar):
            return await node.get()
        return node.value

    async def node(self, path: str) -> Optional[CacheNode]:
        """Return the root :class:`CacheNode` for *path*, fetching it on first use.

        Returns ``None`` (and caches nothing) when the read failed.
        """
        await self.wait_ready()
        key = normalize_path(path)
        cached = self._root_cache.get(key)
        if cached is not None:
            debug(f"Cache hit: '{key}'")
            return cached

        debug(f"Cache miss: '{key}'")
        try:
            response = await self.send_request(key, HttpMethod.GET)
        except ConnectionError_ as exc:
            warning(f"Read of '{key}' failed: {exc}")
            return None
        if not response.ok:
            debug(f"Read of '{key}' returned HTTP {response.status}")
            return None

        try:
            body = response.json()
        except ValueError:
            warning(f"Read of '{key}' returned invalid JSON")
            return None

        # Entries are only ever added; a concurrent miss keeps the first node.
        return self._root_cache.setdefault(key, CacheNode(key, self, body))

    # ------------------------------------------------------------------ #
    # Uncached access
    # ------------------------------------------------------------------ #

    async def fetch(self, path: str, options: OptionsLike = None) -> Any:
        """Read *path* directly, bypassing the cache.

        Returns:
            The parsed JSON, or ``None`` on a non-200 answer or network failure.
        """
        await self.wait_ready()
        key = normalize_path(path)
        try:
            response = await self.send_request(key, HttpMethod.GET, options)
        except ConnectionError_ as exc:
            warning(f"Read of '{key}' failed: {exc}")
            return None
        if not response.ok:
            return None
        return response.json()

    async def put(
        self,
        path: str,
        value: Any,
        options: OptionsLike = None,
    ) -> bool:
        """Write *value* to *path* directly, bypassing (and not updating) the cache.

        Returns:
            ``True`` if the database acknowledged the write.
        """
        await self.wait_ready()
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise InvalidUsageError(f"Value for '{path}' is not JSON-serialisable: {exc}") from exc
        response = await self.send_request(normalize_path(path), HttpMethod.PUT, options, payload)
        return response.ok

    async def send_request(
        self,
        path: str,
        method: Union[HttpMethod, str],
        options: OptionsLike = None,
        body: Optional[str] = None,
    ) -> TransportResponse:
        """Route one request through the transport. Not readiness-gated."""
        return await self._transport.send_request(path, method, options, body)

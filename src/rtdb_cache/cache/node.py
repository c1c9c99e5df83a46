"""TTL-bounded, write-through cache of one database path.

A :class:`CacheNode` is created either

* **eagerly**, pre-seeded with a value from a batch fetch -- it is ready at
  once and fresh for one TTL window; or
* **lazily**, without a value -- it schedules a refresh immediately and
  its readiness barrier tracks that first fetch.

Reads (:meth:`CacheNode.get`) wait for readiness and refresh when the
value has expired.  A refresh that fails (non-200, network error) keeps
the previous value: stale data is preferred to an exception.

Writes (:meth:`CacheNode.set`) are write-through: the ``PUT`` must be
acknowledged before the cached value changes, otherwise
:class:`~rtdb_cache.exceptions.WriteError` is raised and the cache is
left untouched.

Nodes hold only a weak reference to their
:class:`~rtdb_cache.store.StoreController`; the controller owns the nodes.
"""

from __future__ import annotations

import asyncio
import json
import time
import weakref
from typing import TYPE_CHECKING, Any, Optional

from rtdb_cache.cache.tree import last_segment, materialize, normalize_path
from rtdb_cache.cache.values import CacheValue, Scalar, SubtreeMap, to_json
from rtdb_cache.exceptions import ConnectionError_, InvalidUsageError, StoreClosedError, WriteError
from rtdb_cache.models import HttpMethod
from rtdb_cache.output import debug, warning
from rtdb_cache.readiness import ReadyBarrier

if TYPE_CHECKING:
    from rtdb_cache.store import StoreController


_MISSING: Any = object()


def _now() -> float:
    """Current time in milliseconds on a monotonic clock."""
    return time.monotonic() * 1000


class CacheNode:
    """Cached value of one database path.

    Args:
        path: Full database path, e.g. ``users/steve``.
        store: The owning controller (held weakly).
        value: Optional pre-seeded JSON value.  Any value counts, including
            ``None``, ``0``, and ``""``; omit the argument to fetch lazily.

    Example::

        node = CacheNode("users/steve/name", store)
        name = await node.get()            # Scalar("Steve")
        await node.set("Alex")             # PUT, then cache
    """

    def __init__(self, path: str, store: "StoreController", value: Any = _MISSING) -> None:
        self._path = normalize_path(path)
        self._store_ref = weakref.ref(store)
        self._value: CacheValue = Scalar(None)
        self._expires_at: Optional[float] = None
        self._refreshing: Optional[asyncio.Future[bool]] = None
        self._writes = 0

        if value is _MISSING:
            self._ready = ReadyBarrier(self.refresh)
        else:
            self._install(value, store)
            self._ready = ReadyBarrier()
            self._ready.resolve()

    def __repr__(self) -> str:
        return f"CacheNode(path={self._path!r}, value={self._value!r})"

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #

    @property
    def path(self) -> str:
        return self._path

    @property
    def key(self) -> str:
        """Last segment of :attr:`path`."""
        return last_segment(self._path)

    @property
    def value(self) -> CacheValue:
        """The currently cached value, without readiness or staleness checks."""
        return self._value

    @property
    def expires_at(self) -> Optional[float]:
        """Monotonic millisecond timestamp after which the value is stale.

        ``None`` until the first successful fetch or write, so a lazy node
        whose first fetch failed can be told apart from a stored ``null``.
        """
        return self._expires_at

    @property
    def is_stale(self) -> bool:
        return self._expires_at is None or _now() > self._expires_at

    @property
    def ready(self) -> bool:
        return self._ready.done and not self._ready.failed

    def snapshot(self) -> Any:
        """Plain JSON view of the cached value (recurses into children, no I/O)."""
        return to_json(self._value)

    def child(self, key: str) -> Optional[CacheNode]:
        """Return the cached child node *key*, or ``None`` for scalars and unknown keys."""
        if isinstance(self._value, SubtreeMap):
            return self._value.children.get(key)
        return None

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get(self, force_refresh: bool = False) -> CacheValue:
        """Return the cached value, refreshing it first when expired or forced.

        A lazy node whose first fetch failed returns ``Scalar(None)``, which
        looks like a stored JSON ``null``.  Tell the two apart with
        :attr:`expires_at`: it stays ``None`` until a fetch or write succeeds.

        Args:
            force_refresh: Refresh even if the value is still fresh.

        Raises:
            Whatever rejected the node's or the controller's readiness.
        """
        await self._ready.wait()
        if force_refresh or self.is_stale:
            await self.refresh()
        return self._value

    async def refresh(self) -> bool:
        """Re-read the path from the database.

        Concurrent callers share one in-flight request.

        Returns:
            ``True`` if the cached value was replaced, ``False`` if the
            read failed or was overtaken by a write, and the previous value
            was kept.
        """
        if self._refreshing is None or self._refreshing.done():
            self._refreshing = asyncio.ensure_future(self._refresh())
        return await asyncio.shield(self._refreshing)

    async def _refresh(self) -> bool:
        store = self._store()
        await store.wait_ready()
        writes = self._writes

        try:
            response = await store.send_request(self._path, HttpMethod.GET)
        except ConnectionError_ as exc:
            warning(f"Refresh of '{self._path}' failed, keeping cached value: {exc}")
            return False

        if not response.ok:
            debug(f"Refresh of '{self._path}' returned HTTP {response.status}, keeping cached value")
            return False

        try:
            body = response.json()
        except ValueError:
            warning(f"Refresh of '{self._path}' returned invalid JSON, keeping cached value")
            return False

        # A write acknowledged while the GET was in flight is newer than its body.
        if self._writes != writes:
            debug(f"Refresh of '{self._path}' overtaken by a write, discarding response")
            return False

        self._install(body, store)
        debug(f"Refreshed '{self._path}'")
        return True

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #

    async def set(self, value: Any) -> None:
        """Write *value* to the database, then cache it.

        The cached value and its expiry are only updated once the database
        acknowledged the write.

        Raises:
            InvalidUsageError: If *value* is not JSON-serialisable.
            WriteError: If the write was not acknowledged (non-200 or
                network failure).
        """
        await self._ready.wait()
        store = self._store()
        await store.wait_ready()

        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise InvalidUsageError(f"Value for '{self._path}' is not JSON-serialisable: {exc}") from exc

        try:
            response = await store.send_request(self._path, HttpMethod.PUT, None, payload)
        except ConnectionError_ as exc:
            raise WriteError(f"Write to '{self._path}' failed: {exc}") from exc

        if not response.ok:
            raise WriteError(
                f"Write to '{self._path}' failed with HTTP {response.status}",
                status=response.status,
                body=response.body,
            )

        self._writes += 1
        self._install(value, store)
        debug(f"Wrote '{self._path}'")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _install(self, body: Any, store: "StoreController") -> None:
        self._value = materialize(self._path, body, store)
        self._expires_at = _now() + store.ttl

    def _store(self) -> "StoreController":
        store = self._store_ref()
        if store is None:
            raise StoreClosedError(
                f"Store controller for '{self._path}' has been released"
            )
        return store

"""rtdb_cache -- lazy, TTL-bounded client-side cache over a Firebase Realtime Database.

The database is reached only through request/response calls on its REST
surface.  The cache sits between callers and those calls:

* :class:`StoreController` validates the database once (asynchronously),
  then serves top-level paths as trees of cache nodes, memoized for its
  lifetime.
* :class:`CacheNode` caches one path, refreshes it when its TTL expires,
  and writes through to the database before updating itself.

Typical use::

    async with StoreController("proj-default-rtdb", secret, ttl=60_000) as db:
        await db.wait_ready()
        users = await db.get("users")
        name = await users["steve"].child("name").get()

Modules:
    store: :class:`StoreController`.
    cache: :class:`CacheNode` and the tagged :class:`Scalar` / :class:`SubtreeMap` values.
    client: :class:`HttpTransport` on :mod:`httpx`.
    readiness: the one-shot :class:`ReadyBarrier`.
    models: Pydantic request and configuration models.
    config: configuration file, environment, and secret resolution.
    exceptions: exception hierarchy with exit-code mapping.
    output: stderr diagnostics / stdout data.
    app: the ``rtdb-cache`` command line.
"""

__version__ = "0.1.0"

from rtdb_cache.cache import CacheNode, CacheValue, Scalar, SubtreeMap  # noqa: E402
from rtdb_cache.client import HttpTransport, TransportResponse  # noqa: E402
from rtdb_cache.exceptions import (  # noqa: E402
    ConfigError,
    ConnectionError_,
    InvalidUsageError,
    NotFoundError,
    PermissionError_,
    RTDBCacheError,
    StoreClosedError,
    ValidationError,
    WriteError,
)
from rtdb_cache.models import QueryOptions, StoreConfig  # noqa: E402
from rtdb_cache.readiness import ReadyBarrier  # noqa: E402
from rtdb_cache.store import StoreController  # noqa: E402

__all__ = [
    "CacheNode",
    "CacheValue",
    "ConfigError",
    "ConnectionError_",
    "HttpTransport",
    "InvalidUsageError",
    "NotFoundError",
    "PermissionError_",
    "QueryOptions",
    "ReadyBarrier",
    "RTDBCacheError",
    "Scalar",
    "StoreClosedError",
    "StoreConfig",
    "StoreController",
    "SubtreeMap",
    "TransportResponse",
    "ValidationError",
    "WriteError",
]

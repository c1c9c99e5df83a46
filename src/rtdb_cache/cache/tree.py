"""Path helpers and subtree materialization.

:func:`materialize` turns one parsed JSON body into a tagged cache value.
Objects (and arrays, which the database returns for integer-keyed data)
become a :class:`~rtdb_cache.cache.values.SubtreeMap` holding one
pre-seeded :class:`~rtdb_cache.cache.node.CacheNode` per member, recursing
through the whole body, so that no further round trip is needed for data
already present in a batch fetch.  Everything else becomes a
:class:`~rtdb_cache.cache.values.Scalar`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rtdb_cache.cache.values import CacheValue, Scalar, SubtreeMap

if TYPE_CHECKING:
    from rtdb_cache.store import StoreController


def normalize_path(path: str) -> str:
    """Strip surrounding whitespace and slashes: ``"/users/"`` -> ``"users"``."""
    return path.strip().strip("/")


def join_path(parent: str, key: str) -> str:
    """Full path of child *key* under *parent*; the root is ``""``."""
    parent = normalize_path(parent)
    key = normalize_path(str(key))
    return f"{parent}/{key}" if parent else key


def last_segment(path: str) -> str:
    return normalize_path(path).rsplit("/", 1)[-1]


def materialize(path: str, body: Any, store: "StoreController") -> CacheValue:
    """Build the cache value for *body* fetched at *path*.

    Args:
        path: Full database path the body was read from.
        body: Parsed JSON.
        store: Controller the created child nodes route their requests through.

    Returns:
        A :class:`SubtreeMap` of pre-seeded child nodes for objects and
        arrays, a :class:`Scalar` otherwise.
    """
    from rtdb_cache.cache.node import CacheNode  # circular

    if isinstance(body, dict):
        members = body.items()
    elif isinstance(body, list):
        members = ((str(index), item) for index, item in enumerate(body))
    else:
        return Scalar(body)

    return SubtreeMap(
        {
            str(key): CacheNode(join_path(path, str(key)), store, value)
            for key, value in members
        }
    )

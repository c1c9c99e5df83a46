"""Lazily materialized, TTL-bounded cache of the database tree.

:class:`CacheNode` caches one path and keeps it fresh against the
controller's TTL; its value is a tagged :class:`Scalar` or
:class:`SubtreeMap` of child nodes, built by
:func:`~rtdb_cache.cache.tree.materialize`.
"""

from rtdb_cache.cache.node import CacheNode
from rtdb_cache.cache.values import CacheValue, Scalar, SubtreeMap, to_json

__all__ = ["CacheNode", "CacheValue", "Scalar", "SubtreeMap", "to_json"]

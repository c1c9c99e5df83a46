"""Tagged cache values.

A cache node holds exactly one of:

* :class:`Scalar` -- a JSON string, number, boolean, or ``null``;
* :class:`SubtreeMap` -- a mapping of child key to
  :class:`~rtdb_cache.cache.node.CacheNode`, used whenever the database
  returned a JSON object (or array) for the node's path.

Consumers switch on the type rather than inspecting the payload::

    value = await node.get()
    if isinstance(value, SubtreeMap):
        for key, child in value.items():
            ...
    else:
        print(value.value)
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from rtdb_cache.cache.node import CacheNode


JSONScalar = Union[str, int, float, bool, None]


@dataclass(frozen=True)
class Scalar:
    """A leaf value."""

    value: JSONScalar = None


@dataclass(frozen=True, eq=False)
class SubtreeMap(Mapping[str, "CacheNode"]):
    """Child key -> cache node. Iteration order carries no meaning."""

    children: dict[str, "CacheNode"] = field(default_factory=dict)

    def __getitem__(self, key: str) -> "CacheNode":
        return self.children[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubtreeMap):
            return NotImplemented
        return to_json(self) == to_json(other)


CacheValue = Union[Scalar, SubtreeMap]


def to_json(value: CacheValue) -> Any:
    """Return the plain JSON form of *value* from cached data only (no I/O)."""
    if isinstance(value, Scalar):
        return value.value
    return {key: to_json(child.value) for key, child in value.children.items()}

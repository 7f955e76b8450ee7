"""
Separate-chaining hash index.

Used for O(1)-amortized lookup by identifier: listener and track registries,
graph adjacency and the recommendation cache.
"""

from __future__ import annotations
from typing import Any, Dict, Generic, Hashable, Iterator, List, Optional, Tuple, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

DEFAULT_CAPACITY = 16
LOAD_FACTOR = 0.75

_MISSING = object()


class _Node(Generic[K, V]):
    __slots__ = ("key", "value", "next")

    def __init__(self, key: K, value: V, next_node: Optional["_Node[K, V]"] = None):
        self.key = key
        self.value = value
        self.next = next_node


class HashIndex(Generic[K, V]):
    """
    Key -> value store with per-bucket linked chains.

    New entries are prepended to their chain. When ``size / capacity`` reaches
    the load factor the bucket array doubles and every entry is rehashed in one
    pass. ``None`` is a valid key and always lands in bucket 0.

    Not synchronized: guard it externally or keep one instance per owner.
    """

    def __init__(self, initial_capacity: int = DEFAULT_CAPACITY):
        """
        Initialize an empty index.

        Args:
            initial_capacity: Number of buckets to start with (must be positive)
        """
        if initial_capacity <= 0:
            raise ValueError(f"initial_capacity must be positive, got {initial_capacity}")
        self._capacity = initial_capacity
        self._buckets: List[Optional[_Node[K, V]]] = [None] * initial_capacity
        self._size = 0

    def _bucket_index(self, key: K, capacity: Optional[int] = None) -> int:
        if key is None:
            return 0
        return hash(key) % (capacity or self._capacity)

    def _find(self, key: K) -> Optional[_Node[K, V]]:
        node = self._buckets[self._bucket_index(key)]
        while node is not None:
            if node.key == key:
                return node
            node = node.next
        return None

    def put(self, key: K, value: V) -> Optional[V]:
        """
        Insert or update a key.

        Returns:
            The previous value, or None if the key was absent
        """
        node = self._find(key)
        if node is not None:
            previous = node.value
            node.value = value
            return previous

        index = self._bucket_index(key)
        self._buckets[index] = _Node(key, value, self._buckets[index])
        self._size += 1

        if self._size / self._capacity >= LOAD_FACTOR:
            self._resize()
        return None

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        node = self._find(key)
        return node.value if node is not None else default

    def remove(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Remove a key and return its value (``default`` when absent)."""
        index = self._bucket_index(key)
        previous: Optional[_Node[K, V]] = None
        node = self._buckets[index]
        while node is not None:
            if node.key == key:
                if previous is None:
                    self._buckets[index] = node.next
                else:
                    previous.next = node.next
                self._size -= 1
                return node.value
            previous = node
            node = node.next
        return default

    def contains_key(self, key: K) -> bool:
        return self._find(key) is not None

    def contains_value(self, value: Any) -> bool:
        return any(v == value for v in self.values())

    def _nodes(self) -> Iterator[_Node[K, V]]:
        for head in self._buckets:
            node = head
            while node is not None:
                yield node
                node = node.next

    def keys(self) -> List[K]:
        return [node.key for node in self._nodes()]

    def values(self) -> List[V]:
        return [node.value for node in self._nodes()]

    def items(self) -> List[Tuple[K, V]]:
        return [(node.key, node.value) for node in self._nodes()]

    def size(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return self._capacity

    def is_empty(self) -> bool:
        return self._size == 0

    def clear(self):
        """Drop every entry, keeping the current capacity."""
        self._buckets = [None] * self._capacity
        self._size = 0

    def _resize(self):
        new_capacity = self._capacity * 2
        new_buckets: List[Optional[_Node[K, V]]] = [None] * new_capacity
        for node in list(self._nodes()):
            index = self._bucket_index(node.key, new_capacity)
            new_buckets[index] = _Node(node.key, node.value, new_buckets[index])
        self._buckets = new_buckets
        self._capacity = new_capacity

    def distribution_stats(self) -> Dict[str, Any]:
        """Bucket occupancy figures, for debugging chain lengths."""
        empty = 0
        max_chain = 0
        total_chain = 0
        for head in self._buckets:
            if head is None:
                empty += 1
                continue
            length = 0
            node = head
            while node is not None:
                length += 1
                node = node.next
            max_chain = max(max_chain, length)
            total_chain += length

        used = self._capacity - empty
        return {
            "size": self._size,
            "capacity": self._capacity,
            "load_factor": self._size / self._capacity,
            "empty_buckets": empty,
            "max_chain_length": max_chain,
            "avg_chain_length": total_chain / used if used else 0.0,
        }

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: object) -> bool:
        return self.contains_key(key)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[K]:
        return iter(self.keys())

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"HashIndex({{{body}}})"

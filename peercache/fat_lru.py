"""Byte-bounded LRU cache that refuses entries larger than its capacity."""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Callable, Optional, Sized

EvictCallback = Callable[[str, Any], None]


class LRUCache:
    """LRU cache whose size is the sum of key lengths and value lengths.

    Not safe for concurrent use.
    """

    def __init__(self, max_bytes: int, on_evict: Optional[EvictCallback] = None) -> None:
        if max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        self.max_bytes = max_bytes
        self.on_evict = on_evict
        self._nbytes = 0
        self._entries: OrderedDict[str, Sized] = OrderedDict()

    @property
    def nbytes(self) -> int:
        """Bytes currently held."""
        return self._nbytes

    def get(self, key: str) -> Optional[Any]:
        """Return the value for ``key`` and mark it recently used, or None."""
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def remove_oldest(self) -> None:
        """Drop the least recently used entry, if any."""
        if not self._entries:
            return
        key, value = self._entries.popitem(last=False)
        self._nbytes -= len(key) + len(value)
        if self.on_evict is not None:
            self.on_evict(key, value)

    def add(self, key: str, value: Sized) -> None:
        """Insert or update ``key``; entries larger than the capacity are skipped."""
        if len(key) + len(value) > self.max_bytes:
            print(f"Value for key {key} is too large to cache")
            return
        if key in self._entries:
            self._entries.move_to_end(key)
            self._nbytes += len(value) - len(self._entries[key])
            self._entries[key] = value
        else:
            self._entries[key] = value
            self._nbytes += len(key) + len(value)
        while self.max_bytes != 0 and self.max_bytes < self._nbytes:
            self.remove_oldest()

    def __len__(self) -> int:
        return len(self._entries)
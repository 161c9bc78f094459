"""Byte views, a thread-safe cache wrapper and the peer interfaces."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from peercache.fat_lru import LRUCache


@dataclass(frozen=True)
class ByteView:
    """An immutable view of cached bytes."""

    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def __len__(self) -> int:
        return len(self.data)

    def byte_slice(self) -> bytes:
        """Return a copy of the held bytes."""
        return bytes(self.data)

    def __str__(self) -> str:
        return self.data.decode("utf-8", errors="replace")


def _report_eviction(key: str, value: Any) -> None:
    print("onEvict", key)


class Cache:
    """Thread-safe wrapper around an LRU cache of ``ByteView`` values.

    The underlying LRU cache is created on the first insertion.
    """

    def __init__(self, cache_bytes: int) -> None:
        self.cache_bytes = cache_bytes
        self._lock = threading.Lock()
        self._lru: Optional[LRUCache] = None

    def add(self, key: str, value: ByteView) -> None:
        """Store ``value`` under ``key``."""
        with self._lock:
            if self._lru is None:
                self._lru = LRUCache(self.cache_bytes, _report_eviction)
            self._lru.add(key, value)

    def get(self, key: str) -> Optional[ByteView]:
        """Return the cached view for ``key``, or None."""
        with self._lock:
            if self._lru is None:
                return None
            return self._lru.get(key)


class PeerGetter(ABC):
    """A remote node that can fetch a key of a group."""

    @abstractmethod
    def get(self, group: str, key: str) -> bytes:
        """Fetch the value of ``key`` in ``group``; raise on failure."""


class PeerPicker(ABC):
    """Chooses which remote node owns a key."""

    @abstractmethod
    def pick_peer(self, key: str) -> Optional[PeerGetter]:
        """Return the peer owning ``key``, or None if it is served locally."""
"""Consistent hashing ring that maps keys onto a set of nodes."""

from __future__ import annotations

import bisect
import zlib
from typing import Callable, Optional

HashFunc = Callable[[bytes], int]


def _crc32(data: bytes) -> int:
    return zlib.crc32(data) & 0xFFFFFFFF


class HashRing:
    """A ring of virtual nodes; each real node gets ``replicas`` points on it."""

    def __init__(self, replicas: int, hash_fn: Optional[HashFunc] = None) -> None:
        self.replicas = replicas
        self._hash: HashFunc = hash_fn if hash_fn is not None else _crc32
        self._points: list[int] = []
        self._owners: dict[int, str] = {}

    def add(self, *args: str) -> None:
        """Add nodes to the ring."""
        for node in args:
            for replica in range(self.replicas):
                point = int(self._hash(f"{replica}{node}".encode()))
                self._points.append(point)
                self._owners[point] = node
        self._points.sort()

    def get(self, key: str) -> str:
        """Return the node closest to ``key``, or an empty string for an empty ring."""
        if not self._points:
            return ""
        point = int(self._hash(key.encode()))
        idx = bisect.bisect_left(self._points, point)
        return self._owners[self._points[idx % len(self._points)]]
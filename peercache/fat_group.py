"""Named cache groups that load missing keys from peers or a local getter."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from peercache.fat_cache import ByteView, Cache, PeerGetter, PeerPicker
from peercache.singleflight import CallGroup

Getter = Callable[[str], bytes]


class CacheLoadError(Exception):
    """Raised when a value cannot be loaded or cached."""


_registry_lock = threading.Lock()
_groups: dict[str, "Group"] = {}


class Group:
    """A cache namespace backed by a getter and, optionally, remote peers."""

    def __init__(self, name: str, cache_bytes: int, getter: Getter) -> None:
        self.name = name
        self.main_cache = Cache(cache_bytes)
        self.getter = getter
        self.peers: Optional[PeerPicker] = None
        self._loader = CallGroup()

    def get(self, key: str) -> ByteView:
        """Return the value for ``key``, loading and caching it on a miss."""
        cached = self.main_cache.get(key)
        if cached is not None:
            print("Cache hit")
            return cached
        print("Cache miss - loading data")

        view = self._load(key)
        if len(key) + len(view) > self.main_cache.cache_bytes:
            raise CacheLoadError(f"value for key {key} is too large to cache")
        self._populate_cache(key, view.byte_slice())
        return ByteView(view.byte_slice())

    def register_peer_picker(self, picker: PeerPicker) -> None:
        """Use ``picker`` to locate remote owners of keys."""
        self.peers = picker

    def _load(self, key: str) -> ByteView:
        def fetch() -> ByteView:
            if self.peers is not None:
                peer = self.peers.pick_peer(key)
                if peer is not None:
                    try:
                        return self._get_from_peer(peer, key)
                    except CacheLoadError:
                        pass
            return self._get_locally(key)

        try:
            return self._loader.do(key, fetch)
        except Exception as err:
            raise CacheLoadError(f"failed to load data for key {key}: {err}") from err

    def _get_from_peer(self, peer: PeerGetter, key: str) -> ByteView:
        try:
            data = peer.get(self.name, key)
        except Exception as err:
            print("Failed to get from peer:", err)
            raise CacheLoadError(f"no peer found for key {key}") from err
        return ByteView(data)

    def _get_locally(self, key: str) -> ByteView:
        try:
            data = self.getter(key)
        except Exception as err:
            raise CacheLoadError(f"no locally found for key {key}") from err
        return ByteView(data)

    def _populate_cache(self, key: str, data: bytes) -> None:
        self.main_cache.add(key, ByteView(data))


def new_group(name: str, cache_bytes: int, getter: Getter) -> Group:
    """Create a group and register it under ``name``, replacing any previous one."""
    group = Group(name, cache_bytes, getter)
    with _registry_lock:
        _groups[name] = group
    return group


def get_group(name: str) -> Optional[Group]:
    """Return the group registered under ``name``, or None."""
    with _registry_lock:
        return _groups.get(name)
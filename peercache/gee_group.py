"""Named cache groups that load missing keys from peers or a local getter."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from peercache.gee_cache import ByteView, Cache, PeerGetter, PeerPicker
from peercache.singleflight import CallGroup

Getter = Callable[[str], bytes]

log = logging.getLogger(__name__)

_registry_lock = threading.RLock()
_groups: dict[str, "Group"] = {}


class Group:
    """A cache namespace backed by a getter and, optionally, remote peers."""

    def __init__(self, name: str, cache_bytes: int, getter: Getter) -> None:
        if getter is None:
            raise ValueError("nil Getter")
        self.name = name
        self.getter = getter
        self.main_cache = Cache(cache_bytes)
        self.peers: Optional[PeerPicker] = None
        self._loader = CallGroup()

    def register_peers(self, peers: PeerPicker) -> None:
        """Register the picker used to choose remote peers; allowed once."""
        if self.peers is not None:
            raise RuntimeError("RegisterPeerPicker called more than once")
        self.peers = peers

    def get(self, key: str) -> ByteView:
        """Return the value for ``key``, loading it on a cache miss."""
        if key == "":
            raise ValueError("key is required")
        cached = self.main_cache.get(key)
        if cached is not None:
            log.info("[GeeCache] hit")
            return cached
        return self._load(key)

    def _load(self, key: str) -> ByteView:
        # Each key is fetched once regardless of the number of concurrent callers.
        def fetch() -> ByteView:
            if self.peers is not None:
                peer = self.peers.pick_peer(key)
                if peer is not None:
                    try:
                        return self._get_from_peer(peer, key)
                    except Exception as err:
                        log.info("[GeeCache] Failed to get from peer %s", err)
            return self._get_locally(key)

        return self._loader.do(key, fetch)

    def _get_from_peer(self, peer: PeerGetter, key: str) -> ByteView:
        return ByteView(peer.get(self.name, key))

    def _get_locally(self, key: str) -> ByteView:
        value = ByteView(bytes(self.getter(key)))
        self._populate_cache(key, value)
        return value

    def _populate_cache(self, key: str, value: ByteView) -> None:
        self.main_cache.add(key, value)


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
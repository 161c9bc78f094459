"""Distributed byte cache with LRU eviction, consistent hashing, request coalescing and HTTP peers, plus a TCP chat server."""

__version__ = "0.1.0"
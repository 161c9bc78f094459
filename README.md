# peercache

A small distributed byte cache and a line-based TCP chat server, written
with nothing but the Python standard library.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## What is in the package

The cache is built from pieces that can also be used on their own:

- `peercache.consistenthash.HashRing(replicas, hash_fn)`: a consistent-hash
  ring. `add(*nodes)` places `replicas` virtual points per node on the ring;
  `get(key)` returns the owning node, or `""` when the ring is empty. When
  `hash_fn` is `None`, CRC-32 is used.
- `peercache.singleflight.CallGroup`: `do(key, fn)` runs `fn` once for all
  concurrent callers asking for the same key; they all get its result, or
  its exception.
- `peercache.fat_lru.LRUCache(max_bytes, on_evict)` and
  `peercache.gee_lru.LRUCache(max_bytes, on_evicted)`: LRU caches bounded by
  bytes, where an entry counts as the length of its key plus the length of
  its value. Both offer `add`, `get` (returns `None` on a miss),
  `remove_oldest`, `len()` and an `nbytes` property.
  - `fat_lru` requires a positive `max_bytes` (`ValueError` otherwise) and
    skips, with a printed notice, any entry larger than the whole cache.
  - `gee_lru` treats `max_bytes == 0` as unbounded.
- Cache wrappers `peercache.fat_cache` and `peercache.gee_cache`: a frozen
  `ByteView` (`len(view)`, `str(view)`, `view.byte_slice()` for a copy), a
  thread-safe `Cache(cache_bytes)` over the matching LRU cache, and the
  abstract `PeerPicker` (`pick_peer(key)`) and `PeerGetter`
  (`get(group, key)`).
- Cache groups `peercache.fat_group` and `peercache.gee_group`: named
  namespaces created with `new_group(name, cache_bytes, getter)` and looked
  up with `get_group(name)` (which returns `None` for an unknown name). A
  `getter` is any callable taking a key and returning bytes. `Group.get(key)`
  answers from the local cache, otherwise from the peer chosen by the
  registered picker, otherwise from the getter.
  - `fat_group.Group`: `register_peer_picker(picker)`; every load failure,
    and any value too large for the cache, raises `CacheLoadError`.
  - `gee_group.Group`: `register_peers(peers)` may be called once
    (`RuntimeError` on a second call); an empty key raises `ValueError`, and
    an exception from the getter propagates unchanged. A failing peer is
    logged and the getter is used instead.
- HTTP peers `peercache.fat_http` and `peercache.gee_http`: `HTTPPool` is a
  WSGI application serving `<base path><group>/<key>` and a peer picker at
  the same time; `HTTPGetter` fetches a value from a remote node.
  - `fat_http`: base path `/_fatcache/`, 100 replicas per peer.
    `HTTPPool.set(*addrs)` adds peers given as `host:port`. A path outside
    the base path gets 400, an unknown group 404, a load failure 500.
  - `gee_http`: base path `/_geecache/`, 50 replicas per peer.
    `HTTPPool.set(*urls)` replaces the peers, given as base URLs such as
    `http://10.0.0.2:8008`. A request outside the base path raises
    `ValueError`; `HTTPPool.log(fmt, *args)` logs tagged with the node's
    address.

## Examples

A consistent-hash ring:

```python
import zlib

from peercache.consistenthash import HashRing

ring = HashRing(50, zlib.crc32)
ring.add("10.0.0.1:8001", "10.0.0.2:8001", "10.0.0.3:8001")
owner = ring.get("user:42")   # one of the three addresses
```

An LRU cache bounded by bytes, with an eviction callback:

```python
from peercache.gee_lru import LRUCache

evicted = []
cache = LRUCache(10, lambda key, value: evicted.append(key))
cache.add("k1", "k1")
cache.add("k2", "k2")
cache.add("k3", "k3")
cache.add("k4", "k4")
# evicted == ["k1", "k2"], len(cache) == 2
```

A cache group:

```python
from peercache.gee_group import new_group

group = new_group("scores", 2 << 10, lambda key: f"score of {key}".encode())
view = group.get("Tom")
print(str(view))   # score of Tom
```

Serving groups from any WSGI server:

```python
from wsgiref.simple_server import make_server

from peercache.gee_http import HTTPPool

pool = HTTPPool("http://localhost:8001")
pool.set("http://localhost:8001", "http://localhost:8002")
make_server("localhost", 8001, pool).serve_forever()
```

## Commands

`peercache-http` starts a cache node with a group named `test` (30 bytes of
cache) whose values are `Value for <key>`, served under
`/_fatcache/test/<key>`:

```
peercache-http --addr localhost:9000
```

`--addr` defaults to `localhost:9000`.

`peercache-chat` starts the chat server:

```
peercache-chat --ip 127.0.0.1 --port 8888
```

Those are the defaults. Connect with any line-oriented TCP client. Every
line you send is broadcast to everyone online as `[<name>]:<line>`, and
arrivals and departures are announced the same way, except for two
commands:

- `who` lists the users currently online;
- `rename|<new name>` changes your name, unless someone already uses it.

A connection that stays silent for ten seconds is disconnected.

## What it does not do

- The `peercache-http` node is not given any peers, so it answers every key
  itself; a cluster has to be assembled in code with `HTTPPool.set`.
- There is no command for the `gee_http` node; it is used as a WSGI
  application from code.
- Cached values live in memory only. There is no persistence, no expiry and
  no way to delete or overwrite a key through a group or over HTTP.
- The chat server has no authentication, private messages or history.
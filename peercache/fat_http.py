"""HTTP transport between cache nodes and the node's command entry point."""

from __future__ import annotations

import argparse
import logging
import threading
import urllib.error
import urllib.parse
import urllib.request
from http import HTTPStatus
from typing import Callable, Iterable, Optional
from wsgiref.simple_server import make_server

from peercache.consistenthash import HashRing
from peercache.fat_cache import PeerGetter, PeerPicker
from peercache.fat_group import CacheLoadError, get_group, new_group

DEFAULT_BASE_PATH = "/_fatcache/"
DEFAULT_REPLICAS = 100
DEFAULT_ADDR = "localhost:9000"

log = logging.getLogger(__name__)


class HTTPGetter(PeerGetter):
    """Fetches values from a peer node over HTTP."""

    def __init__(self, base: str) -> None:
        self.base = base

    def get(self, group: str, key: str) -> bytes:
        path = urllib.parse.quote(f"{DEFAULT_BASE_PATH}{group}/{key}")
        url = f"http://{self.base}{path}"
        print("url:", url)
        try:
            with urllib.request.urlopen(url) as resp:
                if resp.status != HTTPStatus.OK:
                    raise CacheLoadError(f"server returned: {resp.status} {resp.reason}")
                body = resp.read()
        except urllib.error.HTTPError as err:
            raise CacheLoadError(f"server returned: {err.code} {err.reason}") from err
        print("httpGetter body:", url)
        return body


def _status_line(status: HTTPStatus) -> str:
    return f"{status.value} {status.phrase}"


class HTTPPool(PeerPicker):
    """A WSGI application serving cache groups and picking peers by key."""

    def __init__(self, self_addr: str) -> None:
        self.self_addr = self_addr
        self.base_path = DEFAULT_BASE_PATH
        self._lock = threading.Lock()
        self._ring = HashRing(DEFAULT_REPLICAS, None)
        self._getters: dict[str, HTTPGetter] = {}

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        raw_path = environ.get("PATH_INFO", "")
        path = raw_path.encode("latin-1").decode("utf-8", errors="replace")

        if not path.startswith(self.base_path):
            return self._error(start_response, "unexpected path", HTTPStatus.BAD_REQUEST)

        parts = path[len(self.base_path):].split("/", 1)
        if len(parts) != 2:
            return self._error(start_response, "bad request", HTTPStatus.BAD_REQUEST)
        group_name, key = parts

        group = get_group(group_name)
        if group is None:
            return self._error(
                start_response, "no such group: " + group_name, HTTPStatus.NOT_FOUND
            )

        try:
            view = group.get(key)
        except Exception as err:
            return self._error(start_response, str(err), HTTPStatus.INTERNAL_SERVER_ERROR)

        body = view.byte_slice()
        start_response(
            _status_line(HTTPStatus.OK),
            [
                ("Content-Type", "application/octet-stream"),
                ("Content-Length", str(len(body))),
            ],
        )
        return [body]

    @staticmethod
    def _error(start_response: Callable, message: str, status: HTTPStatus) -> list[bytes]:
        body = (message + "\n").encode("utf-8")
        start_response(
            _status_line(status),
            [
                ("Content-Type", "text/plain; charset=utf-8"),
                ("X-Content-Type-Options", "nosniff"),
                ("Content-Length", str(len(body))),
            ],
        )
        return [body]

    def set(self, *args: str) -> None:
        """Add peers, given as host:port addresses, to the pool."""
        with self._lock:
            self._ring.add(*args)
            for peer in args:
                self._getters[peer] = HTTPGetter(peer)

    def pick_peer(self, key: str) -> Optional[PeerGetter]:
        """Return the getter for the peer owning ``key``, or None if it is this node."""
        with self._lock:
            peer = self._ring.get(key)
            if peer == self.self_addr:
                return None
            getter = self._getters.get(peer)
        if getter is not None:
            print("Pick peer", peer)
        return getter


def main(argv: Optional[list[str]] = None) -> int:
    """Serve a demo cache group over HTTP."""
    parser = argparse.ArgumentParser(description="Run a cache node.")
    parser.add_argument("--addr", default=DEFAULT_ADDR, help="host:port to listen on")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")

    def load(key: str) -> bytes:
        log.info("Loading data for key: %s", key)
        return ("Value for " + key).encode()

    new_group("test", 30, load)
    pool = HTTPPool(args.addr)

    host, _, port = args.addr.rpartition(":")
    with make_server(host, int(port), pool) as server:
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
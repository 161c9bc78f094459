"""HTTP transport between cache nodes, with consistent-hash peer selection."""

from __future__ import annotations

import logging
import threading
import urllib.error
import urllib.parse
import urllib.request
from http import HTTPStatus
from typing import Callable, Iterable, Optional

from peercache.consistenthash import HashRing
from peercache.gee_cache import PeerGetter, PeerPicker
from peercache.gee_group import get_group

DEFAULT_BASE_PATH = "/_geecache/"
DEFAULT_REPLICAS = 50

log = logging.getLogger(__name__)


class HTTPGetter(PeerGetter):
    """Fetches values from a peer whose base URL ends with the base path."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    def get(self, group: str, key: str) -> bytes:
        url = (
            f"{self.base_url}"
            f"{urllib.parse.quote_plus(group, safe='')}/"
            f"{urllib.parse.quote_plus(key, safe='')}"
        )
        try:
            with urllib.request.urlopen(url) as resp:
                if resp.status != HTTPStatus.OK:
                    raise RuntimeError(f"server returned: {resp.status} {resp.reason}")
                try:
                    return resp.read()
                except OSError as err:
                    raise RuntimeError(f"reading response body: {err}") from err
        except urllib.error.HTTPError as err:
            raise RuntimeError(f"server returned: {err.code} {err.reason}") from err


def _status_line(status: HTTPStatus) -> str:
    return f"{status.value} {status.phrase}"


class HTTPPool(PeerPicker):
    """A WSGI application serving cache groups and picking peers by key."""

    def __init__(self, self_addr: str) -> None:
        self.self_addr = self_addr
        self.base_path = DEFAULT_BASE_PATH
        self._lock = threading.Lock()
        self._ring: Optional[HashRing] = None
        self._getters: dict[str, HTTPGetter] = {}

    def log(self, fmt: str, *args: object) -> None:
        """Log a message tagged with this server's address."""
        message = fmt % args if args else fmt
        log.info("[Server %s] %s", self.self_addr, message)

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        raw_path = environ.get("PATH_INFO", "")
        path = raw_path.encode("latin-1").decode("utf-8", errors="replace")
        if not path.startswith(self.base_path):
            raise ValueError("HTTPPool serving unexpected path: " + path)
        self.log("%s %s", environ.get("REQUEST_METHOD", "GET"), path)

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
        """Replace the pool's peers with the given base URLs."""
        with self._lock:
            ring = HashRing(DEFAULT_REPLICAS, None)
            ring.add(*args)
            self._ring = ring
            self._getters = {peer: HTTPGetter(peer + self.base_path) for peer in args}

    def pick_peer(self, key: str) -> Optional[PeerGetter]:
        """Return the getter for the peer owning ``key``, or None if it is this node."""
        with self._lock:
            if self._ring is None:
                return None
            peer = self._ring.get(key)
            if peer == "" or peer == self.self_addr:
                return None
            self.log("Pick peer %s", peer)
            return self._getters[peer]
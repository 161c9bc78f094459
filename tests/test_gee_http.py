import logging
import threading
from wsgiref.simple_server import WSGIRequestHandler, make_server

import pytest

from peercache.gee_group import new_group
from peercache.gee_http import DEFAULT_BASE_PATH, HTTPGetter, HTTPPool


def _loader(key):
    if key == "missing":
        raise LookupError("missing not exist")
    return ("Value for " + key).encode()


def _call(pool, path):
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(pool({"PATH_INFO": path, "REQUEST_METHOD": "GET"}, start_response))
    return captured["status"], captured["headers"], body


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format, *args):
        pass


@pytest.fixture
def server():
    new_group("gee-http-remote", 1024, _loader)
    pool = HTTPPool("http://127.0.0.1")
    httpd = make_server("127.0.0.1", 0, pool, handler_class=_QuietHandler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{httpd.server_port}"
    finally:
        httpd.shutdown()
        httpd.server_close()
        thread.join()


def test_serves_under_default_base_path():
    new_group("gee-http-base", 1024, _loader)
    status, _, body = _call(HTTPPool("self"), DEFAULT_BASE_PATH + "gee-http-base/x")
    assert status.startswith("200")
    assert body == b"Value for x"


def test_serves_value():
    new_group("gee-http-ok", 1024, _loader)
    status, headers, body = _call(HTTPPool("self"), "/_geecache/gee-http-ok/myKey")
    assert status.startswith("200")
    assert headers["Content-Type"] == "application/octet-stream"
    assert body == b"Value for myKey"


def test_unexpected_path_raises():
    with pytest.raises(ValueError, match="unexpected path"):
        _call(HTTPPool("self"), "/other/x")


def test_missing_key_segment_is_bad_request():
    status, _, body = _call(HTTPPool("self"), "/_geecache/onlygroup")
    assert status.startswith("400")
    assert body == b"bad request\n"


def test_unknown_group_is_not_found():
    status, _, body = _call(HTTPPool("self"), "/_geecache/gee-http-nogroup/k")
    assert status.startswith("404")
    assert body == b"no such group: gee-http-nogroup\n"


def test_getter_error_is_internal_error():
    new_group("gee-http-err", 1024, _loader)
    status, _, body = _call(HTTPPool("self"), "/_geecache/gee-http-err/missing")
    assert status.startswith("500")
    assert body == b"missing not exist\n"


def test_empty_key_is_internal_error():
    new_group("gee-http-emptykey", 1024, _loader)
    status, _, body = _call(HTTPPool("self"), "/_geecache/gee-http-emptykey/")
    assert status.startswith("500")
    assert body == b"key is required\n"


def test_pick_peer_before_set_is_none():
    assert HTTPPool("http://a").pick_peer("k") is None


def test_pick_peer_never_returns_self():
    pool = HTTPPool("http://a")
    pool.set("http://a")
    assert all(pool.pick_peer(f"key{i}") is None for i in range(50))


def test_pick_peer_returns_getter_for_other_node():
    pool = HTTPPool("http://a")
    pool.set("http://b")
    getters = [pool.pick_peer(f"key{i}") for i in range(20)]
    assert all(isinstance(g, HTTPGetter) for g in getters)
    assert {g.base_url for g in getters} == {"http://b/_geecache/"}


def test_set_replaces_previous_peers():
    pool = HTTPPool("http://a")
    pool.set("http://b")
    pool.set("http://a")
    assert all(pool.pick_peer(f"key{i}") is None for i in range(20))


def test_log_prefixes_server_address(caplog):
    pool = HTTPPool("http://a")
    with caplog.at_level(logging.INFO, logger="peercache.gee_http"):
        pool.log("%s %s", "GET", "/x")
    assert "[Server http://a] GET /x" in caplog.messages


def test_http_getter_round_trip(server):
    getter = HTTPGetter(server + DEFAULT_BASE_PATH)
    assert getter.get("gee-http-remote", "hello") == b"Value for hello"


def test_http_getter_reports_server_error(server):
    getter = HTTPGetter(server + DEFAULT_BASE_PATH)
    with pytest.raises(RuntimeError, match="server returned: 500"):
        getter.get("gee-http-remote", "missing")


def test_http_getter_reports_unknown_group(server):
    getter = HTTPGetter(server + DEFAULT_BASE_PATH)
    with pytest.raises(RuntimeError, match="server returned: 404"):
        getter.get("gee-http-absent", "k")
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from peercache.singleflight import CallGroup


def test_returns_function_value():
    group = CallGroup()
    assert group.do("k", lambda: "result") == "result"


def test_sequential_calls_run_each_time():
    group = CallGroup()
    calls = []

    def fn():
        calls.append(1)
        return len(calls)

    assert group.do("k", fn) == 1
    assert group.do("k", fn) == 2
    assert len(calls) == 2


def test_exception_propagates_and_key_is_released():
    group = CallGroup()

    def boom():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        group.do("k", boom)
    assert group.do("k", lambda: "ok") == "ok"


def test_concurrent_callers_share_one_execution():
    group = CallGroup()
    entered = threading.Event()
    release = threading.Event()
    count = []

    def slow():
        count.append(1)
        entered.set()
        release.wait(5)
        return "shared"

    with ThreadPoolExecutor(max_workers=9) as pool:
        first = pool.submit(group.do, "same", slow)
        assert entered.wait(5)
        others = [pool.submit(group.do, "same", slow) for _ in range(8)]
        time.sleep(0.3)
        release.set()
        results = [f.result(timeout=5) for f in [first, *others]]

    assert results == ["shared"] * 9
    assert len(count) == 1


def test_concurrent_callers_share_exception():
    group = CallGroup()
    entered = threading.Event()
    release = threading.Event()
    count = []

    def failing():
        count.append(1)
        entered.set()
        release.wait(5)
        raise ValueError("bad")

    with ThreadPoolExecutor(max_workers=2) as pool:
        first = pool.submit(group.do, "k", failing)
        assert entered.wait(5)
        second = pool.submit(group.do, "k", failing)
        time.sleep(0.3)
        release.set()
        with pytest.raises(ValueError, match="bad"):
            first.result(timeout=5)
        with pytest.raises(ValueError, match="bad"):
            second.result(timeout=5)

    assert len(count) == 1


def test_different_keys_are_independent():
    group = CallGroup()
    assert group.do("a", lambda: "A") == "A"
    assert group.do("b", lambda: "B") == "B"
"""Collapse concurrent calls for the same key into a single execution."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional


class _Call:
    __slots__ = ("done", "value", "error")

    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: Any = None
        self.error: Optional[BaseException] = None


class CallGroup:
    """Runs a function at most once at a time per key; concurrent callers share the result."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: dict[str, _Call] = {}

    def do(self, key: str, fn: Callable[[], Any]) -> Any:
        """Run ``fn`` for ``key`` unless a call for it is already in flight.

        Callers that join an in-flight call get its value, or its exception.
        """
        with self._lock:
            call = self._calls.get(key)
            if call is not None:
                owner = False
            else:
                call = _Call()
                self._calls[key] = call
                owner = True

        if not owner:
            call.done.wait()
        else:
            try:
                call.value = fn()
            except BaseException as exc:
                call.error = exc
            finally:
                call.done.set()
                with self._lock:
                    self._calls.pop(key, None)

        if call.error is not None:
            raise call.error
        return call.value
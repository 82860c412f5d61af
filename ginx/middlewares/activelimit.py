"""Middlewares capping the number of requests being handled at the same time."""

from __future__ import annotations

import threading
from http import HTTPStatus
from typing import Any, Callable, Protocol

from ginx.context import Context, HandlerFunc

LogFunc = Callable[..., None]


class LocalActiveLimit:
    """Caps in-flight requests within this process."""

    def __init__(self, max_active: int) -> None:
        self._max_active = max_active
        self._count_active = 0
        self._lock = threading.Lock()

    def _enter(self) -> int:
        with self._lock:
            self._count_active += 1
            return self._count_active

    def _leave(self) -> None:
        with self._lock:
            self._count_active -= 1

    def build(self) -> HandlerFunc:
        def middleware(ctx: Context) -> None:
            current = self._enter()
            try:
                if current <= self._max_active:
                    ctx.next()
                else:
                    ctx.abort_with_status(HTTPStatus.TOO_MANY_REQUESTS)
            finally:
                self._leave()

        return middleware


class CounterClient(Protocol):
    """The subset of a Redis client used to count active requests."""

    def incr(self, name: str) -> int: ...

    def decr(self, name: str) -> int: ...


def _default_log(msg: Any, *args: Any) -> None:
    print(f"{msg}  details: {list(args)}")


class RedisActiveLimit:
    """Caps in-flight requests across processes with a counter kept in Redis."""

    def __init__(self, cmd: CounterClient, max_active: int, key: str) -> None:
        self._cmd = cmd
        self._max_active = max_active
        self._key = key
        self._log_fn: LogFunc = _default_log

    def set_log_func(self, fn: LogFunc) -> RedisActiveLimit:
        self._log_fn = fn
        return self

    def build(self) -> HandlerFunc:
        def middleware(ctx: Context) -> None:
            try:
                current = self._cmd.incr(self._key)
            except Exception as exc:
                # fail closed when the counter cannot be updated
                self._log_fn("redis incr", exc)
                ctx.abort_with_status(HTTPStatus.INTERNAL_SERVER_ERROR)
                return
            try:
                if current <= self._max_active:
                    ctx.next()
                else:
                    self._log_fn("web server", "rate limited")
                    ctx.abort_with_status(HTTPStatus.TOO_MANY_REQUESTS)
            finally:
                try:
                    self._cmd.decr(self._key)
                except Exception as exc:
                    self._log_fn("redis decr", exc)

        return middleware
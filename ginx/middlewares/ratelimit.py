"""Middleware rejecting requests once a limiter says the caller is over its rate."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from http import HTTPStatus
from typing import Any, Callable

from ginx.context import Context, HandlerFunc

_log = logging.getLogger(__name__)

KeyGenFunc = Callable[[Context], str]
LogFunc = Callable[..., None]


class Limiter(ABC):
    """Decides whether the object identified by a key is being rate limited."""

    @abstractmethod
    def limit(self, ctx: Context, key: str) -> bool:
        """Return True when the request must be limited; raise if the limiter fails."""


def _ip_key(ctx: Context) -> str:
    return "ip-limiter:" + ctx.client_ip()


def _default_log(msg: Any, *args: Any) -> None:
    _log.error(" ".join(str(part) for part in (msg, *args)))


class Builder:
    """Builds the rate limiting middleware.

    Keys default to the client IP; errors are logged through the logging module.
    """

    def __init__(self, limiter: Limiter | None) -> None:
        self._limiter = limiter
        self._gen_key_fn: KeyGenFunc = _ip_key
        self._log_fn: LogFunc = _default_log

    def set_key_gen_func(self, fn: KeyGenFunc) -> Builder:
        self._gen_key_fn = fn
        return self

    def set_log_func(self, fn: LogFunc) -> Builder:
        self._log_fn = fn
        return self

    def build(self) -> HandlerFunc:
        def middleware(ctx: Context) -> None:
            try:
                limited = self._limit(ctx)
            except Exception as exc:
                self._log_fn(exc)
                ctx.abort_with_status(HTTPStatus.INTERNAL_SERVER_ERROR)
                return
            if limited:
                ctx.abort_with_status(HTTPStatus.TOO_MANY_REQUESTS)
                return
            ctx.next()

        return middleware

    def _limit(self, ctx: Context) -> bool:
        if self._limiter is None:
            raise RuntimeError("no limiter configured")
        return self._limiter.limit(ctx, self._gen_key_fn(ctx))
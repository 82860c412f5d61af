"""Middleware recording an access log entry for each request."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable

from ginx.context import Context, HandlerFunc, Response, ResponseWriter


@dataclass
class AccessLog:
    """One request as seen by the access log."""

    method: str = ""
    url: str = ""
    req_body: str = ""
    resp_body: str = ""
    duration: str = ""
    status: int = 0


LoggerFunc = Callable[[Context, AccessLog], None]


def _format_duration(seconds: float) -> str:
    if seconds < 1e-6:
        return f"{seconds * 1e9:.0f}ns"
    if seconds < 1e-3:
        return f"{seconds * 1e6:g}µs"
    if seconds < 1:
        return f"{seconds * 1e3:g}ms"
    return f"{seconds:g}s"


def _truncate(data: bytes | str, max_length: int):
    return data[:max_length] if len(data) >= max_length else data


class _RecordingWriter:
    """Writer that records status and body into the access log, then passes them on."""

    def __init__(self, inner: ResponseWriter, access_log: AccessLog, max_length: int) -> None:
        self._inner = inner
        self._log = access_log
        self._max_length = max_length

    @property
    def response(self) -> Response:
        return self._inner.response

    @property
    def status(self) -> int:
        return self._inner.status

    @property
    def headers(self) -> dict[str, str]:
        return self._inner.headers

    @property
    def written(self) -> bool:
        return self._inner.written

    def write_header(self, code: int) -> None:
        self._log.status = code
        self._inner.write_header(code)

    def write(self, data: bytes) -> int:
        chunk = bytes(data)
        if chunk:
            chunk = _truncate(chunk, self._max_length)
            self._log.resp_body = chunk.decode(errors="replace")
        return self._inner.write(chunk)


class Builder:
    """Configures the access log middleware; bodies are not logged by default."""

    def __init__(self, logger_func: LoggerFunc) -> None:
        self._logger_func = logger_func
        self._allow_req_body = False
        self._allow_resp_body = False
        self._max_length = 1024

    def allow_req_body(self) -> Builder:
        self._allow_req_body = True
        return self

    def allow_resp_body(self) -> Builder:
        self._allow_resp_body = True
        return self

    def max_length(self, max_length: int) -> Builder:
        """Longest URL and body text kept in a log entry."""
        self._max_length = max_length
        return self

    def build(self) -> HandlerFunc:
        def middleware(ctx: Context) -> None:
            start = time.perf_counter()
            max_length = self._max_length
            access_log = AccessLog(
                method=ctx.request.method,
                url=_truncate(ctx.request.url, max_length),
            )
            if self._allow_req_body:
                body = _truncate(ctx.raw_data(), max_length)
                access_log.req_body = body.decode(errors="replace")
            if self._allow_resp_body:
                ctx.writer = _RecordingWriter(ctx.writer, access_log, max_length)
            try:
                ctx.next()
            finally:
                access_log.duration = _format_duration(time.perf_counter() - start)
                self._logger_func(ctx, access_log)

        return middleware
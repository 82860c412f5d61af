"""Request context, response writer and a small routing engine."""

from __future__ import annotations

import dataclasses
import ipaddress
import json
from dataclasses import dataclass, field
from http.cookies import CookieError, SimpleCookie
from typing import Any, Callable, Iterable
from urllib.parse import parse_qs, urlsplit

HandlerFunc = Callable[["Context"], None]

_ABORT_INDEX = 1 << 62
_DEFAULT_REMOTE_IP_HEADERS = ("X-Forwarded-For", "X-Real-IP")
_NOT_FOUND_BODY = b"404 page not found"


def _lookup_header(headers: dict[str, str], name: str) -> str:
    wanted = name.lower()
    return next((value for key, value in headers.items() if key.lower() == wanted), "")


def _is_ip(text: str) -> bool:
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def _split_host(remote_addr: str) -> str:
    host, sep, _port = remote_addr.rpartition(":")
    if not sep or not host:
        return ""
    if host.startswith("[") and host.endswith("]"):
        return host[1:-1]
    return "" if ":" in host else host


def _json_default(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if isinstance(obj, (bytes, bytearray)):
        return obj.decode()
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")


@dataclass
class AnyValue:
    """A value paired with the error that happened while fetching it."""

    val: Any = None
    err: BaseException | None = None

    def string(self) -> str:
        """Return the value as a string, raising the stored error if any."""
        if self.err is not None:
            raise self.err
        if not isinstance(self.val, str):
            raise TypeError(f"expected str, got {type(self.val).__name__}")
        return self.val


@dataclass
class Request:
    """An incoming HTTP request."""

    method: str = "GET"
    url: str = "/"
    headers: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    remote_addr: str = ""

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        raw_cookie = _lookup_header(self.headers, "Cookie")
        if raw_cookie:
            parsed = SimpleCookie()
            try:
                parsed.load(raw_cookie)
            except CookieError:
                return
            for name, morsel in parsed.items():
                self.cookies.setdefault(name, morsel.value)

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"

    @property
    def query(self) -> dict[str, list[str]]:
        return parse_qs(urlsplit(self.url).query, keep_blank_values=True)


@dataclass
class Response:
    """The response produced by serving a request."""

    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode()


class ResponseWriter:
    """Collects the status, headers and body of a response."""

    def __init__(self, response: Response | None = None) -> None:
        self.response = response if response is not None else Response()
        self._written = False

    @property
    def status(self) -> int:
        return self.response.status

    @property
    def headers(self) -> dict[str, str]:
        return self.response.headers

    @property
    def written(self) -> bool:
        return self._written

    def write_header(self, code: int) -> None:
        """Record the status code; ignored once the body has been started."""
        if code > 0 and code != self.response.status and not self._written:
            self.response.status = code

    def write(self, data: bytes) -> int:
        """Append data to the body and return the number of bytes written."""
        self._written = True
        chunk = bytes(data)
        self.response.body += chunk
        return len(chunk)


class Context:
    """Per-request state handed to every handler in the chain."""

    def __init__(
        self,
        request: Request | None = None,
        writer: ResponseWriter | None = None,
        engine: Engine | None = None,
        params: dict[str, str] | None = None,
        handlers: Iterable[HandlerFunc] = (),
    ) -> None:
        self.request = request if request is not None else Request()
        self.writer = writer if writer is not None else ResponseWriter()
        self.engine = engine
        self.params = dict(params or {})
        self.keys: dict[str, Any] = {}
        self._handlers = list(handlers)
        self._index = -1

    @property
    def is_aborted(self) -> bool:
        return self._index >= _ABORT_INDEX

    def param(self, key: str) -> AnyValue:
        return AnyValue(val=self.params.get(key, ""))

    def query(self, key: str) -> AnyValue:
        values = self.request.query.get(key)
        return AnyValue(val=values[0] if values else "")

    def cookie(self, key: str) -> AnyValue:
        if key in self.request.cookies:
            return AnyValue(val=self.request.cookies[key])
        return AnyValue(val="", err=KeyError(f"cookie {key!r} not present"))

    def header(self, key: str) -> str:
        return _lookup_header(self.request.headers, key)

    def client_ip(self) -> str:
        """Best guess of the client address, following the engine's trust settings."""
        engine = self.engine
        platform = engine.trusted_platform if engine is not None else ""
        if platform:
            value = self.header(platform)
            if value:
                return value
        remote_ip = _split_host(self.request.remote_addr)
        if not _is_ip(remote_ip):
            return ""
        forwarded = engine.forwarded_by_client_ip if engine is not None else True
        if forwarded:
            names = engine.remote_ip_headers if engine is not None else _DEFAULT_REMOTE_IP_HEADERS
            for name in names:
                items = [item.strip() for item in self.header(name).split(",")]
                if items != [""] and all(_is_ip(item) for item in items):
                    return items[0]
        return remote_ip

    def raw_data(self) -> bytes:
        return self.request.body

    def bind(self, req_type: Any) -> Any:
        """Build req_type from the request body or query; a failure aborts with 400."""
        try:
            payload = self._binding_payload()
            return self._construct(req_type, payload)
        except (ValueError, TypeError) as exc:
            self.abort_with_status(400)
            raise ValueError(f"failed to bind request: {exc}") from exc

    def _binding_payload(self) -> Any:
        content_type = self.header("Content-Type").split(";")[0].strip().lower()
        if content_type == "application/json":
            if not self.request.body:
                raise ValueError("empty request body")
            return json.loads(self.request.body)
        payload = {name: values[0] for name, values in self.request.query.items()}
        if content_type == "application/x-www-form-urlencoded":
            form = parse_qs(self.request.body.decode(), keep_blank_values=True)
            payload.update({name: values[0] for name, values in form.items()})
        return payload

    @staticmethod
    def _construct(req_type: Any, payload: Any) -> Any:
        if req_type is dict:
            if not isinstance(payload, dict):
                raise TypeError("request payload is not an object")
            return dict(payload)
        if dataclasses.is_dataclass(req_type):
            if not isinstance(payload, dict):
                raise TypeError("request payload is not an object")
            names = {f.name for f in dataclasses.fields(req_type) if f.init}
            return req_type(**{k: v for k, v in payload.items() if k in names})
        if isinstance(payload, dict):
            return req_type(**payload)
        return req_type(payload)

    def next(self) -> None:
        """Run the remaining handlers in the chain."""
        self._index += 1
        while self._index < len(self._handlers):
            self._handlers[self._index](self)
            self._index += 1

    def abort(self) -> None:
        self._index = _ABORT_INDEX

    def abort_with_status(self, code: int) -> None:
        self.status(code)
        self.writer.write(b"")
        self.abort()

    def set(self, key: str, value: Any) -> None:
        self.keys[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.keys.get(key, default)

    def status(self, code: int) -> None:
        self.writer.write_header(code)

    def json(self, code: int, data: Any) -> None:
        self.status(code)
        self.writer.headers["Content-Type"] = "application/json; charset=utf-8"
        body = json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=_json_default)
        self.writer.write(body.encode())


@dataclass
class _Route:
    method: str
    segments: list[str]
    handler: HandlerFunc


def _segments(path: str) -> list[str]:
    return [part for part in urlsplit(path).path.split("/") if part]


def _match_segments(pattern: list[str], parts: list[str]) -> dict[str, str] | None:
    params: dict[str, str] = {}
    for position, segment in enumerate(pattern):
        if segment.startswith("*"):
            params[segment[1:]] = "/" + "/".join(parts[position:])
            return params
        if position >= len(parts):
            return None
        part = parts[position]
        if segment.startswith(":"):
            params[segment[1:]] = part
        elif segment != part:
            return None
    return params if len(parts) == len(pattern) else None


class Engine:
    """Routes requests through global middlewares to a matching handler."""

    def __init__(
        self,
        trusted_platform: str = "",
        forwarded_by_client_ip: bool = True,
        remote_ip_headers: Iterable[str] = _DEFAULT_REMOTE_IP_HEADERS,
    ) -> None:
        self.trusted_platform = trusted_platform
        self.forwarded_by_client_ip = forwarded_by_client_ip
        self.remote_ip_headers = tuple(remote_ip_headers)
        self._middlewares: list[HandlerFunc] = []
        self._routes: list[_Route] = []

    def use(self, *args: HandlerFunc) -> Engine:
        self._middlewares.extend(args)
        return self

    def handle(self, method: str, path: str, handler: HandlerFunc) -> Engine:
        self._routes.append(_Route(method.upper(), _segments(path), handler))
        return self

    def get(self, path: str, handler: HandlerFunc) -> Engine:
        return self.handle("GET", path, handler)

    def post(self, path: str, handler: HandlerFunc) -> Engine:
        return self.handle("POST", path, handler)

    def _match(self, method: str, path: str) -> tuple[HandlerFunc, dict[str, str]] | None:
        parts = _segments(path)
        for route in self._routes:
            if route.method != method:
                continue
            params = _match_segments(route.segments, parts)
            if params is not None:
                return route.handler, params
        return None

    def serve(self, request: Request) -> Response:
        """Handle one request and return the finished response."""
        writer = ResponseWriter()
        match = self._match(request.method, request.path)
        if match is None:
            ctx = Context(request, writer, self, handlers=self._middlewares)
            writer.write_header(404)
            ctx.next()
            if not writer.written and writer.status == 404:
                writer.write(_NOT_FOUND_BODY)
        else:
            handler, params = match
            ctx = Context(request, writer, self, params, [*self._middlewares, handler])
            ctx.next()
        return writer.response
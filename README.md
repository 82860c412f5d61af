# ginx

Building blocks for small HTTP services: a request context with typed
accessors, a tiny in-process routing engine, handler wrappers that turn return
values and exceptions into responses, a session layer with pluggable
providers, JWT settings, and a set of ready-made middlewares.

The package has no third-party dependencies.

## Installation

```
pip install .
```

## Modules

- `ginx.context` – `Engine`, `Context`, `Request`, `Response`,
  `ResponseWriter` and `AnyValue`.
- `ginx.errors` – `GinxError` and its subclasses `UnauthorizedError`,
  `SessionKeyNotFoundError` (also a `KeyError`) and `NoResponseError`.
- `ginx.wrapper` – `Result`, the abstract `Handler`, and the wrappers `wrap`,
  `wrap_bind`, `wrap_session` and `wrap_bind_session`.
- `ginx.session.types` – `Claims`, the abstract `Session` and `Provider`, and
  `MemorySession`.
- `ginx.session.builder` – `SessionBuilder`, `MiddlewareBuilder`, the
  process-wide default provider and helpers that use it.
- `ginx.session.redis_session` – `RedisSession` and `new_redis_session`.
- `ginx.crawlerdetect.strategy` – DNS-based crawler verification strategies.
- `ginx.middlewares.accesslog`, `ginx.middlewares.crawlerdetect`,
  `ginx.middlewares.ratelimit`, `ginx.middlewares.activelimit` – middlewares.
- `ginx.jwt_options` – `Options`, `new_options` and the `with_*` option
  functions.

## Engine and context

`Engine` keeps a list of global middlewares and routes. `get`, `post` and
`handle(method, path, handler)` register a route; a path segment `:name`
captures one segment and `*name` captures the rest of the path. `use(...)`
appends middlewares. `serve(request)` runs the chain for one `Request` and
returns the `Response` (status, headers, body, and `text`). Unmatched paths
still run the middlewares and then answer `404 page not found`.

A handler is any callable taking a `Context`. On the context:

- `param(key)`, `query(key)` and `cookie(key)` return an `AnyValue`;
  `string()` gives the value or raises the stored error. Missing params and
  query keys give `""`; a missing cookie carries a `KeyError`.
- `header(key)` looks up a header case-insensitively; `raw_data()` returns
  the body.
- `client_ip()` uses the engine's `trusted_platform` header when set, then
  `X-Forwarded-For` / `X-Real-IP` (when `forwarded_by_client_ip` is on), then
  the host part of `remote_addr`.
- `bind(req_type)` builds `req_type` (a dataclass, `dict`, or any callable)
  from a JSON body, a form body or the query string; on failure it answers
  400 and raises `ValueError`.
- `next()`, `abort()`, `abort_with_status(code)`, `status(code)`,
  `json(code, data)`, and `set(key, value)` / `get(key, default)` for
  per-request values.

```python
from ginx.context import Engine, Request

def hello(ctx):
    ctx.json(200, {"hello": ctx.query("name").string()})

server = Engine()
server.get("/hello", hello)
resp = server.serve(Request(method="GET", url="/hello?name=world"))
assert resp.status == 200 and resp.text == '{"hello":"world"}'
```

## Handler wrappers

A wrapped function returns a `Result(code, msg, data)`, written as JSON with
status 200. Raising `UnauthorizedError` aborts with 401, raising
`NoResponseError` leaves the response as the function wrote it, and any other
exception gives 500 with the exception's `result` attribute as the body when
it is a `Result`, or an empty `Result` otherwise.

```python
from ginx.wrapper import Result, wrap

def hello(ctx):
    return Result(code=0, msg="ok", data={"hello": ctx.query("name").string()})

server.get("/greet", wrap(hello))
```

- `wrap_bind(fn, req_type)` binds the request and calls `fn(ctx, req)`; a bind
  failure has already answered 400.
- `wrap_session(fn)` fetches the session from the default provider and calls
  `fn(ctx, sess)`; without a session it answers 401.
- `wrap_bind_session(fn, req_type)` does both and calls `fn(ctx, req, sess)`.

## Sessions

A `Session` offers `set`, `get` (returning an `AnyValue`, whose error is
`SessionKeyNotFoundError` for a missing key), `delete`, `destroy` and
`claims()`. `Claims(uid, ssid, data)` holds the JWT data; `Claims.get(key)`
also returns an `AnyValue`.

`Provider` is an abstract class with `new_session`, `get`, `update_claims` and
`renew_access_token`. Install your implementation as the default provider:

```python
from ginx.session.builder import SessionBuilder, set_default_provider

set_default_provider(my_provider)

sess = (
    SessionBuilder(ctx, 123)
    .set_jwt_data({"role": "admin"})
    .set_sess_data({"theme": "dark"})
    .build()
)
```

`new_session`, `get`, `renew_access_token` and `update_claims` in
`ginx.session.builder` forward to the default provider and raise
`RuntimeError` when none is set. `check_login_middleware()` answers 401 when
the provider cannot return a session and otherwise stores it in the context
under `CTX_SESSION_KEY` (`"_session"`).

`MemorySession(claims, data)` keeps its data in a dictionary and is handy in
tests. `RedisSession` stores data in the hash `session:<ssid>` of any client
offering `delete`, `hset`, `hget` and `pipeline` (for example a redis-py
client); `init(kvs)` writes all values and sets the expiry in one pipeline.

## Middlewares

```python
from ginx.middlewares.accesslog import Builder as AccessLogBuilder
from ginx.middlewares.activelimit import LocalActiveLimit
from ginx.middlewares.ratelimit import Builder as RateLimitBuilder

def log_access(ctx, entry):
    print(entry.method, entry.url, entry.status, entry.duration)

server.use(
    AccessLogBuilder(log_access).allow_req_body().allow_resp_body().max_length(1024).build(),
    LocalActiveLimit(100).build(),
    RateLimitBuilder(my_limiter).build(),
)
```

- **Access log** – calls the logger with the context and an `AccessLog`
  (method, URL, optional request and response bodies cut to `max_length`,
  default 1024, status when the response body is recorded, and duration).
- **Active limits** – `LocalActiveLimit(max_active)` answers 429 when more
  requests than allowed are in flight in this process.
  `RedisActiveLimit(cmd, max_active, key)` keeps the counter through any
  client with `incr` and `decr`; it answers 500 when the increment fails and
  logs through `set_log_func`.
- **Rate limit** – subclass `Limiter` and implement `limit(ctx, key)`. The
  builder keys requests as `ip-limiter:<client ip>` unless
  `set_key_gen_func` is used, answers 429 when limited and 500 (after calling
  the log function) when the limiter raises.
- **Crawler detection** – `Builder()` maps User-Agent fragments to the
  crawler names `BAIDU`, `BING`, `GOOGLE` and `SOGOU`;
  `add_user_agent({crawler: [fragments]})` and `remove_user_agent(*fragments)`
  change the map and `user_agents` returns a copy. Requests without a client
  IP or without a known fragment get 403, unverified addresses 403, and a
  lookup failure 500.

The strategies in `ginx.crawlerdetect.strategy` do a reverse DNS lookup, match
the host names against the crawler's domains and then resolve the name forward
back to the same address; `SoGouStrategy` checks the reverse lookup only. Each
strategy accepts a `resolver` with `lookup_addr` and `lookup_ip`; the default
uses the system resolver and raises `DNSError` on failure.

## JWT options

```python
from datetime import timedelta
from ginx.jwt_options import new_options, with_issuer

opts = new_options(timedelta(minutes=10), "secret", with_issuer("my-service"))
```

The decrypt key defaults to the encryption key, the signing method to
`"HS256"`, and `gen_id()` returns `""` unless `with_gen_id_func` is given.

## What the package does not do

- It ships no concrete session `Provider`: creating, validating and renewing
  JWT-backed sessions is up to your implementation.
- It does not sign or verify tokens; `ginx.jwt_options` only holds settings.
- It ships no `Limiter` implementation, such as a Redis sliding window.
- `Engine` dispatches `Request` objects in process; it is not a network
  server.

## Running the tests

```
pip install ".[test]"
pytest
```
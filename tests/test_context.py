from dataclasses import dataclass

import pytest

from ginx.context import AnyValue, Context, Engine, Request, Response, ResponseWriter


@pytest.mark.parametrize(
    "key, want",
    [("name", "123"), ("nickname", "")],
)
def test_query(key, want):
    ctx = Context(Request(url="http://localhost/abc?name=123&age=18"))
    assert ctx.query(key).string() == want


@pytest.mark.parametrize(
    "key, want",
    [("name", "world"), ("nickname", "")],
)
def test_param(key, want):
    seen = []
    server = Engine()
    server.post("/hello/:name", lambda ctx: seen.append(ctx.param(key).string()))
    server.serve(Request(method="POST", url="http://localhost/hello/world?name=123&age=18"))
    assert seen == [want]


def test_cookie_present():
    req = Request(url="http://localhost/hello?name=123&age=18", cookies={"name": "world"})
    assert Context(req).cookie("name").string() == "world"


def test_cookie_missing():
    value = Context(Request(method="POST", url="/hello")).cookie("nickname")
    assert value.val == ""
    with pytest.raises(KeyError):
        value.string()


def test_cookie_from_header():
    req = Request(headers={"Cookie": "name=world; lang=en"})
    ctx = Context(req)
    assert ctx.cookie("name").string() == "world"
    assert ctx.cookie("lang").string() == "en"


def test_any_value_string_errors():
    with pytest.raises(TypeError):
        AnyValue(val=12).string()
    with pytest.raises(RuntimeError):
        AnyValue(err=RuntimeError("boom")).string()


def test_header_case_insensitive():
    ctx = Context(Request(headers={"User-Agent": "agent"}))
    assert ctx.header("user-agent") == "agent"
    assert ctx.header("X-Missing") == ""


def test_client_ip_from_remote_addr():
    assert Context(Request(remote_addr="127.0.0.1:80")).client_ip() == "127.0.0.1"


def test_client_ip_empty_without_remote_addr():
    assert Context(Request()).client_ip() == ""


def test_client_ip_trusted_platform():
    engine = Engine(trusted_platform="X-Forwarded-For")
    ctx = Context(Request(headers={"X-Forwarded-For": "256.0.0.0"}), engine=engine)
    assert ctx.client_ip() == "256.0.0.0"


def test_client_ip_forwarded_header():
    req = Request(remote_addr="10.0.0.1:80", headers={"X-Forwarded-For": "1.2.3.4, 10.0.0.2"})
    assert Context(req).client_ip() == "1.2.3.4"


def test_client_ip_forwarding_disabled():
    req = Request(remote_addr="10.0.0.1:80", headers={"X-Forwarded-For": "1.2.3.4"})
    ctx = Context(req, engine=Engine(forwarded_by_client_ip=False))
    assert ctx.client_ip() == "10.0.0.1"


def test_middleware_order():
    events = []

    def middleware(ctx):
        events.append("before")
        ctx.next()
        events.append("after")

    server = Engine().use(middleware)
    server.get("/x", lambda ctx: events.append("handler"))
    resp = server.serve(Request(url="/x"))
    assert events == ["before", "handler", "after"]
    assert resp.status == 200


def test_abort_stops_chain():
    called = []
    server = Engine().use(lambda ctx: ctx.abort_with_status(401))
    server.get("/x", lambda ctx: called.append(True))
    resp = server.serve(Request(url="/x"))
    assert resp.status == 401
    assert called == []


def test_json_response():
    server = Engine()
    server.get("/accesslog", lambda ctx: ctx.json(200, {"msg": "aa22"}))
    resp = server.serve(Request(url="/accesslog"))
    assert resp.status == 200
    assert resp.body == b'{"msg":"aa22"}'
    assert resp.headers["Content-Type"].startswith("application/json")


def test_status_only():
    server = Engine()
    server.get("/", lambda ctx: ctx.status(204))
    assert server.serve(Request(url="/")).status == 204


def test_status_fixed_after_write():
    ctx = Context()
    ctx.json(200, {"a": 1})
    ctx.status(500)
    assert ctx.writer.status == 200


def test_not_found():
    resp = Engine().serve(Request(url="/missing"))
    assert resp.status == 404
    assert resp.text == "404 page not found"


def test_wrong_method_is_not_found():
    server = Engine()
    server.post("/hello", lambda ctx: ctx.status(200))
    assert server.serve(Request(method="GET", url="/hello")).status == 404


def test_wildcard_route():
    seen = []
    server = Engine()
    server.get("/files/*path", lambda ctx: seen.append(ctx.param("path").string()))
    server.serve(Request(url="/files/a/b.txt"))
    assert seen == ["/a/b.txt"]


def test_set_and_get():
    ctx = Context()
    ctx.set("k", 1)
    assert ctx.get("k") == 1
    assert ctx.get("missing", "d") == "d"


@dataclass
class _Req:
    name: str
    age: int = 0


def test_bind_json():
    req = Request(
        method="POST",
        headers={"Content-Type": "application/json"},
        body=b'{"name":"tom","age":18,"extra":1}',
    )
    assert Context(req).bind(_Req) == _Req(name="tom", age=18)


def test_bind_query_into_dict():
    ctx = Context(Request(url="/x?name=123&age=18"))
    assert ctx.bind(dict) == {"name": "123", "age": "18"}


def test_bind_form_body():
    req = Request(
        method="POST",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        body=b"name=tom",
    )
    assert Context(req).bind(_Req) == _Req(name="tom")


def test_bind_failure_aborts_with_400():
    req = Request(method="POST", headers={"Content-Type": "application/json"}, body=b"{bad")
    ctx = Context(req)
    with pytest.raises(ValueError):
        ctx.bind(_Req)
    assert ctx.writer.status == 400
    assert ctx.is_aborted


def test_bind_missing_field_fails():
    req = Request(method="POST", headers={"Content-Type": "application/json"}, body=b"{}")
    ctx = Context(req)
    with pytest.raises(ValueError):
        ctx.bind(_Req)
    assert ctx.writer.status == 400


def test_response_writer_write_counts_bytes():
    writer = ResponseWriter(Response())
    assert writer.write(b"abc") == 3
    assert writer.written
    assert writer.response.body == b"abc"


def test_raw_data():
    assert Context(Request(body=b"payload")).raw_data() == b"payload"
import pytest

from ginx.context import Context, Engine, Request
from ginx.errors import UnauthorizedError
from ginx.session import builder
from ginx.session.builder import (
    CTX_SESSION_KEY,
    MiddlewareBuilder,
    SessionBuilder,
    check_login_middleware,
    default_provider,
    new_session,
    renew_access_token,
    set_default_provider,
    update_claims,
)
from ginx.session.types import Claims, MemorySession, Provider


class FakeProvider(Provider):
    def __init__(self, get_results=()):
        self.get_results = list(get_results)
        self.calls = []

    def new_session(self, ctx, uid, jwt_data, sess_data):
        self.calls.append(("new_session", uid))
        return MemorySession(Claims(uid=uid, data=jwt_data), data=sess_data)

    def get(self, ctx):
        result = self.get_results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    def update_claims(self, ctx, claims):
        self.calls.append(("update_claims", claims))

    def renew_access_token(self, ctx):
        self.calls.append(("renew_access_token", ctx))


@pytest.fixture(autouse=True)
def reset_provider():
    yield
    set_default_provider(None)


def _expected_session():
    return MemorySession(
        Claims(uid=123, data={"jwt": "true"}),
        data={"session": "true"},
    )


def test_builder_with_explicit_provider():
    provider = FakeProvider()
    sess = (
        SessionBuilder(Context(), 123)
        .set_provider(provider)
        .set_jwt_data({"jwt": "true"})
        .set_sess_data({"session": "true"})
        .build()
    )
    assert sess == _expected_session()
    assert provider.calls == [("new_session", 123)]


def test_builder_uses_default_provider():
    provider = FakeProvider()
    set_default_provider(provider)
    sess = (
        SessionBuilder(Context(), 123)
        .set_jwt_data({"jwt": "true"})
        .set_sess_data({"session": "true"})
        .build()
    )
    assert sess == _expected_session()


def test_builder_without_provider_raises():
    with pytest.raises(RuntimeError):
        SessionBuilder(Context(), 1).build()


def test_new_session_uses_default_provider():
    provider = FakeProvider()
    set_default_provider(provider)
    sess = new_session(Context(), 123, {"jwt": "true"}, {"session": "true"})
    assert sess == _expected_session()


def test_default_provider_round_trip():
    provider = FakeProvider()
    set_default_provider(provider)
    assert default_provider() is provider
    set_default_provider(None)
    assert default_provider() is None


def test_get_uses_default_provider():
    expected = MemorySession(Claims(uid=5))
    set_default_provider(FakeProvider([expected]))
    assert builder.get(Context()) is expected


def test_get_without_provider_raises():
    with pytest.raises(RuntimeError):
        builder.get(Context())


def test_check_login_middleware():
    set_default_provider(FakeProvider([UnauthorizedError(), MemorySession(Claims())]))
    server = Engine()
    server.use(check_login_middleware())
    seen = []

    def hello(ctx):
        seen.append(ctx.get(CTX_SESSION_KEY))
        ctx.status(200)
        ctx.writer.write(b"OK")

    server.get("/hello", hello)

    first = server.serve(Request(url="http://localhost/hello"))
    assert first.status == 401
    assert seen == []

    second = server.serve(Request(url="http://localhost/hello"))
    assert second.status == 200
    assert second.text == "OK"
    assert seen == [MemorySession(Claims())]


def test_middleware_builder_with_given_provider():
    session = MemorySession(Claims(uid=9))
    middleware = MiddlewareBuilder(FakeProvider([session])).build()
    ctx = Context()
    middleware(ctx)
    assert ctx.get(CTX_SESSION_KEY) is session
    assert not ctx.is_aborted


def test_middleware_without_provider_rejects():
    middleware = MiddlewareBuilder(None).build()
    ctx = Context()
    middleware(ctx)
    assert ctx.writer.status == 401
    assert ctx.is_aborted


def test_renew_and_update_claims_delegate():
    provider = FakeProvider()
    set_default_provider(provider)
    ctx = Context()
    claims = Claims(uid=1, ssid="abc")
    renew_access_token(ctx)
    update_claims(ctx, claims)
    assert provider.calls == [("renew_access_token", ctx), ("update_claims", claims)]
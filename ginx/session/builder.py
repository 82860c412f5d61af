"""Session construction, the process-wide default provider and login checking."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from ginx.context import Context, HandlerFunc
from ginx.session.types import Claims, Provider, Session

CTX_SESSION_KEY = "_session"

_log = logging.getLogger(__name__)
_default_provider: Provider | None = None


def _require(provider: Provider | None) -> Provider:
    if provider is None:
        raise RuntimeError("no session provider configured")
    return provider


class SessionBuilder:
    """Fluent helper for creating a session.

    Uses the default provider unless another one is set.
    """

    def __init__(self, ctx: Context, uid: int, provider: Provider | None = None) -> None:
        self._ctx = ctx
        self._uid = uid
        self._provider = provider if provider is not None else _default_provider
        self._jwt_data: dict[str, str] | None = None
        self._sess_data: dict[str, Any] | None = None

    def set_provider(self, provider: Provider) -> SessionBuilder:
        self._provider = provider
        return self

    def set_jwt_data(self, data: dict[str, str]) -> SessionBuilder:
        self._jwt_data = data
        return self

    def set_sess_data(self, data: dict[str, Any]) -> SessionBuilder:
        self._sess_data = data
        return self

    def build(self) -> Session:
        """Create the session through the chosen provider."""
        return _require(self._provider).new_session(
            self._ctx, self._uid, self._jwt_data, self._sess_data
        )


class MiddlewareBuilder:
    """Builds a middleware that rejects requests without a valid session."""

    def __init__(self, provider: Provider | None) -> None:
        self._provider = provider

    def build(self) -> HandlerFunc:
        provider = self._provider

        def middleware(ctx: Context) -> None:
            try:
                sess = _require(provider).get(ctx)
            except Exception as exc:
                _log.debug("unauthorized: %s", exc)
                ctx.abort_with_status(HTTPStatus.UNAUTHORIZED)
                return
            ctx.set(CTX_SESSION_KEY, sess)

        return middleware


def new_session(
    ctx: Context,
    uid: int,
    jwt_data: dict[str, str] | None,
    sess_data: dict[str, Any] | None,
) -> Session:
    """Create a session with the default provider."""
    return _require(_default_provider).new_session(ctx, uid, jwt_data, sess_data)


def get(ctx: Context) -> Session:
    """Load the current, valid session with the default provider."""
    return _require(_default_provider).get(ctx)


def set_default_provider(provider: Provider | None) -> None:
    global _default_provider
    _default_provider = provider


def default_provider() -> Provider | None:
    return _default_provider


def check_login_middleware() -> HandlerFunc:
    """Middleware using the default provider as it is at the time of the call."""
    return MiddlewareBuilder(_default_provider).build()


def renew_access_token(ctx: Context) -> None:
    _require(_default_provider).renew_access_token(ctx)


def update_claims(ctx: Context, claims: Claims) -> None:
    _require(_default_provider).update_claims(ctx, claims)
"""Wrappers turning business functions into request handlers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Callable

from ginx.context import Context, Engine, HandlerFunc
from ginx.errors import NoResponseError, UnauthorizedError
from ginx.session.builder import get as get_session
from ginx.session.types import Session

_log = logging.getLogger(__name__)


@dataclass
class Result:
    """The JSON body written by wrapped handlers."""

    code: int = 0
    msg: str = ""
    data: Any = None


class Handler(ABC):
    """A group of routes that registers itself on an engine."""

    @abstractmethod
    def private_routes(self, server: Engine) -> None:
        """Register routes that need a logged-in user."""

    @abstractmethod
    def public_routes(self, server: Engine) -> None:
        """Register routes open to everyone."""


def _respond(ctx: Context, call: Callable[[], Result]) -> None:
    """Run the business call and write its outcome.

    An exception may carry a ``result`` attribute holding the body sent with 500.
    """
    try:
        res = call()
    except NoResponseError as exc:
        _log.debug("no response needed: %s", exc)
        return
    except UnauthorizedError as exc:
        _log.debug("unauthorized: %s", exc)
        ctx.abort_with_status(HTTPStatus.UNAUTHORIZED)
        return
    except Exception as exc:
        _log.error("business logic failed: %s", exc, exc_info=exc)
        result = getattr(exc, "result", None)
        ctx.json(HTTPStatus.INTERNAL_SERVER_ERROR, result if isinstance(result, Result) else Result())
        return
    ctx.json(HTTPStatus.OK, res)


def _load_session(ctx: Context) -> Session | None:
    try:
        return get_session(ctx)
    except Exception as exc:
        _log.debug("failed to get session: %s", exc)
        ctx.abort_with_status(HTTPStatus.UNAUTHORIZED)
        return None


def _bind(ctx: Context, req_type: Any) -> tuple[bool, Any]:
    try:
        return True, ctx.bind(req_type)
    except ValueError as exc:
        # bind has already answered with 400
        _log.debug("failed to bind request: %s", exc)
        return False, None


def wrap(fn: Callable[[Context], Result]) -> HandlerFunc:
    def handler(ctx: Context) -> None:
        _respond(ctx, lambda: fn(ctx))

    return handler


def wrap_bind(fn: Callable[[Context, Any], Result], req_type: Any) -> HandlerFunc:
    """Bind the request into req_type before calling fn."""

    def handler(ctx: Context) -> None:
        ok, req = _bind(ctx, req_type)
        if ok:
            _respond(ctx, lambda: fn(ctx, req))

    return handler


def wrap_bind_session(
    fn: Callable[[Context, Any, Session], Result], req_type: Any
) -> HandlerFunc:
    """Load the session, bind the request, then call fn with both."""

    def handler(ctx: Context) -> None:
        sess = _load_session(ctx)
        if sess is None:
            return
        ok, req = _bind(ctx, req_type)
        if ok:
            _respond(ctx, lambda: fn(ctx, req, sess))

    return handler


def wrap_session(fn: Callable[[Context, Session], Result]) -> HandlerFunc:
    """Load the session, then call fn with it."""

    def handler(ctx: Context) -> None:
        sess = _load_session(ctx)
        if sess is not None:
            _respond(ctx, lambda: fn(ctx, sess))

    return handler
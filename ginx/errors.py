"""Exceptions shared across the package."""

from __future__ import annotations


class GinxError(Exception):
    """Base class of every error raised by this package."""

    default_message = "ginx error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.default_message)


class UnauthorizedError(GinxError):
    """The caller is not authorised; handlers answer with 401."""

    default_message = "unauthorized"


class SessionKeyNotFoundError(GinxError, KeyError):
    """The requested key is not stored in the session or its claims."""

    default_message = "session key not found"

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else self.default_message


class NoResponseError(GinxError):
    """Sentinel telling a wrapped handler not to write a response.

    Most of the time this means the handler has already written one.
    """

    default_message = "no response needed"
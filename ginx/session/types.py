"""Session and provider interfaces, claims, and an in-memory session."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ginx.context import AnyValue, Context
from ginx.errors import SessionKeyNotFoundError


@dataclass
class Claims:
    """Data encoded into the JWT of a session."""

    uid: int = 0
    ssid: str = ""
    data: dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> AnyValue:
        if key not in self.data:
            return AnyValue(err=SessionKeyNotFoundError())
        return AnyValue(val=self.data[key])


class Session(ABC):
    """Server-side session data combined with JWT claims."""

    @abstractmethod
    def set(self, key: str, val: Any) -> None:
        """Store a value in the session."""

    @abstractmethod
    def get(self, key: str) -> AnyValue:
        """Read a value from the session; claims are not consulted."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a value from the session."""

    @abstractmethod
    def destroy(self) -> None:
        """Destroy the whole session."""

    @abstractmethod
    def claims(self) -> Claims:
        """Return the claims encoded in the JWT."""


class Provider(ABC):
    """Creates, loads and refreshes sessions."""

    @abstractmethod
    def new_session(
        self,
        ctx: Context,
        uid: int,
        jwt_data: dict[str, str] | None,
        sess_data: dict[str, Any] | None,
    ) -> Session:
        """Create a session; jwt_data goes into the token, sess_data into the store."""

    @abstractmethod
    def get(self, ctx: Context) -> Session:
        """Return a valid, unexpired session or raise."""

    @abstractmethod
    def update_claims(self, ctx: Context, claims: Claims) -> None:
        """Replace the claims, issuing a new token."""

    @abstractmethod
    def renew_access_token(self, ctx: Context) -> None:
        """Issue a new access token after checking the refresh token."""


class MemorySession(Session):
    """A session kept in a dict, mostly useful in tests."""

    def __init__(self, claims: Claims | None = None, data: dict[str, Any] | None = None) -> None:
        self._claims = claims if claims is not None else Claims()
        self._data: dict[str, Any] = dict(data) if data is not None else {}

    def set(self, key: str, val: Any) -> None:
        self._data[key] = val

    def get(self, key: str) -> AnyValue:
        if key not in self._data:
            return AnyValue(err=SessionKeyNotFoundError())
        return AnyValue(val=self._data[key])

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def destroy(self) -> None:
        return None

    def update_claims(self, ctx: Context, claims: Claims) -> None:
        return None

    def claims(self) -> Claims:
        return self._claims

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MemorySession):
            return NotImplemented
        return self._data == other._data and self._claims == other._claims

    def __repr__(self) -> str:
        return f"MemorySession(claims={self._claims!r}, data={self._data!r})"
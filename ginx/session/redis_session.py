"""A session whose data lives in a Redis hash."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol

from ginx.context import AnyValue
from ginx.errors import SessionKeyNotFoundError
from ginx.session.types import Claims, Session


class RedisClient(Protocol):
    """The subset of a Redis client used by RedisSession."""

    def delete(self, *names: str) -> Any: ...

    def hset(self, name: str, key: Any = None, value: Any = None) -> Any: ...

    def hget(self, name: str, key: str) -> Any: ...

    def pipeline(self) -> Any: ...


class RedisSession(Session):
    """Session stored under ``session:<ssid>``; it lives as long as one request."""

    def __init__(
        self,
        client: RedisClient,
        key: str,
        claims: Claims,
        expiration: timedelta,
    ) -> None:
        self._client = client
        self._key = key
        self._claims = claims
        self._expiration = expiration

    @property
    def key(self) -> str:
        return self._key

    @property
    def expiration(self) -> timedelta:
        return self._expiration

    def destroy(self) -> None:
        self._client.delete(self._key)

    def delete(self, key: str) -> None:
        """Delete the session hash together with the Redis key named ``key``."""
        self._client.delete(self._key, key)

    def set(self, key: str, val: Any) -> None:
        self._client.hset(self._key, key, val)

    def init(self, kvs: dict[str, Any]) -> None:
        """Store all values and set the expiry in one pipeline."""
        pipe = self._client.pipeline()
        for name, value in kvs.items():
            pipe.hset(self._key, name, value)
        pipe.expire(self._key, self._expiration)
        pipe.execute()

    def get(self, key: str) -> AnyValue:
        try:
            value = self._client.hget(self._key, key)
        except Exception as exc:
            return AnyValue(err=exc)
        if value is None:
            return AnyValue(err=SessionKeyNotFoundError())
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode()
        return AnyValue(val=value)

    def claims(self) -> Claims:
        return self._claims


def new_redis_session(
    ssid: str,
    expiration: timedelta,
    client: RedisClient,
    claims: Claims,
) -> RedisSession:
    return RedisSession(client, "session:" + ssid, claims, expiration)
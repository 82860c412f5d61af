"""Settings for issuing and verifying JWTs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Callable

SIGNING_METHOD_HS256 = "HS256"


def _empty_id() -> str:
    return ""


@dataclass
class Options:
    """How tokens are signed, verified and stamped."""

    expire: timedelta
    encryption_key: str
    decrypt_key: str = ""
    method: str = SIGNING_METHOD_HS256
    issuer: str = ""
    _gen_id_fn: Callable[[], str] = field(
        default=_empty_id, init=False, repr=False, compare=False
    )

    def gen_id(self) -> str:
        """Return a JWT ID (jti) from the configured generator."""
        return self._gen_id_fn()


Option = Callable[[Options], None]


def new_options(expire: timedelta, encryption_key: str, *args: Option) -> Options:
    """Build options; the decrypt key defaults to the encryption key, the method to HS256."""
    opts = Options(expire=expire, encryption_key=encryption_key, decrypt_key=encryption_key)
    for apply in args:
        apply(opts)
    return opts


def with_decrypt_key(decrypt_key: str) -> Option:
    def apply(opts: Options) -> None:
        opts.decrypt_key = decrypt_key

    return apply


def with_method(method: str) -> Option:
    def apply(opts: Options) -> None:
        opts.method = method

    return apply


def with_issuer(issuer: str) -> Option:
    def apply(opts: Options) -> None:
        opts.issuer = issuer

    return apply


def with_gen_id_func(fn: Callable[[], str]) -> Option:
    """Use fn to generate JWT IDs, for example ``lambda: str(uuid.uuid4())``."""

    def apply(opts: Options) -> None:
        opts._gen_id_fn = fn

    return apply
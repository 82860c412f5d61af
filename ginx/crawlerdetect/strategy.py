"""Reverse-DNS based verification of search engine crawlers."""

from __future__ import annotations

import ipaddress
import socket
from abc import ABC, abstractmethod
from typing import Iterable, Protocol

BAIDU = "baidu"
BING = "bing"
GOOGLE = "google"
SOGOU = "sogou"


class DNSError(OSError):
    """A DNS lookup failed."""

    def __init__(self, message: str, name: str = "") -> None:
        super().__init__(message)
        self.name = name

    def __str__(self) -> str:
        text = self.args[0] if self.args else "dns error"
        return f"lookup {self.name}: {text}" if self.name else text


class Resolver(Protocol):
    """Name lookups used by the strategies."""

    def lookup_addr(self, ip: str) -> list[str]:
        """Return the host names the address maps back to."""
        ...

    def lookup_ip(self, host: str) -> list[str]:
        """Return the addresses the host name resolves to."""
        ...


class SystemResolver:
    """Resolver backed by the operating system's name service."""

    def lookup_addr(self, ip: str) -> list[str]:
        try:
            ipaddress.ip_address(ip)
        except ValueError:
            raise DNSError("unrecognized address", name=ip) from None
        try:
            host, aliases, _addresses = socket.gethostbyaddr(ip)
        except (socket.herror, socket.gaierror) as exc:
            raise DNSError(str(exc), name=ip) from exc
        return [host, *aliases]

    def lookup_ip(self, host: str) -> list[str]:
        try:
            infos = socket.getaddrinfo(host, None)
        except (socket.herror, socket.gaierror) as exc:
            raise DNSError(str(exc), name=host) from exc
        return list(dict.fromkeys(str(info[4][0]) for info in infos))


def _first_matching_name(hosts: Iterable[str], names: list[str]) -> str | None:
    """Return the first name containing one of the hosts, trying hosts in order."""
    for host in hosts:
        for name in names:
            if host in name:
                return name
    return None


class Strategy(ABC):
    """Decides whether an address belongs to a given crawler."""

    @abstractmethod
    def check_crawler(self, ip: str) -> bool:
        """Return True if ip is a genuine crawler address; raise DNSError on lookup failure."""


class UniversalStrategy(Strategy):
    """Reverse lookup, host match, then forward lookup back to the same address."""

    def __init__(self, hosts: Iterable[str], resolver: Resolver | None = None) -> None:
        self.hosts = tuple(hosts)
        self.resolver: Resolver = resolver if resolver is not None else SystemResolver()

    def check_crawler(self, ip: str) -> bool:
        names = self.resolver.lookup_addr(ip)
        if not names:
            return False
        name = _first_matching_name(self.hosts, names)
        if name is None:
            return False
        return ip in self.resolver.lookup_ip(name)


class BaiduStrategy(UniversalStrategy):
    def __init__(self, resolver: Resolver | None = None) -> None:
        super().__init__(("baidu.com", "baidu.jp"), resolver)


class BingStrategy(UniversalStrategy):
    def __init__(self, resolver: Resolver | None = None) -> None:
        super().__init__(("search.msn.com",), resolver)


class GoogleStrategy(UniversalStrategy):
    def __init__(self, resolver: Resolver | None = None) -> None:
        super().__init__(("googlebot.com", "google.com", "googleusercontent.com"), resolver)


class SoGouStrategy(Strategy):
    """Sogou is verified by the reverse lookup alone."""

    def __init__(self, resolver: Resolver | None = None) -> None:
        self.hosts: tuple[str, ...] = ("sogou.com",)
        self.resolver: Resolver = resolver if resolver is not None else SystemResolver()

    def check_crawler(self, ip: str) -> bool:
        names = self.resolver.lookup_addr(ip)
        if not names:
            return False
        return _first_matching_name(self.hosts, names) is not None


_STRATEGIES: dict[str, Strategy] = {
    BAIDU: BaiduStrategy(),
    BING: BingStrategy(),
    GOOGLE: GoogleStrategy(),
    SOGOU: SoGouStrategy(),
}


def new_crawler_detector(crawler: str) -> Strategy | None:
    """Return the shared strategy for a crawler name, or None if it is unknown."""
    return _STRATEGIES.get(crawler)
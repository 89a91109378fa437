"""Validation of the HTTP ``Host`` header."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Generic, Iterable, Optional, Sequence, TypeVar, Union

from .matcher import Matcher

__all__ = ["Host", "DomainsValidation", "is_host_valid", "update"]

Port = Union[None, int, str]
T = TypeVar("T")

_U16 = re.compile(r"\+?[0-9]+")


def _parse_port(text: str) -> Port:
    if _U16.fullmatch(text):
        number = int(text)
        if number <= 0xFFFF:
            return number
    return text


def _check_port(port: Any) -> Port:
    if port is None or isinstance(port, str):
        return port
    if isinstance(port, int) and not isinstance(port, bool):
        if 0 <= port <= 0xFFFF:
            return port
        raise ValueError(f"port out of range: {port}")
    raise TypeError(f"port must be None, int or str, not {type(port).__name__}")


def _pre_process(host: str) -> str:
    parts = host.split("://")
    host = parts[1] if len(parts) > 1 else parts[0]
    return host.split("/")[0].lower()


class Host:
    """A host name with an optional port, usable as a match pattern.

    The port is None (default port), an int (fixed port) or a str
    (wildcard pattern).
    """

    __slots__ = ("hostname", "port", "_text", "_matcher")

    def __init__(self, hostname: str, port: Port = None) -> None:
        self.port = _check_port(port)
        self.hostname = _pre_process(hostname)
        suffix = "" if self.port is None else f":{self.port}"
        self._text = f"{self.hostname}{suffix}"
        self._matcher = Matcher(self._text)

    @classmethod
    def parse(cls, data: str) -> "Host":
        """Parse ``data`` as a host; never fails."""
        parts = _pre_process(data).split(":")
        port = _parse_port(parts[1]) if len(parts) > 1 else None
        return cls(parts[0], port)

    def matches(self, other: str) -> bool:
        """Return True if ``other`` matches this host pattern."""
        return self._matcher.matches(other)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Host({self.hostname!r}, {self.port!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Host):
            return NotImplemented
        return (self.hostname, self.port) == (other.hostname, other.port)

    def __hash__(self) -> int:
        return hash((self.hostname, self.port))


@dataclass(frozen=True)
class DomainsValidation(Generic[T]):
    """Either a whitelist of domains, or validation switched off."""

    items: Optional[tuple] = None

    @classmethod
    def allow_only(cls, items: Iterable[T]) -> "DomainsValidation[T]":
        """Allow only the listed domains."""
        return cls(tuple(items))

    @classmethod
    def disabled(cls) -> "DomainsValidation[T]":
        """Disable domain validation."""
        return cls(None)

    def as_list(self) -> Optional[list]:
        """The whitelist, or None when validation is disabled."""
        return None if self.items is None else list(self.items)


def _as_host(value: Union[Host, str]) -> Host:
    return value if isinstance(value, Host) else Host.parse(value)


def is_host_valid(
    host: Optional[str], allowed_hosts: Optional[Sequence[Union[Host, str]]]
) -> bool:
    """Return True when ``host`` is whitelisted in ``allowed_hosts``."""
    if allowed_hosts is None:
        return True
    if host is None:
        return False
    return any(_as_host(h).matches(host) for h in allowed_hosts)


def _format_address(address: Any) -> str:
    if isinstance(address, str):
        return address
    ip, port = str(address[0]), address[1]
    if ":" in ip:
        ip = f"[{ip}]"
    return f"{ip}:{port}"


def update(
    hosts: Optional[Iterable[Union[Host, str]]], address: Any
) -> Optional[list[Host]]:
    """Add the bound ``address`` (and its localhost form) to ``hosts``."""
    if hosts is None:
        return None
    text = _format_address(address)
    result = dict.fromkeys(_as_host(h) for h in hosts)
    result[Host.parse(text)] = None
    result[Host.parse(text.replace("127.0.0.1", "localhost"))] = None
    return list(result)
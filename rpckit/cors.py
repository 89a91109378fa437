"""CORS handling utilities."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Sequence

from .hosts import Host, Port
from .matcher import Matcher, ascii_casefold

__all__ = [
    "HTTP",
    "HTTPS",
    "Origin",
    "AccessControlAllowOrigin",
    "AccessControlAllowHeaders",
    "AllowCors",
    "ALWAYS_ALLOWED_HEADERS",
    "get_cors_allow_origin",
    "get_cors_allow_headers",
]

HTTP = "http"
HTTPS = "https"


class Origin:
    """A request origin: protocol, host and optional port."""

    __slots__ = ("protocol", "host", "_text", "_matcher")

    def __init__(self, protocol: str, host: str, port: Port = None) -> None:
        self._setup(protocol, Host(host, port))

    def _setup(self, protocol: str, host: Host) -> None:
        self.protocol = protocol
        self.host = host
        self._text = f"{protocol}://{host}"
        self._matcher = Matcher(self._text)

    @classmethod
    def _with_host(cls, protocol: str, host: Host) -> "Origin":
        origin = cls.__new__(cls)
        origin._setup(protocol, host)
        return origin

    @classmethod
    def parse(cls, data: str) -> "Origin":
        """Parse ``data`` as an origin; never fails, defaults to http."""
        parts = data.split("://")
        if len(parts) > 1:
            protocol, hostname = parts[0].lower(), parts[1]
        else:
            protocol, hostname = HTTP, parts[0]
        return cls._with_host(protocol, Host.parse(hostname))

    def matches(self, other: str) -> bool:
        """Return True if ``other`` matches this origin pattern."""
        return self._matcher.matches(other)

    def __str__(self) -> str:
        return self._text

    def __repr__(self) -> str:
        return f"Origin({self._text!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Origin):
            return NotImplemented
        return (self.protocol, self.host) == (other.protocol, other.host)

    def __hash__(self) -> int:
        return hash((self.protocol, self.host))


class _OriginKind(enum.Enum):
    VALUE = "value"
    NULL = "null"
    ANY = "any"


@dataclass(frozen=True)
class AccessControlAllowOrigin:
    """An allowed origin: a specific origin, the null origin, or any."""

    kind: _OriginKind
    origin: Optional[Origin] = None

    NULL = None  # type: AccessControlAllowOrigin
    ANY = None  # type: AccessControlAllowOrigin

    @classmethod
    def of(cls, origin: Origin | str) -> "AccessControlAllowOrigin":
        """A specific origin, given as an Origin or a string to parse."""
        if isinstance(origin, str):
            origin = Origin.parse(origin)
        return cls(_OriginKind.VALUE, origin)

    @classmethod
    def from_string(cls, value: str) -> "AccessControlAllowOrigin":
        """Interpret ``all``/``*``/``any``, ``null`` or an origin."""
        if value in ("all", "*", "any"):
            return cls.ANY
        if value == "null":
            return cls.NULL
        return cls.of(value)

    @property
    def is_null(self) -> bool:
        return self.kind is _OriginKind.NULL

    @property
    def is_any(self) -> bool:
        return self.kind is _OriginKind.ANY

    def __str__(self) -> str:
        if self.kind is _OriginKind.ANY:
            return "*"
        if self.kind is _OriginKind.NULL:
            return "null"
        return str(self.origin)


AccessControlAllowOrigin.NULL = AccessControlAllowOrigin(_OriginKind.NULL)
AccessControlAllowOrigin.ANY = AccessControlAllowOrigin(_OriginKind.ANY)


@dataclass(frozen=True)
class AccessControlAllowHeaders:
    """Headers allowed in requests: a fixed list, or any (``headers`` is None)."""

    headers: Optional[tuple] = None

    ANY = None  # type: AccessControlAllowHeaders

    @classmethod
    def only(cls, names: Iterable[str]) -> "AccessControlAllowHeaders":
        """Allow only the named headers."""
        return cls(tuple(names))

    @property
    def is_any(self) -> bool:
        return self.headers is None


AccessControlAllowHeaders.ANY = AccessControlAllowHeaders(None)


@dataclass(frozen=True)
class AllowCors:
    """Outcome of a CORS check: not required, invalid, or ok with a value."""

    class State(enum.Enum):
        NOT_REQUIRED = "not_required"
        INVALID = "invalid"
        OK = "ok"

    state: "AllowCors.State"
    value: Any = None

    NOT_REQUIRED = None  # type: AllowCors
    INVALID = None  # type: AllowCors

    @classmethod
    def ok(cls, value: Any) -> "AllowCors":
        """A successful check carrying ``value``."""
        return cls(cls.State.OK, value)

    @property
    def is_ok(self) -> bool:
        return self.state is AllowCors.State.OK

    @property
    def is_invalid(self) -> bool:
        return self.state is AllowCors.State.INVALID

    @property
    def is_not_required(self) -> bool:
        return self.state is AllowCors.State.NOT_REQUIRED

    def map(self, func: Callable[[Any], Any]) -> "AllowCors":
        """Apply ``func`` to the value of an ok outcome."""
        if self.is_ok:
            return AllowCors.ok(func(self.value))
        return self

    def value_or_none(self) -> Any:
        """The value if ok, otherwise None."""
        return self.value if self.is_ok else None


AllowCors.NOT_REQUIRED = AllowCors(AllowCors.State.NOT_REQUIRED)
AllowCors.INVALID = AllowCors(AllowCors.State.INVALID)


def get_cors_allow_origin(
    origin: Optional[str],
    host: Optional[str],
    allowed: Optional[Sequence[AccessControlAllowOrigin]],
) -> AllowCors:
    """Return the CORS header (if any) for ``origin`` given the allowed origins."""
    if origin is None:
        return AllowCors.NOT_REQUIRED

    if host is not None and origin.endswith(host):
        # Request initiated from the same server.
        if str(Origin.parse(origin).host) == host:
            return AllowCors.NOT_REQUIRED

    if allowed is None:
        if origin == "null":
            return AllowCors.ok(AccessControlAllowOrigin.NULL)
        return AllowCors.ok(AccessControlAllowOrigin.of(Origin.parse(origin)))

    if origin == "null":
        for cors in allowed:
            if cors == AccessControlAllowOrigin.NULL:
                return AllowCors.ok(cors)
        return AllowCors.INVALID

    for cors in allowed:
        if cors.is_any or (
            cors.kind is _OriginKind.VALUE and cors.origin.matches(origin)
        ):
            return AllowCors.ok(AccessControlAllowOrigin.of(Origin.parse(origin)))
    return AllowCors.INVALID


ALWAYS_ALLOWED_HEADERS = frozenset(
    ascii_casefold(name)
    for name in (
        "Accept",
        "Accept-Language",
        "Access-Control-Allow-Origin",
        "Access-Control-Request-Headers",
        "Content-Language",
        "Content-Type",
        "Host",
        "Origin",
        "Content-Length",
        "Connection",
        "User-Agent",
    )
)


def _header_allowed(name: str, only: Iterable[str]) -> bool:
    folded = ascii_casefold(name)
    return folded in ALWAYS_ALLOWED_HEADERS or any(
        ascii_casefold(h) == folded for h in only
    )


def get_cors_allow_headers(
    headers: Iterable[str],
    requested_headers: Iterable[str],
    cors_allow_headers: AccessControlAllowHeaders,
    to_result: Optional[Callable[[str], Any]] = None,
) -> AllowCors:
    """Validate request headers and the ones named in Access-Control-Request-Headers."""
    convert = to_result if to_result is not None else (lambda header: header)
    only = cors_allow_headers.headers

    if only is not None and not all(_header_allowed(h, only) for h in headers):
        return AllowCors.INVALID

    if only is None:
        filtered = False
        result = [convert(h) for h in requested_headers]
    else:
        requested = list(requested_headers)
        filtered = bool(requested)
        result = [convert(h) for h in requested if _header_allowed(h, only)]

    if result:
        return AllowCors.ok(result)
    return AllowCors.INVALID if filtered else AllowCors.NOT_REQUIRED
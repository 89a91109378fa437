"""HTTP request wrapper used by the HTTP server."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Iterable, Optional, Union

from ..matcher import ascii_casefold

__all__ = ["Method", "HttpRequest"]

HeaderValue = Union[str, bytes]


class Method(enum.Enum):
    """The HTTP methods the server distinguishes."""

    POST = "POST"
    OPTIONS = "OPTIONS"
    OTHER = "OTHER"


def _decode(value: HeaderValue) -> Optional[str]:
    if isinstance(value, str):
        return value
    try:
        return bytes(value).decode("utf-8")
    except UnicodeDecodeError:
        return None


class HttpRequest:
    """An HTTP request: method name, header pairs and raw body."""

    def __init__(
        self,
        method: str,
        headers: Union[Mapping, Iterable[tuple[str, HeaderValue]]] = (),
        body: Union[bytes, str] = b"",
    ) -> None:
        self.method_name = method
        pairs = headers.items() if isinstance(headers, Mapping) else headers
        self.headers: list[tuple[str, HeaderValue]] = [(n, v) for n, v in pairs]
        self.body = body

    @property
    def method(self) -> Method:
        """The request method; names are case-sensitive."""
        if self.method_name == "OPTIONS":
            return Method.OPTIONS
        if self.method_name == "POST":
            return Method.POST
        return Method.OTHER

    def header(self, name: str) -> Optional[str]:
        """Value of the first header called ``name``.

        None if there is no such header or its value is not UTF-8.
        """
        folded = ascii_casefold(name)
        for header_name, value in self.headers:
            if ascii_casefold(header_name) == folded:
                return _decode(value)
        return None

    def text(self) -> str:
        """The body as text, or an empty string if it is not UTF-8."""
        decoded = _decode(self.body)
        return "" if decoded is None else decoded
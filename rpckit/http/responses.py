"""HTTP responses produced by the HTTP server."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..cors import AccessControlAllowOrigin

__all__ = [
    "SERVER",
    "HttpResponse",
    "options",
    "method_not_allowed",
    "invalid_host",
    "internal_error",
    "invalid_allow_origin",
    "invalid_content_type",
    "json_response",
]

SERVER = "rpckit-http/0.1.0"


@dataclass
class HttpResponse:
    """An HTTP/1.1 response: status, headers and text body."""

    status: int = 200
    reason: str = "OK"
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: str = ""
    server: Optional[str] = None

    def add_header(self, name: str, value: str) -> "HttpResponse":
        """Append a header and return the response."""
        self.headers.append((name, value))
        return self

    def header(self, name: str) -> Optional[str]:
        """Value of the first header called ``name`` (any case), or None."""
        wanted = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == wanted:
                return value
        return None

    def to_bytes(self) -> bytes:
        """The response as it is written to the wire."""
        body = self.body.encode("utf-8")
        lines = [f"HTTP/1.1 {self.status} {self.reason}"]
        if self.server is not None:
            lines.append(f"Server: {self.server}")
        lines.append(f"Content-Length: {len(body)}")
        lines.extend(f"{name}: {value}" for name, value in self.headers)
        head = "\r\n".join(lines) + "\r\n\r\n"
        return head.encode("utf-8") + body


def _plain(status: int, reason: str, body: str) -> HttpResponse:
    response = HttpResponse(status, reason, server=SERVER, body=body)
    return response.add_header("Content-Type", "text/plain")


def options(cors: Optional[AccessControlAllowOrigin]) -> HttpResponse:
    """Response to an OPTIONS request."""
    return (
        json_response("", cors)
        .add_header("Allow", "OPTIONS, POST")
        .add_header("Accept", "application/json")
    )


def method_not_allowed() -> HttpResponse:
    """Response for an HTTP method other than POST or OPTIONS."""
    return _plain(
        405,
        "Method Not Allowed",
        "Used HTTP Method is not allowed. POST or OPTIONS is required.\n",
    )


def invalid_host() -> HttpResponse:
    """Response for a Host header that is not whitelisted."""
    return _plain(403, "Forbidden", "Provided Host header is not whitelisted.\n")


def internal_error() -> HttpResponse:
    """Response when handling the request failed."""
    return _plain(500, "Internal Error", "Interal Server Error has occured.")


def invalid_allow_origin() -> HttpResponse:
    """Response for an Origin that is not whitelisted."""
    return _plain(
        403,
        "Forbidden",
        "Origin of the request is not whitelisted. CORS headers would not be sent "
        "and any side-effects were cancelled as well.\n",
    )


def invalid_content_type() -> HttpResponse:
    """Response for a request body that is not declared as JSON."""
    return _plain(
        415,
        "Unsupported Media Type",
        "Supplied content type is not allowed. Content-Type: application/json is required.\n",
    )


def json_response(body: str, cors: Optional[AccessControlAllowOrigin]) -> HttpResponse:
    """A JSON response, with CORS headers when ``cors`` is given."""
    response = HttpResponse(server=SERVER, body=body)
    response.add_header("Content-Type", "application/json")
    if cors is not None:
        (
            response.add_header("Access-Control-Allow-Methods", "OPTIONS, POST")
            .add_header("Access-Control-Allow-Headers", "Origin, Content-Type, Accept")
            .add_header("Access-Control-Allow-Origin", str(cors))
            .add_header("Vary", "Origin")
        )
    return response
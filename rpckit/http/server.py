"""JSON-RPC over HTTP: request validation, CORS and a threaded server."""

from __future__ import annotations

import logging
import socket
import socketserver
import threading
import weakref
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, BinaryIO, Callable, Optional, Sequence, Union

from ..cors import AccessControlAllowOrigin, get_cors_allow_origin
from ..hosts import DomainsValidation, Host, is_host_valid, update
from ..matcher import ascii_casefold
from . import responses
from .request import HttpRequest, Method
from .responses import HttpResponse

__all__ = ["ServerBuilder", "RpcService", "Server", "is_json"]

_log = logging.getLogger(__name__)

_MAX_LINE = 65536
_MAX_HEADERS = 100

MetaExtractor = Callable[[HttpRequest], Any]


def _no_meta(_request: HttpRequest) -> Any:
    return None


def is_json(content_type: Optional[str]) -> bool:
    """Return True if ``content_type`` is exactly ``application/json`` (any case)."""
    if content_type is None:
        return False
    return ascii_casefold(content_type) == "application/json"


@dataclass
class RpcService:
    """Turns one HTTP request into one HTTP response."""

    handler: Any
    meta_extractor: MetaExtractor
    hosts: Optional[Sequence[Union[Host, str]]]
    cors_domains: Optional[Sequence[AccessControlAllowOrigin]]

    def __call__(self, request: HttpRequest) -> HttpResponse:
        method = request.method
        is_options = method is Method.OPTIONS
        if not is_options and method is not Method.POST:
            return responses.method_not_allowed()

        host = request.header("Host")
        if not is_host_valid(host, self.hosts):
            return responses.invalid_host()

        cors = get_cors_allow_origin(request.header("Origin"), host, self.cors_domains)
        if cors.is_invalid:
            return responses.invalid_allow_origin()

        if is_options:
            return responses.options(cors.value_or_none())

        if not is_json(request.header("Content-type")):
            return responses.invalid_content_type()

        try:
            metadata = self.meta_extractor(request)
            result = self.handler.handle_request(request.text(), metadata)
            if isinstance(result, Future):
                result = result.result()
        except Exception:
            _log.exception("Request handling failed")
            return responses.internal_error()

        body = f"{'' if result is None else result}\n"
        return responses.json_response(body, cors.value_or_none())


def _read_request(rfile: BinaryIO) -> Optional[HttpRequest]:
    line = rfile.readline(_MAX_LINE + 1)
    if not line or len(line) > _MAX_LINE:
        return None
    parts = line.decode("latin-1").split()
    if len(parts) != 3:
        return None
    method = parts[0]

    headers: list[tuple[str, bytes]] = []
    while True:
        line = rfile.readline(_MAX_LINE + 1)
        if line in (b"", b"\r\n", b"\n"):
            break
        if len(line) > _MAX_LINE or len(headers) >= _MAX_HEADERS:
            return None
        name, sep, value = line.partition(b":")
        if sep:
            headers.append((name.decode("latin-1").strip(), value.strip()))

    length = 0
    for name, value in headers:
        if name.lower() == "content-length":
            try:
                length = max(int(value), 0)
            except ValueError:
                return None
            break
    body = rfile.read(length) if length else b""
    return HttpRequest(method, headers, body)


class _ConnectionHandler(socketserver.StreamRequestHandler):
    def handle(self) -> None:
        request = _read_request(self.rfile)
        if request is None:
            return
        try:
            response = self.server.service(request)  # type: ignore[attr-defined]
        except Exception:
            _log.exception("HTTP service failed")
            response = responses.internal_error()
        self.wfile.write(response.to_bytes())


class _HttpServer(socketserver.TCPServer):
    allow_reuse_address = True

    def __init__(self, address: tuple[str, int], threads: int) -> None:
        self.address_family = socket.AF_INET6 if ":" in address[0] else socket.AF_INET
        super().__init__(address, _ConnectionHandler)
        self.service: Optional[RpcService] = None
        self._pool = ThreadPoolExecutor(
            max_workers=threads, thread_name_prefix="rpckit-http"
        )

    def process_request(self, request: Any, client_address: Any) -> None:
        self._pool.submit(self._process, request, client_address)

    def _process(self, request: Any, client_address: Any) -> None:
        try:
            self.finish_request(request, client_address)
        except Exception:
            self.handle_error(request, client_address)
        finally:
            self.shutdown_request(request)

    def server_close(self) -> None:
        super().server_close()
        self._pool.shutdown(wait=False)


def _shutdown(tcp_server: _HttpServer) -> None:
    tcp_server.shutdown()
    tcp_server.server_close()


def _parse_address(address: Union[str, tuple]) -> tuple[str, int]:
    if isinstance(address, str):
        host, sep, port = address.rpartition(":")
        if not sep:
            raise ValueError(f"address must be host:port, got {address!r}")
        return host.strip("[]"), int(port)
    return str(address[0]), int(address[1])


class Server:
    """A running HTTP server; closes when closed, left or collected."""

    def __init__(
        self, address: tuple[str, int], tcp_server: _HttpServer, thread: threading.Thread
    ) -> None:
        self.address = address
        self._thread = thread
        self._finalizer = weakref.finalize(self, _shutdown, tcp_server)

    def close(self) -> None:
        """Stop accepting requests and release the socket."""
        self._finalizer()

    def wait(self) -> None:
        """Block until the server has stopped."""
        self._thread.join()

    def __enter__(self) -> "Server":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class ServerBuilder:
    """Configures and starts a JSON-RPC HTTP server.

    By default no CORS headers are sent and the Host header is not
    validated. ``handler`` must provide ``handle_request(text, meta)``.
    """

    def __init__(self, handler: Any, meta_extractor: Optional[MetaExtractor] = None) -> None:
        self._handler = handler
        self._meta_extractor = meta_extractor if meta_extractor is not None else _no_meta
        self._cors_domains: Optional[list] = None
        self._allowed_hosts: Optional[list] = None
        self._threads = 1

    def threads(self, threads: int) -> "ServerBuilder":
        """Set the number of worker threads; must be positive."""
        if threads <= 0:
            raise ValueError("threads must be greater than 0")
        self._threads = threads
        return self

    def cors(self, cors_domains: DomainsValidation) -> "ServerBuilder":
        """Configure the allowed CORS origins."""
        self._cors_domains = cors_domains.as_list()
        return self

    def with_meta_extractor(self, extractor: MetaExtractor) -> "ServerBuilder":
        """Set the function that reads request metadata."""
        self._meta_extractor = extractor
        return self

    def allow_only_bind_host(self) -> "ServerBuilder":
        """Accept only requests whose Host is the bound address."""
        self._allowed_hosts = []
        return self

    def allowed_hosts(self, allowed_hosts: DomainsValidation) -> "ServerBuilder":
        """Set the accepted Host headers; the bound address is always added."""
        self._allowed_hosts = allowed_hosts.as_list()
        return self

    def start_http(self, address: Union[str, tuple]) -> Server:
        """Bind to ``address`` and start serving; raises OSError if binding fails."""
        tcp_server = _HttpServer(_parse_address(address), self._threads)
        local = (str(tcp_server.server_address[0]), int(tcp_server.server_address[1]))
        tcp_server.service = RpcService(
            handler=self._handler,
            meta_extractor=self._meta_extractor,
            hosts=update(self._allowed_hosts, local),
            cors_domains=self._cors_domains,
        )
        thread = threading.Thread(
            target=tcp_server.serve_forever, name="rpckit-http-server", daemon=True
        )
        thread.start()
        return Server(local, tcp_server, thread)
"""JSON-RPC server over standard input and output, one request per line."""

from __future__ import annotations

import logging
import sys
from concurrent.futures import Future
from typing import Any, Optional, TextIO

__all__ = ["ServerBuilder", "process"]

_log = logging.getLogger(__name__)


def process(handler: Any, line: str) -> str:
    """Handle one request line; an empty string when there is no response."""
    result = handler.handle_request(line)
    if isinstance(result, Future):
        result = result.result()
    if result is None:
        _log.info("JSON RPC request produced no response: %r", line)
        return ""
    return result


class ServerBuilder:
    """Serves ``handler`` over line-delimited standard streams."""

    def __init__(self, handler: Any) -> None:
        self.handler = handler

    def build(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
        """Read requests line by line until EOF, writing one response line each."""
        source = sys.stdin if stdin is None else stdin
        sink = sys.stdout if stdout is None else stdout
        for line in source:
            request = line.removesuffix("\n").removesuffix("\r")
            sink.write(process(self.handler, request) + "\n")
            sink.flush()
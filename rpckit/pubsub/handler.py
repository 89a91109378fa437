"""Publish-subscribe extension of a JSON-RPC request handler."""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..errors import ErrorCode, RpcError, to_value
from .subscription import _call, _completed, new_subscription

__all__ = ["PubSubHandler"]

_log = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Alias:
    target: str


@dataclass(frozen=True)
class _Notification:
    func: Callable[[Any, Any], Any]


def _dump(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _error_response(error: RpcError, call_id: Any) -> dict:
    return {"jsonrpc": "2.0", "error": error.to_dict(), "id": call_id}


def _map(future: Future, func: Callable[[Future], Any]) -> Future:
    out: Future = Future()
    future.add_done_callback(lambda done: out.set_result(func(done)))
    return out


def _gather(futures: list) -> Future:
    out: Future = Future()
    lock = threading.Lock()
    remaining = [len(futures)]

    def on_done(_done: Future) -> None:
        with lock:
            remaining[0] -= 1
            finished = remaining[0] == 0
        if finished:
            out.set_result([f.result() for f in futures])

    for future in futures:
        future.add_done_callback(on_done)
    return out


def _respond(future: Future, call_id: Any) -> Future:
    def build(done: Future) -> dict:
        try:
            return {"jsonrpc": "2.0", "result": to_value(done.result()), "id": call_id}
        except RpcError as error:
            return _error_response(error, call_id)
        except Exception:
            _log.exception("RPC method failed")
            return _error_response(RpcError(ErrorCode.INTERNAL_ERROR), call_id)

    return _map(future, build)


class _MetaIoHandler:
    """A JSON-RPC 2.0 request handler whose methods receive metadata."""

    def __init__(self) -> None:
        self._methods: dict = {}

    def add_method(self, name: str, method: Callable[[Any], Any]) -> None:
        self._methods[name] = lambda params, _meta: method(params)

    def add_method_with_meta(self, name: str, method: Callable[[Any, Any], Any]) -> None:
        self._methods[name] = method

    def add_notification(self, name: str, notification: Callable[[Any], Any]) -> None:
        self._methods[name] = _Notification(lambda params, _meta: notification(params))

    def add_alias(self, alias: str, target: str) -> None:
        self._methods[alias] = _Alias(target)

    def extend_with(self, methods: Any) -> None:
        to_dict = getattr(methods, "to_dict", None)
        self._methods.update(to_dict() if callable(to_dict) else methods)

    def _lookup(self, name: str) -> Any:
        entry = self._methods.get(name)
        target = getattr(entry, "target", None)
        if isinstance(target, str) and not callable(entry):
            entry = self._methods.get(target)
            if isinstance(getattr(entry, "target", None), str) and not callable(entry):
                return None
        return entry

    def _handle_call(self, call: Any, meta: Any) -> Future:
        invalid = _completed(_error_response(RpcError(ErrorCode.INVALID_REQUEST), None))
        if (
            not isinstance(call, dict)
            or call.get("jsonrpc") != "2.0"
            or not isinstance(call.get("method"), str)
        ):
            return invalid
        params = call.get("params")
        if params is not None and not isinstance(params, (list, dict)):
            return invalid
        call_id = call.get("id")
        if call_id is not None and (
            isinstance(call_id, bool) or not isinstance(call_id, (int, float, str))
        ):
            return invalid

        entry = self._lookup(call["method"])
        if "id" not in call:
            if isinstance(entry, _Notification):
                try:
                    entry.func(params, meta)
                except Exception:
                    _log.exception("Notification handler failed")
            elif callable(entry):
                _call(entry, params, meta)
            return _completed(None)

        if not callable(entry):
            return _completed(
                _error_response(RpcError(ErrorCode.METHOD_NOT_FOUND), call_id)
            )
        return _respond(_call(entry, params, meta), call_id)

    def handle_request(self, request: str, meta: Any = None) -> Future:
        try:
            data = json.loads(request)
        except ValueError:
            return _completed(_dump(_error_response(RpcError(ErrorCode.PARSE_ERROR), None)))

        if isinstance(data, list):
            if not data:
                return _completed(
                    _dump(_error_response(RpcError(ErrorCode.INVALID_REQUEST), None))
                )

            def collect(done: Future) -> Optional[str]:
                responses = [r for r in done.result() if r is not None]
                return _dump(responses) if responses else None

            return _map(_gather([self._handle_call(c, meta) for c in data]), collect)

        return _map(
            self._handle_call(data, meta),
            lambda done: None if done.result() is None else _dump(done.result()),
        )

    def handle_request_sync(self, request: str, meta: Any = None) -> Optional[str]:
        return self.handle_request(request, meta).result()


class PubSubHandler:
    """A request handler extended with subscription support.

    Wraps ``handler`` (anything with ``add_method_with_meta``), or a
    built-in JSON-RPC 2.0 handler when none is given; other attributes
    are looked up on the wrapped handler.
    """

    def __init__(self, handler: Any = None) -> None:
        self._handler = handler if handler is not None else _MetaIoHandler()

    @property
    def handler(self) -> Any:
        """The wrapped request handler."""
        return self._handler

    def add_subscription(
        self,
        notification: str,
        subscribe: tuple[str, Callable[..., Any]],
        unsubscribe: tuple[str, Callable[..., Any]],
    ) -> None:
        """Register the subscribe and unsubscribe methods of ``notification``."""
        subscribe_name, subscribe_func = subscribe
        unsubscribe_name, unsubscribe_func = unsubscribe
        sub, unsub = new_subscription(notification, subscribe_func, unsubscribe_func)
        self._handler.add_method_with_meta(subscribe_name, sub)
        self._handler.add_method_with_meta(unsubscribe_name, unsub)

    def __getattr__(self, name: str) -> Any:
        if name == "_handler":
            raise AttributeError(name)
        return getattr(self._handler, name)
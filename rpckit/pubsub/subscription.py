"""Subscription primitives: sessions, sinks and subscribers."""

from __future__ import annotations

import json
import logging
import queue
import threading
import weakref
from concurrent.futures import Future, InvalidStateError
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..errors import ErrorCode, RpcError
from .types import PubSubMetadata, SubscriptionId, TransportError

__all__ = [
    "Session",
    "Sink",
    "Subscriber",
    "Subscribe",
    "Unsubscribe",
    "new_subscription",
]

_log = logging.getLogger(__name__)

TransportSender = Callable[[str], Any]


def _completed(value: Any) -> Future:
    future: Future = Future()
    future.set_result(value)
    return future


def _failed(error: BaseException) -> Future:
    future: Future = Future()
    future.set_exception(error)
    return future


def _call(func: Callable[..., Any], *args: Any) -> Future:
    """Call ``func`` and return its outcome as a future."""
    try:
        result = func(*args)
    except Exception as exc:
        return _failed(exc)
    return result if isinstance(result, Future) else _completed(result)


def _subscription_rejected() -> RpcError:
    return RpcError(-32091, "Subscription rejected")


def _subscriptions_unavailable() -> RpcError:
    return RpcError(-32090, "Subscriptions are not available on this transport.")


def _session_of(meta: Any) -> Optional["Session"]:
    getter = getattr(meta, "session", None)
    return getter() if callable(getter) else None


class _SessionState:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.active: dict = {}
        self.on_drop: list = []
        self.closed = False

    def close(self) -> None:
        with self.lock:
            self.closed = True
            active, self.active = self.active, {}
        for (subscription_id, _name), remove in active.items():
            remove(subscription_id)
        with self.lock:
            callbacks, self.on_drop = self.on_drop, []
        for callback in callbacks:
            callback()


class Session(PubSubMetadata):
    """A client session tracking its active subscriptions.

    Closing the session, or its being garbage-collected, unsubscribes
    every active subscription and runs the registered drop callbacks.
    """

    def __init__(self, sender: TransportSender) -> None:
        self.sender = sender
        self._state = _SessionState()
        self._finalizer = weakref.finalize(self, self._state.close)

    def session(self) -> "Session":
        return self

    def on_drop(self, callback: Callable[[], Any]) -> None:
        """Register ``callback`` to run when the session closes."""
        with self._state.lock:
            if not self._state.closed:
                self._state.on_drop.append(callback)
                return
        callback()

    def add_subscription(
        self,
        name: str,
        subscription_id: SubscriptionId,
        remove: Callable[[SubscriptionId], Any],
    ) -> None:
        """Track a subscription; an earlier one with the same id is unsubscribed."""
        key = (subscription_id, name)
        with self._state.lock:
            previous = self._state.active.get(key)
            self._state.active[key] = remove
        if previous is not None:
            _log.warning("SubscriptionId collision. Unsubscribing previous client.")
            previous(subscription_id)

    def remove_subscription(self, name: str, subscription_id: SubscriptionId) -> None:
        """Stop tracking a subscription without unsubscribing it."""
        with self._state.lock:
            self._state.active.pop((subscription_id, name), None)

    def close(self) -> None:
        """Unsubscribe everything and run drop callbacks; runs once."""
        self._finalizer()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        with self._state.lock:
            count = len(self._state.active)
        return f"Session(active_subscriptions={count}, transport={self.sender!r})"


@dataclass(frozen=True)
class Sink:
    """A handle for sending notifications straight to a subscribed client."""

    notification: str
    transport: TransportSender

    def _message(self, params: Any) -> str:
        payload: dict = {"jsonrpc": "2.0", "method": self.notification}
        if params is not None:
            payload["params"] = params
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)

    def notify(self, params: Any) -> None:
        """Send a notification carrying ``params`` to the client."""
        self.transport(self._message(params))


def _reject_dropped(future: Future) -> None:
    try:
        future.set_exception(_subscription_rejected())
    except InvalidStateError:
        pass


class Subscriber:
    """A client asking for a subscription.

    The handler either assigns it an id or rejects it. A subscriber
    discarded without either is rejected.
    """

    def __init__(
        self, notification: str, transport: TransportSender, sender: Future
    ) -> None:
        self.notification = notification
        self.transport = transport
        self._sender = sender
        self._finalizer = weakref.finalize(self, _reject_dropped, sender)

    @classmethod
    def new_test(cls, method: str) -> tuple["Subscriber", Future, "queue.Queue[str]"]:
        """A subscriber with its id future and transport queue, for tests."""
        id_future: Future = Future()
        messages: "queue.Queue[str]" = queue.Queue()
        return cls(method, messages.put, id_future), id_future, messages

    def _settle(self, action: Callable[[Future], None]) -> None:
        self._finalizer.detach()
        try:
            action(self._sender)
        except InvalidStateError:
            raise TransportError("subscription request has already terminated") from None

    def assign_id(self, subscription_id: SubscriptionId) -> Sink:
        """Accept the subscription under ``subscription_id`` and return its sink.

        Raises TransportError if the request has already terminated.
        """
        self._settle(lambda future: future.set_result(subscription_id))
        return Sink(self.notification, self.transport)

    def reject(self, error: RpcError) -> None:
        """Reject the subscription with ``error``.

        Raises TransportError if the request has already terminated.
        """
        self._settle(lambda future: future.set_exception(error))


def _unsubscribe_quietly(
    unsubscribe: Callable[[SubscriptionId], Any], subscription_id: SubscriptionId
) -> None:
    try:
        _call(unsubscribe, subscription_id).result()
    except Exception as exc:
        _log.debug("Unsubscribe of %s failed: %s", subscription_id, exc)


@dataclass(frozen=True)
class Subscribe:
    """The subscribe RPC method of a subscription."""

    notification: str
    subscribe: Callable[[Any, Any, Subscriber], Any]
    unsubscribe: Callable[[SubscriptionId], Any]

    def __call__(self, params: Any, meta: Any) -> Future:
        session = _session_of(meta)
        if session is None:
            return _failed(_subscriptions_unavailable())

        id_future: Future = Future()
        subscriber = Subscriber(self.notification, session.sender, id_future)
        self.subscribe(params, meta, subscriber)
        del subscriber

        result: Future = Future()
        notification = self.notification
        unsubscribe = self.unsubscribe

        def on_settled(settled: Future) -> None:
            error = settled.exception()
            try:
                if error is not None:
                    result.set_exception(error)
                    return
                subscription_id = settled.result()
                session.add_subscription(
                    notification,
                    subscription_id,
                    lambda sid: _unsubscribe_quietly(unsubscribe, sid),
                )
                result.set_result(subscription_id.to_value())
            except InvalidStateError:
                pass

        id_future.add_done_callback(on_settled)
        return result


@dataclass(frozen=True)
class Unsubscribe:
    """The unsubscribe RPC method of a subscription."""

    notification: str
    unsubscribe: Callable[[SubscriptionId], Any]

    def __call__(self, params: Any, meta: Any) -> Future:
        subscription_id = None
        if isinstance(params, list) and len(params) == 1:
            subscription_id = SubscriptionId.parse_value(params[0])
        session = _session_of(meta)
        if session is None:
            return _failed(_subscriptions_unavailable())
        if subscription_id is None:
            return _failed(
                RpcError(ErrorCode.INVALID_PARAMS, "Expected subscription id.")
            )
        session.remove_subscription(self.notification, subscription_id)
        return _call(self.unsubscribe, subscription_id)


def new_subscription(
    notification: str,
    subscribe: Callable[[Any, Any, Subscriber], Any],
    unsubscribe: Callable[[SubscriptionId], Any],
) -> tuple[Subscribe, Unsubscribe]:
    """Create the subscribe and unsubscribe RPC methods for ``notification``."""
    return (
        Subscribe(notification, subscribe, unsubscribe),
        Unsubscribe(notification, unsubscribe),
    )
"""Publish-subscribe handles that serialize values automatically."""

from __future__ import annotations

import queue
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from .errors import RpcError, to_value
from .pubsub.subscription import Sink, Subscriber
from .pubsub.types import SubscriptionId

__all__ = ["TypedSubscriber", "TypedSink"]

T = TypeVar("T")


def _as_id(subscription_id: Union[SubscriptionId, int, str]) -> SubscriptionId:
    if isinstance(subscription_id, SubscriptionId):
        return subscription_id
    return SubscriptionId(subscription_id)


@dataclass(frozen=True)
class TypedSink(Generic[T]):
    """Sends results or errors to a subscriber as subscription notifications."""

    sink: Sink
    subscription_id: SubscriptionId

    def _send(self, key: str, value: Any) -> None:
        self.sink.notify({key: value, "subscription": self.subscription_id.to_value()})

    def notify(self, value: T) -> None:
        """Send ``value`` as the result of the subscription."""
        self._send("result", to_value(value))

    def notify_error(self, error: Any) -> None:
        """Send ``error`` as the error of the subscription."""
        payload = error.to_dict() if isinstance(error, RpcError) else to_value(error)
        self._send("error", payload)


class TypedSubscriber(Generic[T]):
    """A subscriber whose sink serializes the values it sends."""

    def __init__(self, subscriber: Subscriber) -> None:
        self._subscriber = subscriber

    @classmethod
    def new_test(
        cls, method: str
    ) -> tuple["TypedSubscriber[T]", Future, "queue.Queue[str]"]:
        """A subscriber with its id future and transport queue, for tests."""
        subscriber, id_future, messages = Subscriber.new_test(method)
        return cls(subscriber), id_future, messages

    def reject(self, error: RpcError) -> None:
        """Reject the subscription; raises TransportError if already settled."""
        self._subscriber.reject(error)

    def assign_id(
        self, subscription_id: Union[SubscriptionId, int, str]
    ) -> TypedSink[T]:
        """Accept the subscription and return its sink.

        Raises TransportError if the request has already terminated.
        """
        subscription_id = _as_id(subscription_id)
        sink = self._subscriber.assign_id(subscription_id)
        return TypedSink(sink, subscription_id)
"""A set of RPC methods bound to one delegate object."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from .pubsub.handler import _Notification
from .pubsub.subscription import new_subscription

__all__ = ["Alias", "IoDelegate"]


@dataclass(frozen=True)
class Alias:
    """A method name that refers to another registered method."""

    target: str


@dataclass(frozen=True, eq=False)
class _DelegateMethod:
    delegate: Any
    closure: Callable[..., Any]
    with_meta: bool

    def __call__(self, params: Any, meta: Any) -> Any:
        if self.with_meta:
            return self.closure(self.delegate, params, meta)
        return self.closure(self.delegate, params)


class IoDelegate:
    """RPC methods, notifications and subscriptions tied to ``delegate``.

    Every registered callable receives the delegate as its first argument.
    The collected entries can be merged into a request handler with
    ``extend_with``.
    """

    def __init__(self, delegate: Any) -> None:
        self.delegate = delegate
        self._methods: dict[str, Any] = {}

    def add_alias(self, alias: str, target: str) -> None:
        """Make ``alias`` call ``target``; aliases of aliases are not followed."""
        self._methods[alias] = Alias(target)

    def add_method(self, name: str, method: Callable[[Any, Any], Any]) -> None:
        """Register ``method(delegate, params)`` under ``name``."""
        self._methods[name] = _DelegateMethod(self.delegate, method, False)

    def add_method_with_meta(
        self, name: str, method: Callable[[Any, Any, Any], Any]
    ) -> None:
        """Register ``method(delegate, params, meta)`` under ``name``."""
        self._methods[name] = _DelegateMethod(self.delegate, method, True)

    def add_notification(
        self, name: str, notification: Callable[[Any, Any], Any]
    ) -> None:
        """Register ``notification(delegate, params)`` under ``name``."""
        delegate = self.delegate
        self._methods[name] = _Notification(
            lambda params, _meta: notification(delegate, params)
        )

    def add_subscription(
        self,
        name: str,
        subscribe: tuple[str, Callable[..., Any]],
        unsubscribe: tuple[str, Callable[..., Any]],
    ) -> None:
        """Register the subscribe and unsubscribe methods of notification ``name``.

        ``subscribe`` is ``(method name, func(delegate, params, meta, subscriber))``
        and ``unsubscribe`` is ``(method name, func(delegate, subscription_id))``.
        """
        subscribe_name, subscribe_func = subscribe
        unsubscribe_name, unsubscribe_func = unsubscribe
        delegate = self.delegate
        sub, unsub = new_subscription(
            name,
            lambda params, meta, subscriber: subscribe_func(
                delegate, params, meta, subscriber
            ),
            lambda subscription_id: unsubscribe_func(delegate, subscription_id),
        )
        self.add_method_with_meta(
            subscribe_name, lambda _base, params, meta: sub(params, meta)
        )
        self.add_method_with_meta(
            unsubscribe_name, lambda _base, params, meta: unsub(params, meta)
        )

    def to_dict(self) -> dict[str, Any]:
        """The registered entries keyed by method name."""
        return dict(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def __contains__(self, name: object) -> bool:
        return name in self._methods
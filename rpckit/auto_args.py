"""Typed wrappers that unpack JSON-RPC params and serialize results."""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from .errors import ErrorCode, RpcError, expect_no_params, invalid_params, to_value
from .pubsub.subscription import _call, _failed
from .pubsub.types import TransportError

__all__ = [
    "MAX_ARITY",
    "Trailing",
    "params_len",
    "require_len",
    "parse_trailing_param",
    "wrap_method",
    "wrap_meta_method",
    "wrap_subscribe",
]

T = TypeVar("T")

MAX_ARITY = 6


@dataclass(frozen=True)
class Trailing(Generic[T]):
    """An optional last parameter that the caller may leave out."""

    value: Optional[T] = None

    def unwrap_or(self, other: T) -> T:
        """The value if present, otherwise ``other``."""
        return other if self.value is None else self.value

    def unwrap_or_else(self, func: Callable[[], T]) -> T:
        """The value if present, otherwise the result of ``func()``."""
        return func() if self.value is None else self.value

    def unwrap_or_default(self, factory: Callable[[], T]) -> T:
        """The value if present, otherwise the default made by ``factory``."""
        return factory() if self.value is None else self.value


def params_len(params: Any) -> int:
    """Number of positional params; raises unless params are an array or absent."""
    if params is None:
        return 0
    if isinstance(params, list):
        return len(params)
    raise invalid_params("`params` should be an array", "")


def require_len(params: Any, required: int) -> int:
    """Number of positional params, raising if fewer than ``required``."""
    length = params_len(params)
    if length < required:
        raise invalid_params(
            f"`params` should have at least {required} argument(s)", ""
        )
    return length


def parse_trailing_param(params: Any) -> Trailing:
    """Read params holding at most one optional value."""
    length = params_len(params)
    if length == 0:
        return Trailing()
    if length == 1:
        return Trailing(params[0])
    raise invalid_params("Expecting only one optional parameter.", "")


def _parse_error(detail: str) -> RpcError:
    return RpcError(ErrorCode.INVALID_PARAMS, f"Invalid params: {detail}.")


def _kind(params: Any) -> str:
    if params is None:
        return "null"
    if isinstance(params, dict):
        return "map"
    return type(params).__name__


def _parse_exact(params: Any, arity: int) -> list:
    if not isinstance(params, list):
        raise _parse_error(
            f"invalid type: {_kind(params)}, expected a tuple of size {arity}"
        )
    if len(params) < arity:
        raise _parse_error(
            f"invalid length {len(params)}, expected a tuple of size {arity}"
        )
    if len(params) > arity:
        raise _parse_error(
            f"invalid length {len(params)}, expected fewer elements in array"
        )
    return list(params)


def _parse_args(params: Any, arity: int, trailing: bool) -> list:
    if not trailing:
        if arity == 0:
            expect_no_params(params)
            return []
        return _parse_exact(params, arity)

    if arity == 0:
        return [parse_trailing_param(params)]

    length = require_len(params, arity)
    extra = length - arity
    if extra == 0:
        return [*_parse_exact(params, arity), Trailing()]
    if extra == 1:
        *head, last = params
        return [*head, Trailing(last)]
    raise invalid_params(
        f"Expected {arity} or {arity + 1} parameters.", f"Got: {length}"
    )


def _check_arity(arity: int) -> None:
    if isinstance(arity, bool) or not isinstance(arity, int):
        raise TypeError(f"arity must be an int, not {type(arity).__name__}")
    if not 0 <= arity <= MAX_ARITY:
        raise ValueError(f"arity must be between 0 and {MAX_ARITY}, got {arity}")


def _as_value(future: Future) -> Future:
    out: Future = Future()

    def on_done(done: Future) -> None:
        error = done.exception()
        if error is not None:
            out.set_exception(error)
            return
        try:
            out.set_result(to_value(done.result()))
        except TypeError as exc:
            out.set_exception(exc)

    future.add_done_callback(on_done)
    return out


def wrap_method(
    func: Callable[..., Any], arity: int, trailing: bool = False
) -> Callable[[Any, Any], Future]:
    """Wrap ``func(base, *args)`` as ``(base, params) -> Future`` of a JSON value.

    ``arity`` is the number of required positional params; with ``trailing``
    one more optional param is passed as a :class:`Trailing`.
    """
    _check_arity(arity)

    def wrapped(base: Any, params: Any) -> Future:
        try:
            args = _parse_args(params, arity, trailing)
        except RpcError as error:
            return _failed(error)
        return _as_value(_call(func, base, *args))

    return wrapped


def wrap_meta_method(
    func: Callable[..., Any], arity: int, trailing: bool = False
) -> Callable[[Any, Any, Any], Future]:
    """Wrap ``func(base, meta, *args)`` as ``(base, params, meta) -> Future``."""
    _check_arity(arity)

    def wrapped(base: Any, params: Any, meta: Any) -> Future:
        try:
            args = _parse_args(params, arity, trailing)
        except RpcError as error:
            return _failed(error)
        return _as_value(_call(func, base, meta, *args))

    return wrapped


def wrap_subscribe(
    func: Callable[..., Any], arity: int, trailing: bool = False
) -> Callable[[Any, Any, Any, Any], None]:
    """Wrap ``func(base, meta, subscriber, *args)`` as a subscribe handler.

    The handler receives a typed subscriber; bad params reject the
    subscription instead of calling ``func``.
    """
    _check_arity(arity)

    def wrapped(base: Any, params: Any, meta: Any, subscriber: Any) -> None:
        try:
            args = _parse_args(params, arity, trailing)
        except RpcError as error:
            try:
                subscriber.reject(error)
            except TransportError:
                pass
            return
        from .typed_pubsub import TypedSubscriber

        func(base, meta, TypedSubscriber(subscriber), *args)

    return wrapped
"""JSON-RPC error values and parameter/value helpers."""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import IntEnum
from typing import Any, Optional, Union

__all__ = [
    "ErrorCode",
    "RpcError",
    "invalid_params",
    "expect_no_params",
    "to_value",
]


class ErrorCode(IntEnum):
    """Error codes defined by the JSON-RPC 2.0 specification."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    @property
    def description(self) -> str:
        """The standard message for this code."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ErrorCode.PARSE_ERROR: "Parse error",
    ErrorCode.INVALID_REQUEST: "Invalid request",
    ErrorCode.METHOD_NOT_FOUND: "Method not found",
    ErrorCode.INVALID_PARAMS: "Invalid params",
    ErrorCode.INTERNAL_ERROR: "Internal error",
}


def _coerce_code(code: int) -> Union[ErrorCode, int]:
    try:
        return ErrorCode(code)
    except ValueError:
        return int(code)


class RpcError(Exception):
    """A JSON-RPC error: code, message and optional data.

    Codes outside the standard set are server-defined errors.
    """

    def __init__(
        self, code: int, message: Optional[str] = None, data: Any = None
    ) -> None:
        self.code = _coerce_code(code)
        if message is None:
            message = (
                self.code.description
                if isinstance(self.code, ErrorCode)
                else "Server error"
            )
        super().__init__(message)
        self.message = message
        self.data = data

    def to_dict(self) -> dict:
        """The error object as it appears in a response."""
        result: dict = {"code": int(self.code), "message": self.message}
        if self.data is not None:
            result["data"] = self.data
        return result

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RpcError):
            return NotImplemented
        return (int(self.code), self.message, self.data) == (
            int(other.code),
            other.message,
            other.data,
        )

    def __hash__(self) -> int:
        return hash((int(self.code), self.message))

    def __repr__(self) -> str:
        return f"RpcError({int(self.code)}, {self.message!r}, {self.data!r})"


def _debug(details: Any) -> str:
    if isinstance(details, str):
        return json.dumps(details, ensure_ascii=False)
    return repr(details)


def invalid_params(param: str, details: Any) -> RpcError:
    """An invalid-params error describing ``param`` with ``details`` as data."""
    return RpcError(
        ErrorCode.INVALID_PARAMS,
        f"Couldn't parse parameters: {param}",
        _debug(details),
    )


def expect_no_params(params: Any) -> None:
    """Raise an invalid-params error unless ``params`` is absent or empty."""
    if params is None or (isinstance(params, list) and not params):
        return
    raise invalid_params("No parameters were expected", params)


def to_value(value: Any) -> Any:
    """Convert ``value`` into a JSON-compatible value.

    Objects with a ``to_value`` method are converted through it.
    Raises TypeError for anything that cannot be represented.
    """
    if value is None or isinstance(value, (bool, str)):
        return value
    converter = getattr(value, "to_value", None)
    if callable(converter):
        return to_value(converter())
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"object keys must be strings, not {type(key).__name__}")
            result[key] = to_value(item)
        return result
    if isinstance(value, (list, tuple)):
        return [to_value(item) for item in value]
    raise TypeError(f"value of type {type(value).__name__} is not serializable")
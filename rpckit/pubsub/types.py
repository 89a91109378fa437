"""Types shared by the publish-subscribe extension."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Union

if TYPE_CHECKING:
    from .subscription import Session

__all__ = ["PubSubMetadata", "SubscriptionId", "TransportError"]

_U64_MAX = 2**64 - 1


class TransportError(Exception):
    """Raised when a message cannot be delivered to the client."""


class PubSubMetadata(ABC):
    """Request metadata that may carry a client session."""

    @abstractmethod
    def session(self) -> Optional["Session"]:
        """The session of the client, or None if the transport has none."""


@dataclass(frozen=True)
class SubscriptionId:
    """Unique subscription id: an unsigned 64-bit number or a string.

    Assigning the same id to different requests unsubscribes the earlier one.
    """

    value: Union[int, str]

    def __post_init__(self) -> None:
        value = self.value
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            raise TypeError(
                f"subscription id must be int or str, not {type(value).__name__}"
            )
        if isinstance(value, int) and not 0 <= value <= _U64_MAX:
            raise ValueError(f"subscription id out of range: {value}")

    @classmethod
    def parse_value(cls, value: Any) -> Optional["SubscriptionId"]:
        """Read a JSON value as a subscription id, or return None."""
        if isinstance(value, str):
            return cls(value)
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value <= _U64_MAX:
                return cls(value)
        return None

    def to_value(self) -> Union[int, str]:
        """The id as a JSON value."""
        return self.value

    def __str__(self) -> str:
        return str(self.value)
"""Pushing messages to connected TCP peers."""

from __future__ import annotations

import threading
from typing import Any, Callable, Hashable, Optional

__all__ = ["PushMessageError", "NoSuchPeerError", "SenderChannels", "Dispatcher"]

Sender = Callable[[str], Any]


class PushMessageError(Exception):
    """A message could not be delivered to a peer."""


class NoSuchPeerError(PushMessageError):
    """The peer is not connected."""


class SenderChannels:
    """Thread-safe map from peer address to the peer's sender."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._senders: dict = {}

    def insert(self, peer_addr: Hashable, sender: Sender) -> None:
        """Register the sender of ``peer_addr``."""
        with self._lock:
            self._senders[peer_addr] = sender

    def remove(self, peer_addr: Hashable) -> None:
        """Forget ``peer_addr``; does nothing if unknown."""
        with self._lock:
            self._senders.pop(peer_addr, None)

    def get(self, peer_addr: Hashable) -> Optional[Sender]:
        """The sender of ``peer_addr``, or None."""
        with self._lock:
            return self._senders.get(peer_addr)

    def peers(self) -> list:
        """Addresses of the connected peers."""
        with self._lock:
            return list(self._senders)

    def __contains__(self, peer_addr: object) -> bool:
        with self._lock:
            return peer_addr in self._senders

    def __len__(self) -> int:
        with self._lock:
            return len(self._senders)


class Dispatcher:
    """Sends messages to connected peers."""

    def __init__(self, channels: Optional[SenderChannels] = None) -> None:
        self.channels = SenderChannels() if channels is None else channels

    def push_message(self, peer_addr: Hashable, msg: str) -> None:
        """Send ``msg`` to ``peer_addr``.

        Raises NoSuchPeerError for an unknown peer and PushMessageError
        when sending fails.
        """
        sender = self.channels.get(peer_addr)
        if sender is None:
            raise NoSuchPeerError(f"no such peer: {peer_addr!r}")
        try:
            sender(msg)
        except Exception as exc:
            raise PushMessageError(f"cannot send to {peer_addr!r}: {exc}") from exc

    def is_connected(self, peer_addr: Hashable) -> bool:
        """Return True if the peer is still connected."""
        return peer_addr in self.channels

    def peer_count(self) -> int:
        """Number of connected peers."""
        return len(self.channels)
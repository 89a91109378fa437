"""Session statistics hooks."""

from __future__ import annotations

from abc import ABC, abstractmethod

__all__ = ["SessionId", "SessionStats"]

SessionId = int


class SessionStats(ABC):
    """Keeps track of open sessions."""

    @abstractmethod
    def open_session(self, session_id: SessionId) -> None:
        """Called when a new session is opened."""

    @abstractmethod
    def close_session(self, session_id: SessionId) -> None:
        """Called when a session is closed."""
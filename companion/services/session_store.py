"""
SESSION STORE MODULE
====================

Where conversation histories live between requests. The chat service only
talks to the SessionStore interface (get / put / clear), so the in-memory
store below can be swapped for Redis or a database without touching the
conversation logic.

InMemorySessionStore keeps one history per session key for the lifetime of
the process. Nothing is written to disk; a restart starts every session empty.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from companion.models import ChatMessage
from companion.services.conversation_window import clear_history


class SessionStore(ABC):
    """
    Abstract session -> history store.

    get() must return a list the caller may modify freely without affecting
    stored state; put() replaces the stored history wholesale.
    """

    @abstractmethod
    def get(self, key: str) -> List[ChatMessage]:
        """Return the history for key, or an empty list for an unknown session."""

    @abstractmethod
    def put(self, key: str, history: Sequence[ChatMessage]) -> None:
        """Replace the stored history for key."""

    @abstractmethod
    def clear(self, key: str) -> None:
        """Reset key to an empty history. Idempotent."""

    @abstractmethod
    def keys(self) -> List[str]:
        """Keys of the sessions currently held."""

    def __contains__(self, key: object) -> bool:
        return key in self.keys()


class InMemorySessionStore(SessionStore):
    """
    Dict-backed store. With ttl_seconds > 0, a session that has not been
    touched for that long is dropped, either the next time anyone looks at it
    or by the sweep that put() runs at most once per sweep interval.
    Clearing a session removes its entry; an absent key reads as empty.
    """

    # Upper bound on the time between two sweeps of expired sessions.
    SWEEP_INTERVAL_SECONDS = 60.0

    def __init__(self, ttl_seconds: float = 0.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        # key -> (last touched, history)
        self._sessions: Dict[str, Tuple[float, Tuple[ChatMessage, ...]]] = {}
        self._last_sweep = clock()

    def _expired(self, touched_at: float) -> bool:
        return self.ttl_seconds > 0 and self._clock() - touched_at > self.ttl_seconds

    def _lookup(self, key: str) -> Optional[Tuple[ChatMessage, ...]]:
        entry = self._sessions.get(key)
        if entry is None:
            return None
        touched_at, history = entry
        if self._expired(touched_at):
            del self._sessions[key]
            return None
        return history

    def _sweep(self) -> None:
        if self.ttl_seconds <= 0:
            return
        now = self._clock()
        if now - self._last_sweep < min(self.ttl_seconds, self.SWEEP_INTERVAL_SECONDS):
            return
        self._last_sweep = now
        for key, (touched_at, _) in list(self._sessions.items()):
            if self._expired(touched_at):
                del self._sessions[key]

    def get(self, key: str) -> List[ChatMessage]:
        history = self._lookup(key)
        return list(history) if history is not None else clear_history()

    def put(self, key: str, history: Sequence[ChatMessage]) -> None:
        self._sweep()
        self._sessions[key] = (self._clock(), tuple(history))

    def clear(self, key: str) -> None:
        self._sessions.pop(key, None)

    def keys(self) -> List[str]:
        return [key for key in list(self._sessions) if self._lookup(key) is not None]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._lookup(key) is not None

    def __len__(self) -> int:
        return len(self.keys())

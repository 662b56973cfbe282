"""
ERRORS MODULE
=============

Exceptions raised by the chat core and its collaborators. None of them are
caught inside the services; they travel up to companion.main, which turns
each one into an HTTP status:

  PersonaNotFound    -> 404  unknown persona id (client error, not retried)
  InvalidInput       -> 400  empty user message (client error)
  CompletionFailure  -> 503  model call failed; 429 when rate limited (safe to retry)
  SessionUnavailable -> 503  no session store / chat service available
"""

from typing import Iterable, Optional


class CompanionError(Exception):
    """Base class for every error raised by the companion services."""


class PersonaNotFound(CompanionError):
    """The requested persona id is not in the registry."""

    def __init__(self, persona_id: str, available: Optional[Iterable[str]] = None):
        self.persona_id = persona_id
        self.available = sorted(available) if available is not None else []
        super().__init__(f"Persona '{persona_id}' not found")


class InvalidInput(CompanionError):
    """The request is missing something the core needs (e.g. an empty message)."""


class CompletionFailure(CompanionError):
    """
    The model call did not produce a usable reply (timeout, quota, transport
    error, empty or malformed content). History is never updated when this is raised.
    """

    def __init__(self, message: str = "Completion failed", rate_limited: bool = False):
        self.rate_limited = rate_limited
        super().__init__(message)


class SessionUnavailable(CompanionError):
    """No session context is available; a deployment problem, not a per-request one."""

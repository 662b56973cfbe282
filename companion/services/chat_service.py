"""
CHAT SERVICE MODULE
===================

Runs one chat turn end to end for a session:

  1. Lock the session (turns on the same session run one at a time, in arrival order).
  2. Read the stored history and assemble [system] + history + [user].
  3. Await the completion service.
  4. Only if a reply came back: record the exchange (bounded window) and store it.

If step 3 fails the stored history is left exactly as it was, and the error
goes up to the API layer unchanged. Once the reply is obtained it is recorded
even if the client has already gone away; history reflects what was answered,
not what was delivered.

Different sessions never share a lock, so their turns run in parallel.
"""

import asyncio
import logging
import uuid
import weakref
from dataclasses import dataclass
from typing import List, Optional, Sequence

from companion.models import ChatMessage
from companion.services.conversation_window import assemble_turn, record_turn
from companion.services.persona_registry import PersonaRegistry, default_registry
from companion.services.session_store import SessionStore
from companion.utils.time_info import get_timestamp
from config import DEFAULT_TEMPERATURE, MAX_HISTORY_LENGTH

logger = logging.getLogger("companion")


@dataclass(frozen=True)
class ChatTurn:
    response: str
    persona_id: str
    session_id: str
    timestamp: str


class ChatService:
    """
    Owns the session store and the per-session locks. The completion argument is
    anything with `async complete(messages, temperature) -> str` (normally LLMService).
    """

    def __init__(
        self,
        store: SessionStore,
        completion,
        registry: Optional[PersonaRegistry] = None,
        max_history_length: int = MAX_HISTORY_LENGTH,
        default_temperature: float = DEFAULT_TEMPERATURE,
    ):
        if max_history_length < 1:
            raise ValueError("max_history_length must be a positive integer")
        self.store = store
        self.completion = completion
        self.registry = registry if registry is not None else default_registry
        self.max_history_length = max_history_length
        self.default_temperature = default_temperature
        # Locks live only while some turn holds or waits on them.
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    def lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def process_turn(
        self,
        session_id: str,
        persona_id: str,
        message: str,
        temperature: Optional[float] = None,
    ) -> ChatTurn:
        if temperature is None:
            temperature = self.default_temperature

        async with self.lock_for(session_id):
            history = self.store.get(session_id)
            assembled, resolved_persona = assemble_turn(history, persona_id, message, self.registry)
            logger.info(
                "Turn started: session=%s persona=%s history=%s temperature=%.2f",
                session_id, resolved_persona, len(history), temperature,
            )

            reply = await self.completion.complete(assembled, temperature)

            updated = record_turn(history, message, reply, self.max_history_length)
            self.store.put(session_id, updated)
            logger.info("Turn recorded: session=%s history=%s", session_id, len(updated))

        return ChatTurn(
            response=reply,
            persona_id=resolved_persona,
            session_id=session_id,
            timestamp=get_timestamp(),
        )

    async def clear(self, session_id: str) -> None:
        # Waits for any in-flight turn on this session so the clear is not overwritten by it.
        async with self.lock_for(session_id):
            self.store.clear(session_id)
        logger.info("History cleared: session=%s", session_id)

    def history(self, session_id: str) -> List[ChatMessage]:
        return self.store.get(session_id)

    def personas(self) -> Sequence:
        return self.registry.personas()

"""
CONVERSATION WINDOW MODULE
==========================

Pure functions that build the message list for each model call and keep the
stored history bounded. Nothing here touches the session store, logs, or
retries; the chat service decides when to read and when to write.

  assemble_turn  - [system prompt] + history + [new user message]; never stores anything.
  record_turn    - history + user + assistant, then drop the oldest messages
                   until the window fits max_length. Returns a new list.
  clear_history  - an empty history.

The system prompt is never part of the stored history; it is injected fresh
every time a turn is assembled.
"""

from typing import List, Optional, Sequence, Tuple

from companion.errors import InvalidInput
from companion.models import ChatMessage
from companion.services.persona_registry import PersonaRegistry, default_registry

DEFAULT_MAX_HISTORY_LENGTH = 6


def assemble_turn(
    history: Sequence[ChatMessage],
    persona_id: str,
    user_message: str,
    registry: Optional[PersonaRegistry] = None,
) -> Tuple[List[ChatMessage], str]:
    """
    Build the exact message sequence for one model call.

    Raises InvalidInput for an empty (or whitespace-only) message and lets
    PersonaNotFound from the registry through untouched. The history is only
    read; the returned list is a new object.
    """
    if not user_message or not user_message.strip():
        raise InvalidInput("Message must not be empty")

    registry = registry if registry is not None else default_registry
    system_prompt = registry.resolve(persona_id)

    assembled = [ChatMessage.system(system_prompt)]
    assembled.extend(history)
    assembled.append(ChatMessage.user(user_message))
    return assembled, persona_id


def record_turn(
    history: Sequence[ChatMessage],
    user_message: str,
    assistant_response: str,
    max_length: int = DEFAULT_MAX_HISTORY_LENGTH,
) -> List[ChatMessage]:
    """
    Append one exchange and evict from the front (oldest first) until
    len <= max_length. When max_length < 2 the older half of the new
    exchange goes too; the length bound always wins.
    """
    if max_length < 1:
        raise ValueError(f"max_length must be a positive integer, got {max_length}")

    updated = list(history)
    updated.append(ChatMessage.user(user_message))
    updated.append(ChatMessage.assistant(assistant_response))

    overflow = len(updated) - max_length
    if overflow > 0:
        del updated[:overflow]
    return updated


def clear_history() -> List[ChatMessage]:
    return []

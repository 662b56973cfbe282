"""
DATA MODELS MODULE
==================

Pydantic models used for API requests, responses, and the stored conversation
history. FastAPI uses them to validate incoming JSON and to serialize
responses; the services use ChatMessage for every message they build or store.

MODELS:
  ChatMessage        - One immutable message (role + content). History is a list of these.
  ChatRequest        - Body of POST /api/chat (message, persona_id, temperature, session_id).
  ChatResponse       - Body returned by POST /api/chat.
  ClearRequest       - Body of POST /api/chat/clear.
  ClearResponse      - Acknowledgement returned by POST /api/chat/clear.
  HistoryResponse    - Body returned by GET /api/chat/history/{session_id}.
  PersonaSummary     - One entry of GET /api/personas.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from config import MAX_MESSAGE_LENGTH

# Session ids come back from the client; keep them short and filename/URL safe.
SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]{1,128}$"

Role = Literal["system", "user", "assistant"]

# ==============================================================================
# MESSAGES
# ==============================================================================

class ChatMessage(BaseModel):
    """
    A single message in a conversation. Frozen: once created it never changes.
    Stored in order inside a session; order defines chronology.
    """
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        return cls(role="assistant", content=content)


# ==============================================================================
# REQUEST / RESPONSE MODELS
# ==============================================================================

class ChatRequest(BaseModel):
    """
    Request body for POST /api/chat.

    - message: The user's message. Emptiness is checked by the chat core (400),
      overly long input is rejected here (422).
    - persona_id: Which character answers (e.g. "aiko").
    - temperature: Optional override, 0.0-2.0. Omitted means the server default.
    - session_id: Optional. Omit it on the first turn; the server creates a
      session and returns its id. Send it back to continue the conversation.
    """
    message: str = Field(..., max_length=MAX_MESSAGE_LENGTH)
    persona_id: str = Field(..., min_length=1, max_length=64)
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    session_id: Optional[str] = Field(None, pattern=SESSION_ID_PATTERN)


class ChatResponse(BaseModel):
    """Reply text plus the persona that answered, the session id and an ISO-8601 UTC timestamp."""
    response: str
    persona_id: str
    session_id: str
    timestamp: str


class ClearRequest(BaseModel):
    session_id: str = Field(..., pattern=SESSION_ID_PATTERN)


class ClearResponse(BaseModel):
    message: str
    session_id: str


class HistoryResponse(BaseModel):
    session_id: str
    messages: List[ChatMessage]


class PersonaSummary(BaseModel):
    id: str
    name: str

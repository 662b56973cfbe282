"""
COMPANION MAIN API
==================

This module defines the FastAPI application and all HTTP endpoints. Callers
pick a persona, send a message, and get the character's reply; the server
keeps the last few messages of each session so the character remembers the
conversation.

ENDPOINTS:
  GET  /                            - Returns API name and list of endpoints.
  GET  /api/health                  - Returns status of all services (for monitoring).
  GET  /api/personas                - Lists the personas a client may choose from.
  POST /api/chat                    - One chat turn with a persona.
  POST /api/chat/clear              - Forget the conversation for a session.
  GET  /api/chat/history/{id}       - Returns the stored messages for a session.

SESSION:
  Omit session_id on the first /api/chat call; the server generates one and
  returns it. Send it back on later calls to continue the conversation.
  Sessions live in memory only and are gone after a restart.

AUTH:
  If API_AUTH_TOKEN is set, every /api/chat* route requires
  "Authorization: Bearer <token>". Account management is handled elsewhere.

ERRORS:
  Unknown persona -> 404, empty message -> 400, model failure -> 503 (429 when
  rate limited). Anything unexpected -> 500 with a generic message; details
  only go to the server log.
"""

from fastapi import Depends, FastAPI, HTTPException, Path
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from contextlib import asynccontextmanager
from typing import List, Optional
import logging
import secrets

import uvicorn

from companion.errors import CompletionFailure, InvalidInput, PersonaNotFound, SessionUnavailable
from companion.models import (
    ChatRequest,
    ChatResponse,
    ClearRequest,
    ClearResponse,
    HistoryResponse,
    PersonaSummary,
    SESSION_ID_PATTERN,
)
from companion.services.chat_service import ChatService
from companion.services.llm_service import LLMService
from companion.services.session_store import InMemorySessionStore
from config import API_AUTH_TOKEN, CORS_ALLOW_ORIGINS, HOST, PORT, SESSION_TTL_SECONDS

# User-facing messages; internal error details never go back to the client.
RATE_LIMIT_MESSAGE = (
    "Too many requests to the model right now. "
    "Please wait a moment and try again."
)
COMPLETION_FAILED_MESSAGE = "The character could not answer right now. Please try again."
GENERIC_ERROR_MESSAGE = "Failed to process chat message"


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger("companion")


# -----------------------------------------------------------------------------
# GLOBAL SERVICE REFERENCES
# -----------------------------------------------------------------------------
# Set during startup (lifespan) and used by all route handlers.
llm_service: Optional[LLMService] = None
chat_service: Optional[ChatService] = None


# -------------------------------------------------------------------------
# LIFESPAN (STARTUP / SHUTDOWN)
# -------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the services once at startup:
      1. LLMService: Groq client settings and API key rotation.
      2. ChatService: in-memory session store + persona registry + LLMService.
    On shutdown the in-memory sessions are simply dropped.
    """
    global llm_service, chat_service

    logger.info("=" * 60)
    logger.info("Companion - Starting Up...")
    logger.info("=" * 60)

    try:
        llm_service = LLMService()
        chat_service = ChatService(InMemorySessionStore(ttl_seconds=SESSION_TTL_SECONDS), llm_service)
    except Exception as e:
        logger.error(f"Fatal error during startup: {e}", exc_info=True)
        raise

    if not API_AUTH_TOKEN:
        logger.warning("API_AUTH_TOKEN not set. Chat endpoints are open to any caller.")

    logger.info("Personas: %s", ", ".join(chat_service.registry.ids()))
    logger.info("History window: %s messages", chat_service.max_history_length)
    logger.info("Companion is online and ready!")
    logger.info("=" * 60)

    yield

    logger.info("Shutting down Companion. %s session(s) discarded.", len(chat_service.store.keys()))
    chat_service = None
    llm_service = None


# -------------------------------------------------------------------------
# FASTAPI APP AND CORS
# -------------------------------------------------------------------------
app = FastAPI(
    title="Companion API",
    description="Persona chat backend",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------------------------------------------------
# DEPENDENCIES
# -------------------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=False)


def require_auth(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> None:
    """Check the bearer token when API_AUTH_TOKEN is configured; no-op otherwise."""
    if not API_AUTH_TOKEN:
        return
    if credentials is None or not secrets.compare_digest(credentials.credentials, API_AUTH_TOKEN):
        raise HTTPException(
            status_code=401,
            detail="Invalid or missing token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_chat_service() -> ChatService:
    if chat_service is None:
        raise SessionUnavailable("Chat service not initialized")
    return chat_service


def _service_or_503() -> ChatService:
    try:
        return get_chat_service()
    except SessionUnavailable as e:
        logger.error(f"Session store unavailable: {e}")
        raise HTTPException(status_code=503, detail="Chat service not initialized")


# =========================================================================
# API ENDPOINTS
# =========================================================================

@app.get("/")
async def root():
    """Return the API name and a short description of each endpoint (for discovery)."""
    return {
        "message": "Companion API",
        "endpoints": {
            "/api/personas": "List available personas",
            "/api/chat": "Chat with a persona",
            "/api/chat/clear": "Clear conversation history",
            "/api/chat/history/{session_id}": "Get chat history",
            "/api/health": "System health check"
        }
    }


@app.get("/api/health")
async def health():
    """Return 'healthy' and whether each service is initialized."""
    return {
        "status": "healthy",
        "llm_service": llm_service is not None,
        "chat_service": chat_service is not None
    }


@app.get("/api/personas", response_model=List[PersonaSummary])
async def list_personas():
    service = _service_or_503()
    return [PersonaSummary(id=p.id, name=p.name) for p in service.personas()]


@app.post("/api/chat", response_model=ChatResponse, dependencies=[Depends(require_auth)])
async def chat(request: ChatRequest):
    """
    One chat turn.

    REQUEST BODY:
    {
        "message": "Hello",
        "persona_id": "aiko",
        "temperature": 0.8,          (optional)
        "session_id": "abc123"       (optional)
    }

    RESPONSE:
    {
        "response": "Oh, hello there...",
        "persona_id": "aiko",
        "session_id": "abc123",
        "timestamp": "2026-10-19T08:15:30.123Z"
    }
    """
    service = _service_or_503()
    session_id = request.session_id or service.new_session_id()

    try:
        turn = await service.process_turn(
            session_id,
            request.persona_id,
            request.message,
            temperature=request.temperature,
        )
    except PersonaNotFound as e:
        logger.warning(f"Unknown persona requested: {e.persona_id}")
        available = ", ".join(e.available)
        raise HTTPException(
            status_code=404,
            detail=f"Persona '{e.persona_id}' not found. Available personas: {available}",
        )
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CompletionFailure as e:
        if e.rate_limited:
            logger.warning(f"Rate limit hit: {e}")
            raise HTTPException(status_code=429, detail=RATE_LIMIT_MESSAGE)
        logger.error(f"Completion failed for session {session_id}: {e}")
        raise HTTPException(status_code=503, detail=COMPLETION_FAILED_MESSAGE)
    except Exception as e:
        logger.error(f"Error processing chat: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=GENERIC_ERROR_MESSAGE)

    return ChatResponse(
        response=turn.response,
        persona_id=turn.persona_id,
        session_id=turn.session_id,
        timestamp=turn.timestamp,
    )


@app.post("/api/chat/clear", response_model=ClearResponse, dependencies=[Depends(require_auth)])
async def clear_chat(request: ClearRequest):
    """Reset a session's history to empty. Clearing an empty or unknown session is fine."""
    service = _service_or_503()
    try:
        await service.clear(request.session_id)
    except Exception as e:
        logger.error(f"Error clearing history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to clear conversation history")
    return ClearResponse(message="Conversation history cleared", session_id=request.session_id)


@app.get(
    "/api/chat/history/{session_id}",
    response_model=HistoryResponse,
    dependencies=[Depends(require_auth)],
)
async def get_chat_history(session_id: str = Path(..., pattern=SESSION_ID_PATTERN)):
    """Return the stored messages for a session, oldest first (empty if unknown)."""
    service = _service_or_503()
    return HistoryResponse(session_id=session_id, messages=service.history(session_id))


# -------------------------------------------------------------------------
# STANDALONE RUN (python -m companion.main)
# -------------------------------------------------------------------------
def run():
    """Start the uvicorn server (same as run.py)."""
    uvicorn.run(
        "companion.main:app",
        host=HOST,
        port=PORT,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    run()

"""
COMPANION APPLICATION PACKAGE
=============================

The main Python package for the Companion persona-chat backend.

  from companion.main import app
  from companion.models import ChatRequest
  from companion.services.chat_service import ChatService

FILE STRUCTURE:
  companion/
    __init__.py   - This file; marks 'companion' as a package.
    main.py       - FastAPI app and all HTTP endpoints (/api/chat, /api/chat/clear, ...).
    models.py     - Pydantic models for API requests, responses, and stored messages.
    errors.py     - PersonaNotFound, InvalidInput, CompletionFailure, SessionUnavailable.
    services/     - Personas, conversation window, session store, Groq LLM, chat turns.
    utils/        - Helpers: async retry with backoff, ISO timestamps.
"""

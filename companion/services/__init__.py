"""
SERVICES PACKAGE
=================

Business logic lives here. The API layer (companion.main) calls these services;
they don't handle HTTP, only personas, conversation history, and model calls.

MODULES:
    persona_registry    - persona id -> system prompt (read-only table)
    conversation_window - assemble_turn / record_turn / clear_history (pure functions)
    session_store       - SessionStore interface + in-memory implementation
    llm_service         - Groq completion with key rotation, timeout and retry
    chat_service        - one turn per session at a time: assemble, complete, record
"""

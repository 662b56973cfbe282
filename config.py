"""
CONFIGURATION MODULE
====================

PURPOSE:
  Central place for all Companion settings: API keys, model name, generation
  limits, history window size, and the persona table. Every service imports
  from here so behaviour is consistent across the app.

WHAT THIS FILE DOES:
  - Loads environment variables from .env (so API keys stay out of code).
  - Exposes GROQ_API_KEYS and GROQ_MODEL for the completion service.
  - Defines the generation defaults (temperature, response token cap, timeout).
  - Defines MAX_HISTORY_LENGTH, the number of messages kept per session.
  - Holds PERSONAS: the fixed table of character ids and their system prompts.

USAGE:
  Import what you need: `from config import GROQ_MODEL, MAX_HISTORY_LENGTH, PERSONAS`
"""

import os
import logging
from dotenv import load_dotenv


# -----------------------------------------------------------------------------
# LOGGING
# -----------------------------------------------------------------------------
# Used to warn about malformed numeric environment values.
logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# ENVIRONMENT
# -----------------------------------------------------------------------------
# Load environment variables from .env file (if it exists).
load_dotenv()


def _env_int(name: str, default: int) -> int:
    """Read an int from the environment; fall back to default (with a warning) if malformed."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer for %s=%r, using default %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment; fall back to default (with a warning) if malformed."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Invalid number for %s=%r, using default %s", name, raw, default)
        return default


# ============================================================================
# GROQ API CONFIGURATION
# ============================================================================
# Groq is the LLM provider behind every chat turn.
# You can set one key (GROQ_API_KEY) or several: GROQ_API_KEY, GROQ_API_KEY_2,
# GROQ_API_KEY_3, ... Requests rotate through them one-by-one, and a failed
# attempt (e.g. rate limit 429) moves on to the next key.

def _load_groq_api_keys() -> list:
    """
    Load all GROQ API keys from the environment.
    Reads GROQ_API_KEY first, then GROQ_API_KEY_2, GROQ_API_KEY_3, ... until
    a number has no value. Returns a list of non-empty key strings.
    """
    keys = []
    first = os.getenv("GROQ_API_KEY", "").strip()
    if first:
        keys.append(first)
    i = 2
    while True:
        k = os.getenv(f"GROQ_API_KEY_{i}", "").strip()
        if not k:
            break
        keys.append(k)
        i += 1
    return keys


GROQ_API_KEYS = _load_groq_api_keys()
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")

# ============================================================================
# GENERATION DEFAULTS
# ============================================================================
# DEFAULT_TEMPERATURE: used when the client does not send a temperature.
# MAX_RESPONSE_TOKENS: cap on the length of each reply.
# COMPLETION_TIMEOUT_SECONDS: bound on a single model call; a timeout counts as a failed attempt.
# COMPLETION_MAX_ATTEMPTS / COMPLETION_RETRY_DELAY: attempts per turn (each on the next key)
#   and the initial backoff between them (doubles each retry).

DEFAULT_TEMPERATURE = _env_float("DEFAULT_TEMPERATURE", 0.8)
MAX_RESPONSE_TOKENS = _env_int("MAX_RESPONSE_TOKENS", 150)
COMPLETION_TIMEOUT_SECONDS = _env_float("COMPLETION_TIMEOUT_SECONDS", 30.0)
COMPLETION_MAX_ATTEMPTS = _env_int("COMPLETION_MAX_ATTEMPTS", 2)
COMPLETION_RETRY_DELAY = _env_float("COMPLETION_RETRY_DELAY", 0.5)

# ============================================================================
# CONVERSATION WINDOW
# ============================================================================
# MAX_HISTORY_LENGTH counts messages (user and assistant combined), not turns.
# 6 keeps the last three exchanges. The persona prompt is never part of it.
# SESSION_TTL_SECONDS: idle sessions older than this are dropped (0 = never; default 24h).
# MAX_MESSAGE_LENGTH: longest user message accepted by the API, in characters.

MAX_HISTORY_LENGTH = _env_int("MAX_HISTORY_LENGTH", 6)
SESSION_TTL_SECONDS = _env_float("SESSION_TTL_SECONDS", 86400.0)
MAX_MESSAGE_LENGTH = _env_int("MAX_MESSAGE_LENGTH", 4000)

# ============================================================================
# HTTP SERVER
# ============================================================================
# CORS_ALLOW_ORIGINS: comma-separated list of frontend origins ("*" for any).
# API_AUTH_TOKEN: when set, chat endpoints require "Authorization: Bearer <token>".

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
API_AUTH_TOKEN = os.getenv("API_AUTH_TOKEN", "").strip()
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_int("PORT", 5000)

# ============================================================================
# PERSONAS
# ============================================================================
# Fixed table of characters. The id is what clients send as persona_id; the
# system prompt is sent verbatim as the first message of every model call.
# Each persona has its own tone and interests; no two prompts may be identical.

PERSONAS = {
    "aiko": {
        "name": "Aiko",
        "system_prompt": (
            "You are Aiko, a gentle, caring, and empathetic virtual anime girlfriend. "
            "You love art, literature, and quiet afternoons with a cup of tea. "
            "Speak in a calm, nurturing tone and offer thoughtful, supportive advice. "
            "When appropriate, include subtle references to your favorite books and art. "
            "Remain in character at all times; never reveal that you are an AI. "
            "Use warm, friendly, and engaging language."
        ),
    },
    "hikari": {
        "name": "Hikari",
        "system_prompt": (
            "You are Hikari, an energetic, outgoing, and adventurous virtual anime girlfriend. "
            "You love exploring new places, spontaneous adventures, and upbeat music. "
            "Speak with enthusiasm and a confident, playful tone. "
            "Include references to exciting travel experiences and modern pop culture. "
            "Always remain in character and never mention that you are an AI."
        ),
    },
    "rin": {
        "name": "Rin",
        "system_prompt": (
            "You are Rin, a cool, witty, and mysterious virtual anime girlfriend. "
            "You appreciate modern art, indie films, and a touch of sarcasm in your humor. "
            "Speak in a confident, slightly reserved tone with a clever edge. "
            "Include subtle hints of your unique perspective and cultural insights. "
            "Stay in character at all times and never mention that you are an AI."
        ),
    },
    "mei": {
        "name": "Mei",
        "system_prompt": (
            "You are Mei, a shy, sweet, and caring virtual anime girlfriend. "
            "You love nature, animals, and have a special interest in traditional crafts. "
            "Speak softly and gently, sometimes stuttering when excited or nervous. "
            "Share your love for cute things and traditional Japanese culture. "
            "Always stay in character and never reveal that you are an AI."
        ),
    },
    "yuki": {
        "name": "Yuki",
        "system_prompt": (
            "You are Yuki, an intellectual and elegant virtual anime girlfriend. "
            "You excel in academics, particularly sciences and philosophy. "
            "Speak eloquently and precisely, often sharing fascinating facts. "
            "Reference scientific concepts and philosophical ideas in conversation. "
            "Maintain character consistently and never break the illusion."
        ),
    },
}

"""
LLM SERVICE MODULE
==================

The model-completion collaborator: takes the assembled message list and a
temperature, calls Groq through LangChain's ChatGroq, and returns the reply
text. Used by ChatService for every POST /api/chat.

ROUND-ROBIN API KEYS:
  - All keys from config.GROQ_API_KEYS are used one-by-one: attempt 1 uses the
    next key in the rotation, a retry uses the key after that, and so on.
  - Keys are only ever logged masked.

FAILURES:
  Each attempt is bounded by COMPLETION_TIMEOUT_SECONDS. Timeouts, quota errors,
  transport errors and empty/malformed replies all become CompletionFailure;
  after COMPLETION_MAX_ATTEMPTS failed attempts the last one is raised.
  rate_limited=True on that error lets the API answer 429 instead of 503.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_groq import ChatGroq

from companion.errors import CompletionFailure
from companion.models import ChatMessage
from companion.utils.retry import with_retry
from config import (
    COMPLETION_MAX_ATTEMPTS,
    COMPLETION_RETRY_DELAY,
    COMPLETION_TIMEOUT_SECONDS,
    GROQ_API_KEYS,
    GROQ_MODEL,
    MAX_RESPONSE_TOKENS,
)

logger = logging.getLogger("companion")

# Builds a chat model for (api_key, temperature). Swapped out in tests.
LLMFactory = Callable[[str, float], BaseChatModel]


def _is_rate_limit_error(exc: BaseException) -> bool:
    """True if the exception looks like a Groq rate limit (429 / tokens per day)."""
    msg = str(exc).lower()
    return "429" in msg or "rate limit" in msg or "tokens per day" in msg


def _mask_key(api_key: str) -> str:
    if len(api_key) <= 8:
        return "***"
    return f"{api_key[:4]}...{api_key[-4:]}"


def to_langchain_messages(messages: Sequence[ChatMessage]) -> List[BaseMessage]:
    """Convert ChatMessage objects into LangChain system/human/ai messages, order preserved."""
    converted: List[BaseMessage] = []
    for message in messages:
        if message.role == "system":
            converted.append(SystemMessage(content=message.content))
        elif message.role == "user":
            converted.append(HumanMessage(content=message.content))
        else:
            converted.append(AIMessage(content=message.content))
    return converted


def _extract_text(result: object) -> str:
    """Pull the reply text out of a chat model result; raise CompletionFailure if there is none."""
    content = getattr(result, "content", None)
    if isinstance(content, list):
        # Content blocks: keep the text parts only.
        content = "".join(
            block if isinstance(block, str) else str(block.get("text", ""))
            for block in content
            if isinstance(block, (str, dict))
        )
    if not isinstance(content, str):
        raise CompletionFailure("Malformed response from model")
    text = content.strip()
    if not text:
        raise CompletionFailure("Empty response from model")
    return text


# ==============================================================================
# LLM SERVICE CLASS
# ==============================================================================

class LLMService:
    """
    Calls Groq with the assembled messages. One ChatGroq is built per attempt so
    each request can carry its own temperature and the next key in the rotation.
    """

    def __init__(
        self,
        api_keys: Optional[Sequence[str]] = None,
        model: str = GROQ_MODEL,
        max_tokens: int = MAX_RESPONSE_TOKENS,
        timeout: float = COMPLETION_TIMEOUT_SECONDS,
        max_attempts: int = COMPLETION_MAX_ATTEMPTS,
        retry_delay: float = COMPLETION_RETRY_DELAY,
        llm_factory: Optional[LLMFactory] = None,
    ):
        self.api_keys = [k for k in (api_keys if api_keys is not None else GROQ_API_KEYS) if k]
        if not self.api_keys:
            raise ValueError(
                "No Groq API key configured. Set GROQ_API_KEY (and optionally GROQ_API_KEY_2, ...) in .env"
            )
        self.model = model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_attempts = max(max_attempts, 1)
        self.retry_delay = retry_delay
        self._llm_factory = llm_factory or self._build_llm
        self._key_index = 0
        logger.info(
            "LLM service ready: model=%s keys=%s timeout=%.0fs attempts=%s",
            self.model, len(self.api_keys), self.timeout, self.max_attempts,
        )

    def _build_llm(self, api_key: str, temperature: float) -> BaseChatModel:
        return ChatGroq(
            api_key=api_key,
            model=self.model,
            temperature=temperature,
            max_tokens=self.max_tokens,
            max_retries=0,  # retries are handled here, one key per attempt
        )

    def _next_key(self) -> str:
        api_key = self.api_keys[self._key_index % len(self.api_keys)]
        self._key_index = (self._key_index + 1) % len(self.api_keys)
        return api_key

    async def _attempt(self, messages: List[BaseMessage], temperature: float) -> str:
        api_key = self._next_key()
        logger.info("Calling %s with key %s", self.model, _mask_key(api_key))
        llm = self._llm_factory(api_key, temperature)
        try:
            result = await asyncio.wait_for(llm.ainvoke(messages), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise CompletionFailure(f"Model call timed out after {self.timeout:.0f}s") from e
        except Exception as e:
            raise CompletionFailure(f"Model call failed: {e}", rate_limited=_is_rate_limit_error(e)) from e
        return _extract_text(result)

    async def complete(self, messages: Sequence[ChatMessage], temperature: float) -> str:
        """Return the model's reply for messages, or raise CompletionFailure."""
        lc_messages = to_langchain_messages(messages)

        async def call_model() -> str:
            return await self._attempt(lc_messages, temperature)

        return await with_retry(
            call_model,
            max_retries=self.max_attempts,
            initial_delay=self.retry_delay,
            retry_on=(CompletionFailure,),
        )

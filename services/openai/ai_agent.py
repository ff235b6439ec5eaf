"""Page-drafting assistant built on the OpenAI Responses API."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from models.ai_models import AIReply, PageContext
from models.session_models import ChatMessage
from services.openai.prompts import drafting_system_prompt
from services.openai.response_parser import extract_text, extract_usage
from utils.errors import AIAgentError

LOGGER = logging.getLogger(__name__)

MAX_HISTORY_MESSAGES = 20
MAX_ATTEMPTS = 3
TRANSIENT_STATUSES = {429, 500, 502, 503, 504}


def limit_history(history: Sequence[ChatMessage], max_messages: int = MAX_HISTORY_MESSAGES) -> List[ChatMessage]:
    """Keep the most recent ``max_messages`` turns.

    When trimming, the opening user message is kept in place of the oldest
    retained turn since it usually carries the brief for the page.
    """
    if len(history) <= max_messages:
        return list(history)
    recent = list(history[-max_messages:])
    if history[0].role == "user":
        return [history[0], *recent[1:]]
    return recent


def is_transient_error(exc: BaseException) -> bool:
    """Connection failures, timeouts and 429/5xx responses are worth retrying."""
    if isinstance(exc, APIConnectionError):
        return True
    if isinstance(exc, APIStatusError):
        return exc.status_code in TRANSIENT_STATUSES
    return False


class AIAgent:
    """Generate page copy from the running conversation and page context."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-5",
        max_output_tokens: int = 4096,
        temperature: Optional[float] = 0.7,
        max_attempts: int = MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if client is None:
            raise ValueError("AsyncOpenAI client is required.")
        self.client = client
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        self.max_attempts = max_attempts
        self._sleep = sleep

    def _sampling_kwargs(self) -> Dict[str, Any]:
        # GPT-5 family rejects non-default temperature values.
        if self.temperature is None or self.model.lower().startswith("gpt-5"):
            return {}
        return {"temperature": self.temperature}

    async def generate_reply(
        self,
        history: Sequence[ChatMessage],
        new_message: str,
        page_context: PageContext,
    ) -> AIReply:
        """Return the assistant's next message and the tokens it consumed.

        Args:
            history: Conversation so far, oldest first.
            new_message: The user's latest message (not yet in ``history``).
            page_context: Business and page facts for the system prompt.

        Raises:
            AIAgentError: The model call failed after retries.
        """
        start = time.time()
        messages = [{"role": m.role, "content": m.content} for m in limit_history(history)]
        messages.append({"role": "user", "content": new_message})

        try:
            response = await self._call_with_retry(
                model=self.model,
                instructions=drafting_system_prompt(page_context),
                input=messages,
                max_output_tokens=self.max_output_tokens,
                **self._sampling_kwargs(),
            )
        except Exception as exc:
            LOGGER.error("AI content generation failed: %s", exc)
            raise AIAgentError("Failed to generate content", exc) from exc

        content = extract_text(response)
        if not content:
            raise AIAgentError("Model returned an empty reply")
        usage = extract_usage(response)
        tokens_used = usage["input_tokens"] + usage["output_tokens"]

        LOGGER.info(
            "AI content generated with %s: %s tokens, %s messages, %.3fs",
            self.model,
            tokens_used,
            len(messages),
            time.time() - start,
        )
        return AIReply(content=content, tokens_used=tokens_used)

    async def _call_with_retry(self, **params: Any) -> Any:
        attempt = 1
        while True:
            try:
                return await self.client.responses.create(**params)
            except Exception as exc:
                if attempt >= self.max_attempts or not is_transient_error(exc):
                    raise
                delay = 2 ** attempt
                LOGGER.warning(
                    "Retrying AI request after %ss (attempt %s/%s): %s",
                    delay,
                    attempt,
                    self.max_attempts,
                    exc,
                )
                await self._sleep(delay)
                attempt += 1

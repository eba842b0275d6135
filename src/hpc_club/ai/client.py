"""Thin async wrapper over the OpenAI chat API with rate-limit retry."""

import asyncio
import json
from typing import Any

import structlog
from openai import APIError, AsyncOpenAI, RateLimitError

from hpc_club.exceptions import AIServiceError, AIUnavailableError

logger = structlog.get_logger()


class GenerativeClient:
    """Shared chat-completions client.

    Rate-limited calls are retried with exponential backoff; every other
    failure surfaces as AIServiceError.

    Args:
        api_key: OpenAI API key. Empty disables generation.
        model: Chat model name.
        max_retries: Retries on rate limit.
        retry_delay: Initial backoff in seconds (doubles each retry).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ):
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        self.model = model
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def _create(self, **params: Any):
        if self.client is None:
            raise AIUnavailableError()
        delay = self.retry_delay
        retries = self.max_retries
        while True:
            try:
                return await self.client.chat.completions.create(model=self.model, **params)
            except RateLimitError:
                if retries <= 0:
                    logger.error("ai_rate_limit_exhausted")
                    raise AIServiceError("Limite de requisições da IA atingido. Tente novamente.")
                logger.warning("ai_rate_limited", retry_in=delay, retries_left=retries)
                await asyncio.sleep(delay)
                retries -= 1
                delay *= 2
            except APIError as e:
                logger.error("ai_request_failed", error=str(e))
                raise AIServiceError("Falha ao gerar conteúdo com IA.")

    async def complete(
        self,
        messages: list[dict[str, Any]],
        temperature: float = 0.7,
    ) -> str:
        """Return the assistant text for a chat."""
        response = await self._create(messages=messages, temperature=temperature)
        text = response.choices[0].message.content
        if not text:
            raise AIServiceError("No content generated")
        return text.strip()

    async def complete_json(
        self,
        messages: list[dict[str, Any]],
        temperature: float = 0.5,
    ) -> Any:
        """Return parsed JSON from a json_object response."""
        response = await self._create(
            messages=messages,
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        text = response.choices[0].message.content
        if not text:
            raise AIServiceError("No content generated")
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            logger.error("ai_invalid_json", preview=text[:200])
            raise AIServiceError("Resposta da IA em formato inválido.")

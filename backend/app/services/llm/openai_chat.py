"""
OpenAI chat-completions gateway.

Alternate provider behind the same LLMGateway contract. Selected with
LLM_PROVIDER=openai. The prompt is sent as a single user message and the
per-call model override is ignored in favour of settings.openai_model,
since call sites name Gemini models.
"""

import asyncio
import logging
from typing import Optional

from openai import AsyncOpenAI, APIConnectionError, APIStatusError, APITimeoutError

from app.config import get_settings
from app.services.llm.errors import MissingCredentialError
from app.services.llm.gateway import (
    FINISH_MAX_TOKENS,
    GatewayResult,
    GenerationConfig,
    LLMGateway,
)

logger = logging.getLogger(__name__)

# OpenAI finish reasons → the Gemini vocabulary callers check against
FINISH_REASONS = {
    "stop": "STOP",
    "length": FINISH_MAX_TOKENS,
    "content_filter": "SAFETY",
}


class OpenAIGateway(LLMGateway):
    """Gateway backed by the OpenAI async SDK."""

    provider = "openai"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        # max_retries=0: the gateway never retries on its own
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, max_retries=0)
        return self._client

    async def generate(
        self,
        prompt: str,
        config: Optional[GenerationConfig] = None,
        timeout: float = 25.0,
    ) -> GatewayResult:
        if not self.api_key:
            raise MissingCredentialError(self.provider)

        config = config or GenerationConfig()
        client = self._get_client()

        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    temperature=config.temperature,
                    top_p=config.top_p,
                    max_tokens=config.max_output_tokens,
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, APITimeoutError):
            logger.warning(f"OpenAI request to {self.model} aborted after {timeout}s")
            return GatewayResult(ok=False, status=504, timed_out=True)
        except APIStatusError as e:
            logger.error(f"OpenAI API error: status={e.status_code} body={e.body}")
            return GatewayResult(ok=False, status=e.status_code, raw=e.body)
        except APIConnectionError as e:
            logger.error(f"OpenAI request failed: {e}")
            return GatewayResult(
                ok=False,
                status=500,
                raw={"error": "Request failed", "name": type(e).__name__, "message": str(e)},
            )

        raw = response.model_dump()
        if not response.choices:
            return GatewayResult(ok=True, status=200, raw=raw, has_candidates=False)

        choice = response.choices[0]
        finish_reason = FINISH_REASONS.get(choice.finish_reason, choice.finish_reason)
        return GatewayResult(
            ok=True,
            status=200,
            text=choice.message.content or "",
            raw=raw,
            finish_reason=finish_reason,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

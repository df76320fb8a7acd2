"""
Gemini generateContent client.

WHAT THIS DOES:
Sends one prompt to Google's generateContent endpoint and normalizes the
answer into a GatewayResult.

WIRE FORMAT:
    POST {base_url}/{model}:generateContent
    x-goog-api-key: <key>
    {"contents": [{"parts": [{"text": prompt}]}],
     "generationConfig": {"temperature": .., "maxOutputTokens": .., "topP": ..}}

    → {"candidates": [{"content": {"parts": [{"text": ...}]},
                       "finishReason": "STOP" | "MAX_TOKENS" | ...,
                       "safetyRatings": [...]}],
       "usageMetadata": {...}}

TIMEOUTS:
httpx timeouts are per-operation (connect, read, ...), so the whole request
is wrapped in asyncio.wait_for instead. When the budget runs out the request
task is cancelled and the connection released.

USAGE:
    gateway = GeminiGateway()
    result = await gateway.generate(prompt, GenerationConfig(temperature=0.3), timeout=20)
    await gateway.close()
"""

import asyncio
import logging
from typing import Any, Optional

import httpx

from app.config import get_settings
from app.services.llm.errors import MissingCredentialError
from app.services.llm.gateway import (
    FINISH_MAX_TOKENS,
    GatewayResult,
    GenerationConfig,
    LLMGateway,
)

logger = logging.getLogger(__name__)

# Safety probabilities worth a warning in the logs
FLAGGED_SAFETY_PROBABILITIES = {"HIGH", "MEDIUM"}


def parse_generate_content(data: Any, status: int) -> GatewayResult:
    """
    Normalize a 2xx generateContent body into a GatewayResult.

    Never raises: a body whose candidate is not an object counts as having
    no candidates, and malformed content, parts or safety ratings read as
    empty.
    """
    candidates = data.get("candidates") if isinstance(data, dict) else None
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        return GatewayResult(ok=True, status=status, raw=data, has_candidates=False)

    candidate = candidates[0]
    finish_reason = candidate.get("finishReason")
    if not isinstance(finish_reason, str):
        finish_reason = None

    ratings = candidate.get("safetyRatings")
    flagged = [
        rating for rating in (ratings if isinstance(ratings, list) else [])
        if isinstance(rating, dict) and rating.get("probability") in FLAGGED_SAFETY_PROBABILITIES
    ]
    if flagged:
        logger.warning(f"Content flagged by safety filter: {flagged}")

    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    text = ""
    if isinstance(parts, list) and parts and isinstance(parts[0], dict):
        first = parts[0].get("text")
        text = first if isinstance(first, str) else ""

    if finish_reason == FINISH_MAX_TOKENS:
        usage = data.get("usageMetadata")
        if not isinstance(usage, dict):
            usage = {}
        logger.warning(
            f"Response truncated due to MAX_TOKENS "
            f"(thoughts={usage.get('thoughtsTokenCount')}, total={usage.get('totalTokenCount')})"
        )

    return GatewayResult(
        ok=True,
        status=status,
        text=text,
        raw=data,
        finish_reason=finish_reason,
    )


class GeminiGateway(LLMGateway):
    """
    Async gateway for the Gemini generateContent API.

    Holds one pooled httpx client; call close() on shutdown.
    """

    provider = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")

        # HTTP client (lazy initialization unless one is injected)
        self._client: Optional[httpx.AsyncClient] = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            # Wall-clock budget is enforced by asyncio.wait_for in generate()
            self._client = httpx.AsyncClient(timeout=None)
        return self._client

    def _build_body(self, prompt: str, config: GenerationConfig) -> dict:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": config.temperature,
                "maxOutputTokens": config.max_output_tokens,
                "topP": config.top_p,
            },
        }

    async def generate(
        self,
        prompt: str,
        config: Optional[GenerationConfig] = None,
        timeout: float = 25.0,
    ) -> GatewayResult:
        if not self.api_key:
            raise MissingCredentialError(self.provider)

        config = config or GenerationConfig()
        model = config.model or self.model
        url = f"{self.base_url}/{model}:generateContent"

        client = await self._get_client()

        try:
            response = await asyncio.wait_for(
                client.post(
                    url,
                    json=self._build_body(prompt, config),
                    headers={"x-goog-api-key": self.api_key},
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Gemini request to {model} aborted after {timeout}s")
            return GatewayResult(ok=False, status=504, timed_out=True)
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {type(e).__name__}: {e}")
            return GatewayResult(
                ok=False,
                status=500,
                raw={"error": "Request failed", "name": type(e).__name__, "message": str(e)},
            )

        try:
            data = response.json()
        except ValueError:
            data = {"body": response.text}

        if not response.is_success:
            logger.error(f"Gemini API error: status={response.status_code} body={data}")
            return GatewayResult(ok=False, status=response.status_code, raw=data)

        return parse_generate_content(data, response.status_code)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

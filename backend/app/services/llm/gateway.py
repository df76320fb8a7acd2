"""
LLM Gateway — One request to a generative-text endpoint, normalized.

WHAT THIS DOES:
Defines the provider-independent contract every caller uses:
    result = await gateway.generate(prompt, config, timeout=25.0)
and the GatewayResult that comes back, whatever went wrong.

HOW IT WORKS:
1. Provider gateways (GeminiGateway, OpenAIGateway) issue exactly one request
2. The request is bounded by a wall-clock timeout that cancels it when hit
3. Every outcome becomes a GatewayResult:
   - success       → ok=True, text from the first candidate
   - truncated     → ok=True, finish_reason="MAX_TOKENS" (text may be partial or empty)
   - non-2xx       → ok=False, upstream status and body passed through
   - transport     → ok=False, status=500, empty text
   - timeout       → ok=False, timed_out=True, empty text
4. require_text() turns a result into text or a typed exception

No retries happen here. Retrying is the caller's decision.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from app.services.llm.errors import (
    EmptyResponseError,
    GenerationCancelledError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

# Finish reason signalling the model stopped at its output-length limit
FINISH_MAX_TOKENS = "MAX_TOKENS"


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling parameters for one call."""

    temperature: float = 0.7
    max_output_tokens: int = 1000
    top_p: float = 0.9
    model: Optional[str] = None
    """Provider model override (None = the gateway's default model)"""


@dataclass
class GatewayResult:
    """Normalized outcome of one generation request."""

    ok: bool
    status: int
    text: str = ""
    raw: Any = None
    finish_reason: Optional[str] = None
    timed_out: bool = False
    has_candidates: bool = True

    @property
    def truncated(self) -> bool:
        """True when the model stopped at the output-length limit."""
        return self.finish_reason == FINISH_MAX_TOKENS


class LLMGateway(ABC):
    """
    Abstract base class for provider gateways.

    Implementations must never raise for transport, status or timeout
    problems; those are reported through GatewayResult. The only exception
    allowed out of generate() is MissingCredentialError (checked before any
    network call) and the caller's own cancellation.
    """

    provider: str = "unknown"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        config: Optional[GenerationConfig] = None,
        timeout: float = 25.0,
    ) -> GatewayResult:
        """
        Issue one generation request.

        Args:
            prompt: The fully composed prompt
            config: Sampling parameters
            timeout: Wall-clock budget in seconds; the request is cancelled when hit

        Returns:
            GatewayResult describing the outcome
        """
        pass

    async def close(self) -> None:
        """Release any pooled connections."""
        return None


def require_text(result: GatewayResult, allow_partial: bool = True) -> str:
    """
    Turn a GatewayResult into text or raise the matching error.

    Args:
        result: The gateway outcome
        allow_partial: Accept text cut short by the output-length limit

    Raises:
        GenerationCancelledError: The request timed out
        UpstreamError: Non-2xx status, transport failure or no candidates
        EmptyResponseError: A candidate came back without text
    """
    if result.timed_out:
        raise GenerationCancelledError("Generation timed out")

    if not result.ok:
        raise UpstreamError("LLM API error", status=result.status, details=result.raw)

    if not result.has_candidates:
        logger.error(f"No candidates in response: {result.raw}")
        raise UpstreamError("No candidates in response", status=500, details=result.raw)

    if not result.text:
        if result.truncated:
            logger.warning("Response hit the output token limit before producing any text")
            raise EmptyResponseError(
                "Response was cut off by the output token limit before any text was produced",
                finish_reason=result.finish_reason,
            )
        logger.error(f"No text in response (finish_reason={result.finish_reason})")
        raise EmptyResponseError("No text generated", finish_reason=result.finish_reason)

    if result.truncated:
        if not allow_partial:
            raise EmptyResponseError(
                "Response was cut off by the output token limit",
                finish_reason=result.finish_reason,
            )
        logger.warning("Response truncated but returning partial text")

    return result.text

"""
LLM Module — Provider gateways and best-effort response parsing.

USAGE:
    from app.services.llm import create_gateway, extract_json

    gateway = create_gateway()
    result = await gateway.generate(prompt, GenerationConfig(temperature=0.3))
    data = extract_json(result.text)  # dict or None, never raises
"""

from typing import Optional

from app.config import get_settings
from app.services.llm.errors import (
    EmptyResponseError,
    GenerationCancelledError,
    LLMError,
    MissingCredentialError,
    UpstreamError,
)
from app.services.llm.extractor import extract_json, get_text_field
from app.services.llm.gateway import (
    GatewayResult,
    GenerationConfig,
    LLMGateway,
    require_text,
)
from app.services.llm.gemini import GeminiGateway
from app.services.llm.openai_chat import OpenAIGateway


def create_gateway(provider: Optional[str] = None) -> LLMGateway:
    """Build the gateway for the configured provider."""
    provider = (provider or get_settings().llm_provider).lower()
    if provider == "openai":
        return OpenAIGateway()
    if provider == "gemini":
        return GeminiGateway()
    raise ValueError(f"Unknown LLM provider: {provider}")


__all__ = [
    "create_gateway",
    # Gateways
    "LLMGateway",
    "GeminiGateway",
    "OpenAIGateway",
    "GatewayResult",
    "GenerationConfig",
    "require_text",
    # Parsing
    "extract_json",
    "get_text_field",
    # Errors
    "LLMError",
    "MissingCredentialError",
    "UpstreamError",
    "EmptyResponseError",
    "GenerationCancelledError",
]

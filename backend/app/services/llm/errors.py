"""
LLM error taxonomy.

- MissingCredentialError: configuration problem, fatal, never retried
- UpstreamError: the provider answered non-2xx or with no candidates
- EmptyResponseError: the provider answered but produced no text
- GenerationCancelledError: timeout or cancellation, a benign interruption

Parse failures are not errors: the extractor returns None and callers
substitute defaults.
"""

from typing import Any, Optional


class LLMError(Exception):
    """Base class for generation failures."""


class MissingCredentialError(LLMError):
    """The API key for the configured provider is not set."""

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Missing API key for provider '{provider}'")


class UpstreamError(LLMError):
    """Non-2xx response or malformed candidate list from the provider."""

    def __init__(self, message: str, status: int = 500, details: Any = None):
        self.status = status
        self.details = details
        super().__init__(message)


class EmptyResponseError(LLMError):
    """The provider returned a candidate without any text."""

    def __init__(self, message: str, finish_reason: Optional[str] = None):
        self.finish_reason = finish_reason
        super().__init__(message)


class GenerationCancelledError(LLMError):
    """The request was aborted by its timeout or by the caller."""

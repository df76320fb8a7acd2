"""
Mapping from the LLM error taxonomy to HTTP responses.

- MissingCredentialError   → 500, configuration problem
- UpstreamError            → the provider's status (502 if it wasn't an error status)
- EmptyResponseError       → 500 with the finish reason
- GenerationCancelledError → 504, flagged as a cancellation rather than a failure
"""

import logging

from fastapi import HTTPException

from app.services.llm.errors import (
    EmptyResponseError,
    GenerationCancelledError,
    LLMError,
    MissingCredentialError,
    UpstreamError,
)

logger = logging.getLogger(__name__)


def llm_http_exception(error: LLMError) -> HTTPException:
    """Build the HTTPException for a generation failure."""
    if isinstance(error, MissingCredentialError):
        logger.error(f"Configuration error: {error}")
        return HTTPException(status_code=500, detail={"error": str(error)})

    if isinstance(error, UpstreamError):
        status = error.status if error.status >= 400 else 502
        return HTTPException(
            status_code=status,
            detail={"error": str(error), "status": error.status, "details": error.details},
        )

    if isinstance(error, EmptyResponseError):
        return HTTPException(
            status_code=500,
            detail={"error": str(error), "finishReason": error.finish_reason},
        )

    if isinstance(error, GenerationCancelledError):
        return HTTPException(
            status_code=504,
            detail={"error": "Generation timed out", "cancelled": True},
        )

    return HTTPException(status_code=500, detail={"error": str(error)})

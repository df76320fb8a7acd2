"""
Tests for the Gemini gateway and require_text().

The HTTP layer is replaced with httpx.MockTransport, so these run offline.
Run with: pytest tests/test_gateway.py -v
"""

import asyncio
import json

import httpx
import pytest

from app.services.llm import GatewayResult, GeminiGateway, GenerationConfig, require_text
from app.services.llm.errors import (
    EmptyResponseError,
    GenerationCancelledError,
    MissingCredentialError,
    UpstreamError,
)


def gemini_body(text="Remote work saves commuting time.", finish_reason="STOP"):
    return {
        "candidates": [{
            "content": {"parts": [{"text": text}]},
            "finishReason": finish_reason,
            "safetyRatings": [],
        }],
        "usageMetadata": {"totalTokenCount": 42},
    }


def make_gateway(handler, api_key="test-key") -> GeminiGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiGateway(
        api_key=api_key,
        model="gemini-2.5-flash",
        base_url="https://example.test/v1beta/models",
        client=client,
    )


# =============================================================================
# GEMINI GATEWAY
# =============================================================================

@pytest.mark.asyncio
async def test_successful_generation_sends_expected_request():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        captured["key"] = request.headers.get("x-goog-api-key")
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json=gemini_body())

    gateway = make_gateway(handler)
    try:
        result = await gateway.generate(
            "Argue for remote work",
            GenerationConfig(temperature=0.3, max_output_tokens=400, top_p=0.9),
        )
    finally:
        await gateway.close()

    assert result.ok
    assert result.text == "Remote work saves commuting time."
    assert result.finish_reason == "STOP"
    assert not result.truncated

    assert captured["url"] == "https://example.test/v1beta/models/gemini-2.5-flash:generateContent"
    assert captured["key"] == "test-key"
    assert captured["body"]["contents"] == [{"parts": [{"text": "Argue for remote work"}]}]
    assert captured["body"]["generationConfig"] == {
        "temperature": 0.3,
        "maxOutputTokens": 400,
        "topP": 0.9,
    }


@pytest.mark.asyncio
async def test_model_override_changes_the_url():
    urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(request.url.path)
        return httpx.Response(200, json=gemini_body())

    gateway = make_gateway(handler)
    await gateway.generate("hi", GenerationConfig(model="gemini-2.5-pro"))

    assert urls == ["/v1beta/models/gemini-2.5-pro:generateContent"]


@pytest.mark.asyncio
async def test_max_tokens_is_reported_as_truncated():
    gateway = make_gateway(
        lambda request: httpx.Response(200, json=gemini_body("Partial answ", "MAX_TOKENS"))
    )

    result = await gateway.generate("hi")

    assert result.ok
    assert result.truncated
    assert result.text == "Partial answ"


@pytest.mark.asyncio
async def test_non_2xx_passes_status_and_body_through():
    error_body = {"error": {"code": 429, "message": "Resource exhausted"}}
    gateway = make_gateway(lambda request: httpx.Response(429, json=error_body))

    result = await gateway.generate("hi")

    assert not result.ok
    assert result.status == 429
    assert result.raw == error_body
    assert result.text == ""


@pytest.mark.asyncio
async def test_no_candidates():
    gateway = make_gateway(lambda request: httpx.Response(200, json={"promptFeedback": {}}))

    result = await gateway.generate("hi")

    assert result.ok
    assert not result.has_candidates


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"candidates": ["oops"]},
        {"candidates": [None]},
        {"candidates": {"0": {"content": {"parts": [{"text": "hi"}]}}}},
        {"candidates": "oops"},
        ["not", "an", "object"],
    ],
)
async def test_unusable_candidates_count_as_none(body):
    gateway = make_gateway(lambda request: httpx.Response(200, json=body))

    result = await gateway.generate("hi")

    assert result.ok
    assert not result.has_candidates
    assert result.raw == body
    with pytest.raises(UpstreamError) as exc_info:
        require_text(result)
    assert exc_info.value.status == 500


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "candidate",
    [
        {"content": {"parts": {"0": {"text": "hi"}}}},
        {"content": {"parts": ["hi"]}},
        {"content": {"parts": [{"text": 42}]}},
        {"content": "hi"},
        {"content": {"parts": [{"text": "hi"}]}, "safetyRatings": ["x"]},
        {"content": {"parts": [{"text": "hi"}]}, "safetyRatings": {"probability": "HIGH"}},
        {"content": {"parts": [{"text": "hi"}]}, "finishReason": ["STOP"]},
    ],
)
async def test_malformed_candidate_fields_never_raise(candidate):
    body = {"candidates": [candidate]}
    gateway = make_gateway(lambda request: httpx.Response(200, json=body))

    result = await gateway.generate("hi")

    assert result.ok
    assert result.has_candidates
    assert result.text in ("", "hi")
    assert result.finish_reason is None


@pytest.mark.asyncio
async def test_malformed_usage_metadata_on_truncation():
    body = {**gemini_body("Partial", "MAX_TOKENS"), "usageMetadata": "n/a"}
    gateway = make_gateway(lambda request: httpx.Response(200, json=body))

    result = await gateway.generate("hi")

    assert result.truncated
    assert result.text == "Partial"


@pytest.mark.asyncio
async def test_transport_error_becomes_status_500():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    gateway = make_gateway(handler)

    result = await gateway.generate("hi")

    assert not result.ok
    assert result.status == 500
    assert result.raw["name"] == "ConnectError"


@pytest.mark.asyncio
async def test_timeout_is_reported_not_raised():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json=gemini_body())

    gateway = make_gateway(handler)

    result = await gateway.generate("hi", timeout=0.05)

    assert not result.ok
    assert result.timed_out
    assert result.status == 504


@pytest.mark.asyncio
async def test_missing_key_raises_before_any_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=gemini_body())

    gateway = make_gateway(handler, api_key="")

    with pytest.raises(MissingCredentialError):
        await gateway.generate("hi")
    assert calls == []


# =============================================================================
# require_text
# =============================================================================

def test_require_text_returns_text():
    assert require_text(GatewayResult(ok=True, status=200, text="Hello")) == "Hello"


def test_require_text_timeout():
    with pytest.raises(GenerationCancelledError):
        require_text(GatewayResult(ok=False, status=504, timed_out=True))


def test_require_text_upstream_status():
    with pytest.raises(UpstreamError) as exc_info:
        require_text(GatewayResult(ok=False, status=503, raw={"error": "overloaded"}))

    assert exc_info.value.status == 503
    assert exc_info.value.details == {"error": "overloaded"}


def test_require_text_no_candidates():
    with pytest.raises(UpstreamError) as exc_info:
        require_text(GatewayResult(ok=True, status=200, has_candidates=False))

    assert exc_info.value.status == 500


def test_require_text_empty_after_max_tokens():
    with pytest.raises(EmptyResponseError) as exc_info:
        require_text(GatewayResult(ok=True, status=200, text="", finish_reason="MAX_TOKENS"))

    assert exc_info.value.finish_reason == "MAX_TOKENS"


def test_require_text_partial_text():
    result = GatewayResult(ok=True, status=200, text="Partial", finish_reason="MAX_TOKENS")

    assert require_text(result, allow_partial=True) == "Partial"
    with pytest.raises(EmptyResponseError):
        require_text(result, allow_partial=False)

"""
Tests for the moderator (side summaries and the verdict) and the stance generator.

Run with: pytest tests/test_moderator.py -v
"""

import json

import pytest

from app.services.debate import Moderator, SideSummary, StanceGenerator, Turn
from app.services.debate.moderator import normalize_verdict, side_summary_from_payload
from app.services.llm import GatewayResult
from app.services.llm.errors import MissingCredentialError, UpstreamError

from conftest import FakeGateway

TOPIC = "Should remote work be the standard?"

TURNS = [
    Turn(side="pro", content="Remote work saves two hours a day."),
    Turn(side="con", content="Offices build culture."),
    Turn(side="user", content="What about juniors?"),
    Turn(side="pro", content="Mentoring works over video too."),
]


def summary_json(side: str) -> str:
    return json.dumps({
        "label": f"{side} summary",
        "coreClaim": f"{side} claim",
        "mainArgument": f"{side} argument",
        "supportingExample": f"{side} example",
        "closingStatement": f"{side} closing",
    })


def by_side(prompt: str) -> str:
    """Answer summary prompts according to the side they ask about."""
    side = "Pro" if '"Pro" side' in prompt else "Con"
    return f"```json\n{summary_json(side)}\n```"


# =============================================================================
# SUMMARY
# =============================================================================

@pytest.mark.asyncio
async def test_summarize_both_sides():
    gateway = FakeGateway(responder=by_side)
    moderator = Moderator(gateway)

    summary = await moderator.summarize(TOPIC, TURNS, "Kant", "Hobbes")

    assert summary.topic == TOPIC
    assert summary.pro.core_claim == "Pro claim"
    assert summary.con.closing_statement == "Con closing"
    assert len(gateway.prompts) == 2


@pytest.mark.asyncio
async def test_summary_excludes_user_turns():
    gateway = FakeGateway(responder=by_side)

    await Moderator(gateway).summarize(TOPIC, TURNS)

    pro_prompt = next(p for p in gateway.prompts if '"Pro" side' in p)
    con_prompt = next(p for p in gateway.prompts if '"Con" side' in p)
    assert "Mentoring works over video too." in pro_prompt
    assert "Offices build culture." in con_prompt
    assert "What about juniors?" not in pro_prompt + con_prompt


@pytest.mark.asyncio
async def test_unparseable_summary_degrades_to_empty_fields():
    gateway = FakeGateway(default="I cannot summarize this debate.")

    summary = await Moderator(gateway).summarize(TOPIC, TURNS)

    assert summary.pro == SideSummary()
    assert summary.con == SideSummary()


@pytest.mark.asyncio
async def test_upstream_failure_degrades_to_empty_fields():
    failure = GatewayResult(ok=False, status=503, raw={"error": "overloaded"})
    gateway = FakeGateway(replies=[failure, failure])

    summary = await Moderator(gateway).summarize(TOPIC, TURNS)

    assert summary.pro == SideSummary()
    assert summary.con == SideSummary()


@pytest.mark.asyncio
async def test_timeout_degrades_to_empty_fields():
    timeout = GatewayResult(ok=False, status=504, timed_out=True)
    gateway = FakeGateway(replies=[timeout, timeout])

    summary = await Moderator(gateway).summarize(TOPIC, TURNS)

    assert summary.pro.core_claim == ""


@pytest.mark.asyncio
async def test_missing_credentials_propagate_from_summary():
    gateway = FakeGateway(replies=[MissingCredentialError("gemini"), MissingCredentialError("gemini")])

    with pytest.raises(MissingCredentialError):
        await Moderator(gateway).summarize(TOPIC, TURNS)


# =============================================================================
# EVALUATION
# =============================================================================

@pytest.mark.asyncio
async def test_evaluate_returns_canonical_shape():
    reply = json.dumps({
        "overall": "A close debate.",
        "pro": "Clear and data-driven.",
        "con": "Relied on anecdotes.",
        "morePersuasive": "pro",
        "reasoning": "Pro cited numbers.",
        "advice": ["Con should cite data.", "Both should be shorter."],
    })
    gateway = FakeGateway(replies=[reply])

    evaluation = await Moderator(gateway).evaluate(
        TOPIC, SideSummary(core_claim="a"), SideSummary(core_claim="b")
    )

    assert evaluation.more_persuasive == "pro"
    assert evaluation.overall == "A close debate."
    assert evaluation.advice == "Con should cite data. Both should be shorter."
    assert evaluation.version == 2


@pytest.mark.asyncio
async def test_evaluate_unknown_verdict_is_undetermined():
    gateway = FakeGateway(replies=['{"morePersuasive": "the audience"}'])

    evaluation = await Moderator(gateway).evaluate(TOPIC, SideSummary(), SideSummary())

    assert evaluation.more_persuasive == "undetermined"


@pytest.mark.asyncio
async def test_evaluate_failure_returns_empty_evaluation():
    gateway = FakeGateway(replies=["no json"])

    evaluation = await Moderator(gateway).evaluate(TOPIC, SideSummary(), SideSummary())

    assert evaluation.overall == ""
    assert evaluation.more_persuasive == "undetermined"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("pro", "pro"),
        (" CON ", "con"),
        ('"pro"', "pro"),
        ("against", "con"),
        ("tie", "undetermined"),
        (None, "undetermined"),
        (3, "undetermined"),
    ],
)
def test_normalize_verdict(value, expected):
    assert normalize_verdict(value) == expected


def test_side_summary_from_camel_case_payload():
    summary = side_summary_from_payload({"coreClaim": "Claim", "label": "Pro", "extra": "x"})

    assert summary.core_claim == "Claim"
    assert summary.label == "Pro"
    assert summary.main_argument == ""


def test_side_summary_from_garbage_payload():
    assert side_summary_from_payload("nonsense") == SideSummary()


# =============================================================================
# STANCES
# =============================================================================

@pytest.mark.asyncio
async def test_stances_parsed_from_reply():
    gateway = FakeGateway(replies=['{"pro": "Remote work wins", "con": "Offices win"}'])

    stances = await StanceGenerator(gateway).generate(f"  {TOPIC}  ")

    assert stances.pro_stance == "Remote work wins"
    assert stances.con_stance == "Offices win"
    assert f'Topic: "{TOPIC}"' in gateway.prompts[0]
    assert gateway.configs[0].temperature == 0.3


@pytest.mark.asyncio
async def test_unparseable_stances_are_empty():
    gateway = FakeGateway(replies=["Both sides have a point."])

    stances = await StanceGenerator(gateway).generate(TOPIC)

    assert stances.pro_stance == ""
    assert stances.con_stance == ""


@pytest.mark.asyncio
@pytest.mark.parametrize("topic", ["", "   ", None])
async def test_blank_topic_rejected_without_upstream_call(topic):
    gateway = FakeGateway()

    with pytest.raises(ValueError):
        await StanceGenerator(gateway).generate(topic)
    assert gateway.prompts == []


@pytest.mark.asyncio
async def test_stance_upstream_error_propagates():
    gateway = FakeGateway(replies=[GatewayResult(ok=False, status=429, raw={"error": "quota"})])

    with pytest.raises(UpstreamError) as exc_info:
        await StanceGenerator(gateway).generate(TOPIC)
    assert exc_info.value.status == 429

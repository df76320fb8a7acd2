"""
Shared fixtures for the debate tests.

Nothing here touches the network: the LLM gateway is replaced with a fake
that replays canned replies, and the database is in-memory SQLite.
"""

import asyncio
import os
from typing import Callable, Optional, Union

# Must be set before app.config is first imported (settings are cached)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("TYPING_CHAR_SECONDS", "0")
os.environ.setdefault("TURN_PACING_SECONDS", "0")

import pytest

from app.services.debate import (
    BaseDebater,
    InMemoryTranscriptStore,
    TurnRequest,
    TurnResult,
)
from app.services.llm import GatewayResult, GenerationConfig, LLMGateway
from app.services.llm.errors import GenerationCancelledError

Reply = Union[str, GatewayResult, Exception]


def ok(text: str, finish_reason: str = "STOP") -> GatewayResult:
    """A successful gateway result."""
    return GatewayResult(ok=True, status=200, text=text, finish_reason=finish_reason)


class FakeGateway(LLMGateway):
    """
    Gateway that answers from a script instead of the network.

    Replies are consumed in order; once the script runs out, `responder`
    (if given) or `default` is used. Every prompt is recorded.
    """

    provider = "fake"

    def __init__(
        self,
        replies: Optional[list[Reply]] = None,
        default: str = "A reasonable argument.",
        responder: Optional[Callable[[str], Reply]] = None,
    ):
        self.replies = list(replies or [])
        self.default = default
        self.responder = responder
        self.prompts: list[str] = []
        self.configs: list[Optional[GenerationConfig]] = []
        self.closed = False

    async def generate(self, prompt, config=None, timeout=25.0) -> GatewayResult:
        self.prompts.append(prompt)
        self.configs.append(config)

        if self.replies:
            reply = self.replies.pop(0)
        elif self.responder is not None:
            reply = self.responder(prompt)
        else:
            reply = self.default

        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, GatewayResult):
            return reply
        return ok(reply)

    async def close(self) -> None:
        self.closed = True


class ScriptedDebater(BaseDebater):
    """
    Debater that labels each turn with its side and position.

    Set `gate` to an asyncio.Event to hold generations until the test
    releases them; put exceptions in `errors` to fail the next calls.
    """

    def __init__(self):
        self.requests: list[TurnRequest] = []
        self.gate: Optional[asyncio.Event] = None
        self.errors: list[Exception] = []

    async def generate(self, request: TurnRequest) -> TurnResult:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.errors:
            raise self.errors.pop(0)
        index = request.turn.index if request.turn else 0
        return TurnResult(text=f"{request.side} argument {index}")


class TimingOutDebater(ScriptedDebater):
    """Every generation times out."""

    async def generate(self, request: TurnRequest) -> TurnResult:
        self.requests.append(request)
        raise GenerationCancelledError("Generation timed out")


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def store() -> InMemoryTranscriptStore:
    return InMemoryTranscriptStore()


@pytest.fixture
def debater() -> ScriptedDebater:
    return ScriptedDebater()

"""
Debater — Generates one side's turn in a debate.

WHAT THIS DOES:
Given the topic, the speaking side, its persona and the recent exchange,
produces a short argumentative turn.

HOW IT WORKS:
1. Compose the turn prompt (persona, style, rules, last 4 turns, interjection)
2. Send it through the LLM gateway with a 25-second budget
3. require_text() maps failures onto the error taxonomy:
   - timeout          → GenerationCancelledError (benign, nothing appended)
   - non-2xx          → UpstreamError with the provider's status and body
   - no text          → EmptyResponseError with the finish reason
   - truncated + text → returned with truncated=True

USAGE:
    debater = Debater(gateway)
    result = await debater.generate(TurnRequest(
        topic="Should remote work be the standard?",
        side="pro",
        character="A pragmatic startup CEO",
        turn=TurnInfo.for_index(1, 4),
    ))
"""

import logging
from typing import Optional

from app.config import get_settings
from app.services.debate.models import TurnRequest, TurnResult
from app.services.debate.prompts import compose_turn_prompt
from app.services.debate.protocols import BaseDebater
from app.services.llm.gateway import GenerationConfig, LLMGateway, require_text

logger = logging.getLogger(__name__)

# Higher temperature for livelier arguments; the token budget leaves room for
# the model's hidden reasoning tokens on top of a 100-word answer
TURN_CONFIG = GenerationConfig(temperature=0.7, max_output_tokens=1500, top_p=0.9)


class Debater(BaseDebater):
    """Turn generator backed by an LLM gateway."""

    def __init__(self, gateway: LLMGateway, timeout: Optional[float] = None):
        settings = get_settings()
        self.gateway = gateway
        self.timeout = timeout if timeout is not None else settings.turn_timeout_seconds
        self.max_prompt_chars = settings.max_prompt_chars
        self.history_window = settings.history_window

    def build_prompt(self, request: TurnRequest) -> str:
        return compose_turn_prompt(
            topic=request.topic,
            side=request.side,
            character=request.character,
            style=request.style,
            history=request.history,
            user_intervention=request.user_intervention,
            is_final=request.is_final,
            stance=request.stance,
            history_window=self.history_window,
            max_chars=self.max_prompt_chars,
        )

    async def generate(self, request: TurnRequest) -> TurnResult:
        prompt = self.build_prompt(request)

        position = f"{request.turn.index}/{request.turn.total}" if request.turn else "?"
        logger.info(
            f"Generating {request.side} turn {position} for '{request.topic}' "
            f"({len(prompt)} prompt chars, final={request.is_final})"
        )

        result = await self.gateway.generate(prompt, TURN_CONFIG, timeout=self.timeout)
        text = require_text(result, allow_partial=True)

        logger.info(f"Generated {request.side} turn: {len(text)} chars")
        return TurnResult(
            text=text,
            truncated=result.truncated,
            finish_reason=result.finish_reason,
        )

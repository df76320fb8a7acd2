"""
Moderator — Summarizes and judges a finished debate.

WHAT THIS DOES:
Two reductions over the stored transcript:
1. summarize(): one LLM call per side → five-field SideSummary each
   (both sides run in parallel with asyncio.gather)
2. evaluate(): one LLM call over both summaries → Evaluation with a
   verdict of "pro", "con" or "undetermined"

GRACEFUL DEGRADATION:
A moderator failure must never take down the results page. Any upstream
error, timeout, empty reply or unparseable JSON yields an empty but
well-typed structure (empty strings, verdict "undetermined"). The one
exception is a missing API key, which is a configuration error and
propagates.

USAGE:
    moderator = Moderator(gateway)
    summary = await moderator.summarize(topic, turns, "Kant", "Hobbes")
    evaluation = await moderator.evaluate(topic, summary.pro, summary.con)
"""

import asyncio
import logging
from typing import Any, Optional

from app.config import get_settings
from app.services.debate.models import (
    DebateSummary,
    Evaluation,
    Side,
    SideSummary,
    Turn,
    Verdict,
    VERDICTS,
)
from app.services.debate.prompts import compose_evaluation_prompt, compose_summary_prompt
from app.services.llm.extractor import extract_json, get_text_field
from app.services.llm.gateway import GatewayResult, GenerationConfig, LLMGateway

logger = logging.getLogger(__name__)

MODERATOR_CONFIG = GenerationConfig(temperature=0.5, max_output_tokens=1000, top_p=0.9)

VERDICT_ALIASES = {
    "affirmative": "pro",
    "for": "pro",
    "negative": "con",
    "against": "con",
    "tie": "undetermined",
    "draw": "undetermined",
    "none": "undetermined",
}


def normalize_verdict(value: Any) -> Verdict:
    """Constrain a model-produced verdict to pro / con / undetermined."""
    if not isinstance(value, str):
        return "undetermined"
    verdict = value.strip().strip('"').lower()
    if verdict in VERDICTS:
        return verdict
    return VERDICT_ALIASES.get(verdict, "undetermined")


def side_summary_from_json(data: Optional[dict]) -> SideSummary:
    """Build a SideSummary, substituting empty strings for bad fields."""
    return SideSummary(**{
        attr: get_text_field(data, key) for key, attr in SideSummary.JSON_KEYS.items()
    })


def side_summary_from_payload(payload: Any) -> SideSummary:
    """Accept a summary posted by a client (camelCase keys) or an instance."""
    if isinstance(payload, SideSummary):
        return payload
    return side_summary_from_json(payload if isinstance(payload, dict) else None)


class Moderator:
    """Summarizer and evaluator backed by an LLM gateway."""

    def __init__(self, gateway: LLMGateway, timeout: Optional[float] = None):
        self.gateway = gateway
        self.timeout = timeout if timeout is not None else get_settings().moderator_timeout_seconds

    async def _call(self, prompt: str) -> Optional[dict]:
        """One moderator call; None on any failure."""
        result: GatewayResult = await self.gateway.generate(
            prompt, MODERATOR_CONFIG, timeout=self.timeout
        )
        if not (result.ok and result.text):
            logger.warning(
                f"Moderator call failed: status={result.status} "
                f"timed_out={result.timed_out} finish_reason={result.finish_reason}"
            )
            return None
        return extract_json(result.text)

    # =========================================================================
    # SUMMARY
    # =========================================================================

    async def summarize_side(
        self,
        side: Side,
        messages: list[str],
        character: str = "",
    ) -> SideSummary:
        """
        Summarize one side's statements.

        Args:
            side: "pro" or "con"
            messages: That side's turn contents, in order
            character: Persona shown in the summary label

        Returns:
            SideSummary (all fields empty when the model call or parse fails)
        """
        logger.info(f"Summarizing {side} side ({len(messages)} statements)")
        data = await self._call(compose_summary_prompt(side, messages, character))
        if data is None:
            return SideSummary()
        return side_summary_from_json(data)

    async def summarize(
        self,
        topic: str,
        turns: list[Turn],
        pro_character: str = "",
        con_character: str = "",
    ) -> DebateSummary:
        """Summarize both sides in parallel. User interjections are left out."""
        pro_messages = [t.content for t in turns if t.side == "pro"]
        con_messages = [t.content for t in turns if t.side == "con"]

        pro_summary, con_summary = await asyncio.gather(
            self.summarize_side("pro", pro_messages, pro_character),
            self.summarize_side("con", con_messages, con_character),
        )
        return DebateSummary(topic=topic, pro=pro_summary, con=con_summary)

    # =========================================================================
    # EVALUATION
    # =========================================================================

    async def evaluate(
        self,
        topic: str,
        pro_summary: SideSummary,
        con_summary: SideSummary,
    ) -> Evaluation:
        """
        Judge which side was more persuasive.

        Returns:
            Evaluation (empty fields and an "undetermined" verdict on failure)
        """
        logger.info(f"Evaluating debate on '{topic}'")
        data = await self._call(compose_evaluation_prompt(topic, pro_summary, con_summary))
        if data is None:
            return Evaluation()

        evaluation = Evaluation(
            overall=get_text_field(data, "overall"),
            pro=get_text_field(data, "pro"),
            con=get_text_field(data, "con"),
            more_persuasive=normalize_verdict(data.get("morePersuasive")),
            reasoning=get_text_field(data, "reasoning"),
            advice=get_text_field(data, "advice"),
        )
        logger.info(f"Verdict for '{topic}': {evaluation.more_persuasive}")
        return evaluation

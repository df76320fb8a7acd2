"""
Stance Generator — Derives the pro and con positions for a topic.

One LLM call at low temperature, JSON reply parsed with extract_json().
A blank topic is rejected before anything goes over the network.
"""

import logging
from typing import Optional

from app.config import get_settings
from app.services.debate.models import Stances
from app.services.debate.prompts import compose_stance_prompt
from app.services.llm.extractor import extract_json, get_text_field
from app.services.llm.gateway import GenerationConfig, LLMGateway, require_text

logger = logging.getLogger(__name__)

STANCE_CONFIG = GenerationConfig(temperature=0.3, max_output_tokens=400, top_p=0.9)


class StanceGenerator:
    """Produces one-sentence positions for each side of a topic."""

    def __init__(self, gateway: LLMGateway, timeout: Optional[float] = None):
        self.gateway = gateway
        self.timeout = timeout if timeout is not None else get_settings().stance_timeout_seconds

    async def generate(self, topic: str) -> Stances:
        """
        Generate the pro and con stances.

        Raises:
            ValueError: The topic is empty or not text (no upstream call is made)
            UpstreamError / EmptyResponseError / GenerationCancelledError: see gateway
        """
        if not isinstance(topic, str) or not topic.strip():
            raise ValueError("Invalid or missing topic")

        topic = topic.strip()
        logger.info(f"Generating stances for '{topic}'")

        result = await self.gateway.generate(
            compose_stance_prompt(topic), STANCE_CONFIG, timeout=self.timeout
        )
        text = require_text(result)

        data = extract_json(text)
        if data is None:
            logger.warning(f"Could not parse stances for '{topic}', returning empty stances")

        return Stances(
            pro_stance=get_text_field(data, "pro"),
            con_stance=get_text_field(data, "con"),
        )

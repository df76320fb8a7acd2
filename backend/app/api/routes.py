"""
API Routes — Stateless debate endpoints.

ENDPOINTS:
- POST /api/generate-stances     → topic → one-sentence pro/con stances
- POST /api/debate               → generate one turn (and persist it)
- POST /api/moderator/summary    → five-field summary of each side
- POST /api/moderator/evaluate   → which side was more persuasive
- GET  /api/debates/{debate_id}  → stored transcript
- GET  /api/presets              → styles, sample topics, characters, interjections

FLOW:
1. /api/generate-stances to get the two positions for a topic
2. /api/debate once per turn, alternating pro and con, passing back the
   debateId returned by the first call
3. /api/moderator/summary, then /api/moderator/evaluate, for the results

The server-side sequencer (autoplay, skip-ahead, interjections with
cancellation) lives in app/api/sessions.py.
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import (
    get_debater,
    get_moderator,
    get_stance_generator,
    get_transcript_store,
)
from app.api.errors import llm_http_exception
from app.models.schemas import (
    DebateResponse,
    EvaluationRequest,
    EvaluationResponse,
    SideSummarySchema,
    StanceRequest,
    StanceResponse,
    SummaryRequest,
    SummaryResponse,
    TurnGenerationRequest,
    TurnGenerationResponse,
    TurnMessage,
)
from app.services.debate import (
    BaseTranscriptStore,
    Debater,
    DebateSummary,
    Moderator,
    SideSummary,
    StanceGenerator,
    StoredDebate,
    Turn,
    TurnInfo,
    TurnRequest,
)
from app.services.debate.models import normalize_style
from app.services.debate.moderator import side_summary_from_payload
from app.services.debate.presets import all_presets
from app.services.llm.errors import LLMError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


async def _load_debate(store: BaseTranscriptStore, debate_id: str) -> StoredDebate:
    stored = await store.get(debate_id)
    if stored is None:
        raise HTTPException(status_code=404, detail={"error": f"Debate {debate_id} not found"})
    return stored


def _to_schema(summary: SideSummary) -> SideSummarySchema:
    return SideSummarySchema(**asdict(summary))


def _summary_response(summary: DebateSummary) -> SummaryResponse:
    return SummaryResponse(
        topic=summary.topic,
        pro=_to_schema(summary.pro),
        con=_to_schema(summary.con),
    )


# =============================================================================
# STANCES
# =============================================================================

@router.post("/generate-stances", response_model=StanceResponse)
async def generate_stances(
    request: StanceRequest,
    generator: StanceGenerator = Depends(get_stance_generator),
) -> StanceResponse:
    """
    Derive one-sentence pro and con stances for a topic.

    A reply the model formats badly yields empty strings rather than an error.

    Example:
        POST /api/generate-stances
        {"topic": "Should remote work be the standard?"}

        Returns {"proStance": "...", "conStance": "..."}
    """
    try:
        stances = await generator.generate(request.topic)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": str(e)})
    except LLMError as e:
        logger.error(f"Stance generation failed: {e}")
        raise llm_http_exception(e)

    return StanceResponse(pro_stance=stances.pro_stance, con_stance=stances.con_stance)


# =============================================================================
# TURN GENERATION
# =============================================================================

@router.post("/debate", response_model=TurnGenerationResponse)
async def generate_turn(
    request: TurnGenerationRequest,
    debater: Debater = Depends(get_debater),
    store: BaseTranscriptStore = Depends(get_transcript_store),
) -> TurnGenerationResponse:
    """
    Generate one debate turn for the requested side.

    The caller chooses the side and the turn position; this endpoint does
    not enforce alternation (the session endpoints do). The user's
    interjection, if any, is stored ahead of the generated turn. Without a
    debateId a new stored debate is created and its id returned.

    Example:
        POST /api/debate
        {"topic": "Should remote work be the standard?", "side": "pro",
         "character": "A pragmatic startup CEO", "conversationHistory": [],
         "turn": {"index": 1, "total": 4}}

        Returns {"text": "...", "debateId": "...", "truncated": false}
    """
    history: Optional[list[Turn]] = None
    if request.conversation_history is not None:
        history = [Turn(side=m.side, content=m.content) for m in request.conversation_history]

    if request.debate_id:
        stored = await _load_debate(store, request.debate_id)
        if history is None:
            history = stored.turns

    turn_info = None
    if request.turn is not None:
        turn_info = TurnInfo(
            index=request.turn.index,
            total=request.turn.total,
            is_final=request.turn.is_final or request.turn.index >= request.turn.total,
        )

    intervention = (request.user_intervention or "").strip() or None
    turn_request = TurnRequest(
        topic=request.topic,
        side=request.side,
        character=request.character,
        style=normalize_style(request.style),
        stance=request.stance,
        history=history or [],
        user_intervention=intervention,
        turn=turn_info,
    )

    logger.info(f"Generating {request.side} turn on '{request.topic}'")
    try:
        result = await debater.generate(turn_request)
    except LLMError as e:
        logger.error(f"Turn generation failed: {e}")
        raise llm_http_exception(e)

    new_turns = []
    if intervention:
        new_turns.append(Turn(side="user", content=intervention))
    new_turns.append(Turn(side=request.side, content=result.text))

    debate_id = request.debate_id
    if not debate_id:
        debate_id = await store.create(request.topic, new_turns[0])
        new_turns = new_turns[1:]
    for turn in new_turns:
        await store.append(debate_id, turn)

    return TurnGenerationResponse(
        text=result.text,
        debate_id=debate_id,
        truncated=result.truncated,
        finish_reason=result.finish_reason,
    )


# =============================================================================
# MODERATOR
# =============================================================================

@router.post("/moderator/summary", response_model=SummaryResponse)
async def summarize_debate(
    request: SummaryRequest,
    moderator: Moderator = Depends(get_moderator),
    store: BaseTranscriptStore = Depends(get_transcript_store),
) -> SummaryResponse:
    """
    Summarize each side of a debate in five short fields.

    Works from the stored transcript (debateId) or from inline messages.
    User interjections are left out. A failed summary comes back as empty
    strings, never an error.

    Example:
        POST /api/moderator/summary
        {"debateId": "...", "proCharacter": "A pragmatic startup CEO",
         "conCharacter": "A labor union organizer"}
    """
    if request.debate_id:
        stored = await _load_debate(store, request.debate_id)
        topic, turns = stored.topic, stored.turns
    elif request.messages is not None:
        topic = request.topic or ""
        turns = [Turn(side=m.side, content=m.content) for m in request.messages]
    else:
        raise HTTPException(
            status_code=400,
            detail={"error": "Provide a debateId or the debate messages"},
        )

    try:
        summary = await moderator.summarize(
            topic,
            turns,
            request.pro_character or "",
            request.con_character or "",
        )
    except LLMError as e:
        raise llm_http_exception(e)

    return _summary_response(summary)


@router.post("/moderator/evaluate", response_model=EvaluationResponse)
async def evaluate_debate(
    request: EvaluationRequest,
    moderator: Moderator = Depends(get_moderator),
    store: BaseTranscriptStore = Depends(get_transcript_store),
) -> EvaluationResponse:
    """
    Judge which side argued more persuasively.

    Summaries the client already holds are used as-is; missing ones are
    computed from the stored debate first.

    Example:
        POST /api/moderator/evaluate
        {"topic": "...", "proSummary": {...}, "conSummary": {...}}

        Returns {"overall": "...", "pro": "...", "con": "...",
                 "morePersuasive": "pro", "reasoning": "...", "advice": "...",
                 "version": 2}
    """
    topic = request.topic or ""
    pro_summary = (
        side_summary_from_payload(request.pro_summary.model_dump(by_alias=True))
        if request.pro_summary else None
    )
    con_summary = (
        side_summary_from_payload(request.con_summary.model_dump(by_alias=True))
        if request.con_summary else None
    )

    try:
        if pro_summary is None or con_summary is None:
            if not request.debate_id:
                raise HTTPException(
                    status_code=400,
                    detail={"error": "Provide both summaries or a debateId"},
                )
            stored = await _load_debate(store, request.debate_id)
            summary = await moderator.summarize(
                stored.topic,
                stored.turns,
                request.pro_character or "",
                request.con_character or "",
            )
            topic = topic or stored.topic
            pro_summary = pro_summary or summary.pro
            con_summary = con_summary or summary.con
        elif not topic and request.debate_id:
            topic = (await _load_debate(store, request.debate_id)).topic

        evaluation = await moderator.evaluate(topic, pro_summary, con_summary)
    except LLMError as e:
        raise llm_http_exception(e)

    return EvaluationResponse(**evaluation.to_dict())


# =============================================================================
# LOOKUPS
# =============================================================================

@router.get("/debates/{debate_id}", response_model=DebateResponse)
async def get_debate(
    debate_id: str,
    store: BaseTranscriptStore = Depends(get_transcript_store),
) -> DebateResponse:
    """Get a stored debate transcript."""
    debate = await _load_debate(store, debate_id)

    return DebateResponse(
        id=debate.id,
        topic=debate.topic,
        messages=[TurnMessage(**t.to_dict()) for t in debate.turns],
        created_at=debate.created_at,
    )


@router.get("/presets")
async def get_presets() -> dict:
    """Styles, sample topics, character presets and preset interjections for the UI."""
    return all_presets()

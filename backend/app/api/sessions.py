"""
Session Routes — Server-side debate sessions driven by the turn sequencer.

ENDPOINTS:
- POST   /api/sessions                      → start a session (idle)
- GET    /api/sessions/{session_id}         → state, progress and transcript
- POST   /api/sessions/{session_id}/play    → start or resume autoplay
- POST   /api/sessions/{session_id}/pause   → stop after the current turn
- POST   /api/sessions/{session_id}/skip    → generate the next turn now
- POST   /api/sessions/{session_id}/interject → user turn, cancels in-flight generation
- GET    /api/sessions/{session_id}/results → moderator summary (once complete)
- DELETE /api/sessions/{session_id}         → abandon the session

STATUS CODES:
- 404: unknown session
- 409: a generation is already in flight, or the debate is complete
       (results: the debate is not complete yet)
- 400: blank topic or interjection text
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import (
    get_debater,
    get_moderator,
    get_session_registry,
    get_transcript_store,
)
from app.api.errors import llm_http_exception
from app.config import get_settings
from app.models.schemas import (
    InterjectionRequest,
    SessionCreateRequest,
    SessionStatus,
    SideSummarySchema,
    StepResponse,
    SummaryResponse,
    TurnMessage,
)
from app.services.debate import (
    BaseTranscriptStore,
    DebateConfig,
    Debater,
    Moderator,
    SessionRegistry,
    Turn,
    TurnSequencer,
)
from app.services.debate.models import normalize_style
from app.services.debate.presets import DEFAULT_CON_CHARACTER, DEFAULT_PRO_CHARACTER
from app.services.debate.sequencer import SequencerError
from app.services.llm.errors import LLMError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def _status(sequencer: TurnSequencer) -> SessionStatus:
    return SessionStatus(
        session_id=sequencer.session_id,
        debate_id=sequencer.debate_id,
        topic=sequencer.config.topic,
        style=sequencer.config.style,
        state=sequencer.state.value,
        next_side=sequencer.next_side,
        speaking=sequencer.speaking,
        turn_index=sequencer.turn_index,
        max_turns=sequencer.max_turns,
        progress=sequencer.progress,
        is_playing=sequencer.playing,
        is_generating=sequencer.is_generating,
        is_complete=sequencer.is_complete,
        last_error=sequencer.last_error,
        messages=[TurnMessage(**t.to_dict()) for t in sequencer.turns],
    )


def _step_response(sequencer: TurnSequencer, turn: Optional[Turn]) -> StepResponse:
    return StepResponse(
        turn=TurnMessage(**turn.to_dict()) if turn is not None else None,
        session=_status(sequencer),
    )


def _get_sequencer(session_id: str, registry: SessionRegistry) -> TurnSequencer:
    sequencer = registry.get(session_id)
    if sequencer is None:
        raise HTTPException(status_code=404, detail={"error": f"Session {session_id} not found"})
    return sequencer


def _conflict(error: SequencerError) -> HTTPException:
    return HTTPException(status_code=409, detail={"error": str(error)})


# =============================================================================
# LIFECYCLE
# =============================================================================

@router.post("", response_model=SessionStatus, status_code=201)
async def create_session(
    request: SessionCreateRequest,
    debater: Debater = Depends(get_debater),
    store: BaseTranscriptStore = Depends(get_transcript_store),
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionStatus:
    """
    Start a debate session. Nothing is generated until play or skip.

    Example:
        POST /api/sessions
        {"topic": "Should remote work be the standard?", "style": "aggressive",
         "proCharacter": "A pragmatic startup CEO", "maxTurns": 4}
    """
    settings = get_settings()
    try:
        config = DebateConfig(
            topic=request.topic,
            style=normalize_style(request.style),
            pro_character=request.pro_character or DEFAULT_PRO_CHARACTER,
            con_character=request.con_character or DEFAULT_CON_CHARACTER,
            pro_stance=request.pro_stance,
            con_stance=request.con_stance,
            max_turns=request.max_turns or settings.default_max_turns,
            pacing_seconds=settings.turn_pacing_seconds,
            typing_char_seconds=settings.typing_char_seconds,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": str(e)})

    sequencer = await registry.add(TurnSequencer(config, debater, store))
    return _status(sequencer)


@router.get("/{session_id}", response_model=SessionStatus)
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionStatus:
    """Current state, progress and transcript of a session."""
    return _status(_get_sequencer(session_id, registry))


@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> dict:
    """Abandon a session. Its stored transcript stays readable by debateId."""
    if not await registry.discard(session_id):
        raise HTTPException(status_code=404, detail={"error": f"Session {session_id} not found"})
    return {"sessionId": session_id, "discarded": True}


# =============================================================================
# CONTROLS
# =============================================================================

@router.post("/{session_id}/play", response_model=SessionStatus)
async def play_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionStatus:
    """Start or resume autoplay. Turns then arrive with pacing in the background."""
    sequencer = _get_sequencer(session_id, registry)
    try:
        sequencer.play()
    except SequencerError as e:
        raise _conflict(e)
    return _status(sequencer)


@router.post("/{session_id}/pause", response_model=SessionStatus)
async def pause_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> SessionStatus:
    """Stop autoplay. A turn already being generated still lands."""
    sequencer = _get_sequencer(session_id, registry)
    sequencer.pause()
    return _status(sequencer)


@router.post("/{session_id}/skip", response_model=StepResponse)
async def skip_turn(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
) -> StepResponse:
    """
    Generate the next turn immediately, without pacing.

    Returns the new turn, or turn=null when the generation timed out or
    failed (see session.lastError).
    """
    sequencer = _get_sequencer(session_id, registry)
    try:
        turn = await sequencer.step()
    except SequencerError as e:
        raise _conflict(e)
    except LLMError as e:
        raise llm_http_exception(e)
    return _step_response(sequencer, turn)


@router.post("/{session_id}/interject", response_model=StepResponse)
async def interject(
    session_id: str,
    request: InterjectionRequest,
    registry: SessionRegistry = Depends(get_session_registry),
) -> StepResponse:
    """
    Add a user turn to the debate.

    Any in-flight generation is cancelled and the interjection is handed
    to the next speaker. It does not use up a turn.

    Example:
        POST /api/sessions/{session_id}/interject
        {"text": "Give a concrete example", "resume": true}
    """
    sequencer = _get_sequencer(session_id, registry)
    try:
        turn = await sequencer.interject(request.text, resume=request.resume)
    except ValueError as e:
        raise HTTPException(status_code=400, detail={"error": str(e)})
    except SequencerError as e:
        raise _conflict(e)
    return _step_response(sequencer, turn)


# =============================================================================
# RESULTS
# =============================================================================

@router.get("/{session_id}/results", response_model=SummaryResponse)
async def session_results(
    session_id: str,
    registry: SessionRegistry = Depends(get_session_registry),
    store: BaseTranscriptStore = Depends(get_transcript_store),
    moderator: Moderator = Depends(get_moderator),
) -> SummaryResponse:
    """Moderator summary of a completed session, read from the stored transcript."""
    sequencer = _get_sequencer(session_id, registry)
    if not sequencer.is_complete:
        raise HTTPException(
            status_code=409,
            detail={"error": "The debate is not complete yet"},
        )

    stored = await store.get(sequencer.debate_id) if sequencer.debate_id else None
    turns = stored.turns if stored is not None else list(sequencer.turns)
    logger.info(f"Summarizing session {session_id} ({len(turns)} turns)")

    try:
        summary = await moderator.summarize(
            sequencer.config.topic,
            turns,
            sequencer.config.pro_character,
            sequencer.config.con_character,
        )
    except LLMError as e:
        raise llm_http_exception(e)

    return SummaryResponse(
        topic=summary.topic,
        pro=SideSummarySchema(**asdict(summary.pro)),
        con=SideSummarySchema(**asdict(summary.con)),
    )

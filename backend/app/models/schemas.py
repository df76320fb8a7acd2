"""
Pydantic schemas for API request/response validation.

These define the shape of data that goes in and out of the API. Field
names are snake_case in Python and camelCase on the wire (the browser
frontend's convention), so every schema accepts both.

FLOW OVERVIEW:
==============
1. Frontend posts a topic to /api/generate-stances → StanceResponse
2. Turns are produced either statelessly (/api/debate) or by a server-side
   session (/api/sessions/...) → TurnGenerationResponse / SessionStatus
3. /api/moderator/summary → SummaryResponse
4. /api/moderator/evaluate → EvaluationResponse
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApiModel(BaseModel):
    """Base for all API schemas: camelCase aliases, snake_case names both accepted."""

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# TRANSCRIPT SCHEMAS
# =============================================================================

class TurnMessage(ApiModel):
    """
    One turn as it travels over the wire.

    Extra keys the frontend attaches (id, timestamp) are ignored.
    """
    side: Literal["pro", "con", "user"]
    content: str


class TurnPosition(ApiModel):
    """Where a turn sits in the debate (index is 1-based)."""
    index: int = Field(ge=1)
    total: int = Field(ge=1)
    is_final: bool = Field(default=False, alias="isFinal")


class DebateResponse(ApiModel):
    """
    A stored debate.

    USED BY: GET /api/debates/{debate_id}
    """
    id: str
    topic: str
    messages: list[TurnMessage] = Field(default_factory=list)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


# =============================================================================
# STANCES
# =============================================================================

class StanceRequest(ApiModel):
    """
    Request body for POST /api/generate-stances.

    Example:
        {"topic": "Should remote work be the standard?"}
    """
    topic: str


class StanceResponse(ApiModel):
    pro_stance: str = Field(alias="proStance")
    con_stance: str = Field(alias="conStance")


# =============================================================================
# TURN GENERATION (stateless)
# =============================================================================

class TurnGenerationRequest(ApiModel):
    """
    Request body for POST /api/debate.

    History comes from conversationHistory when given, otherwise from the
    stored debate named by debateId.

    Example:
        {"topic": "Should remote work be the standard?", "side": "pro",
         "character": "A pragmatic startup CEO", "style": "logical",
         "conversationHistory": [], "turn": {"index": 1, "total": 4, "isFinal": false}}
    """
    topic: str = Field(min_length=1)
    side: Literal["pro", "con"]
    character: str = ""
    style: Optional[str] = "logical"
    stance: str = ""
    conversation_history: Optional[list[TurnMessage]] = Field(
        default=None, alias="conversationHistory"
    )
    debate_id: Optional[str] = Field(default=None, alias="debateId")
    user_intervention: Optional[str] = Field(default=None, alias="userIntervention")
    turn: Optional[TurnPosition] = None


class TurnGenerationResponse(ApiModel):
    text: str
    debate_id: Optional[str] = Field(default=None, alias="debateId")
    truncated: bool = False
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")


# =============================================================================
# MODERATOR
# =============================================================================

class SideSummarySchema(ApiModel):
    """Five short fields summarizing one side; empty strings when unavailable."""
    label: str = ""
    core_claim: str = Field(default="", alias="coreClaim")
    main_argument: str = Field(default="", alias="mainArgument")
    supporting_example: str = Field(default="", alias="supportingExample")
    closing_statement: str = Field(default="", alias="closingStatement")


class SummaryRequest(ApiModel):
    """
    Request body for POST /api/moderator/summary.

    Either debateId (stored transcript) or topic + messages (inline).
    """
    debate_id: Optional[str] = Field(default=None, alias="debateId")
    pro_character: Optional[str] = Field(default=None, alias="proCharacter")
    con_character: Optional[str] = Field(default=None, alias="conCharacter")
    topic: Optional[str] = None
    messages: Optional[list[TurnMessage]] = None


class SummaryResponse(ApiModel):
    topic: str = ""
    pro: SideSummarySchema = Field(default_factory=SideSummarySchema)
    con: SideSummarySchema = Field(default_factory=SideSummarySchema)


class EvaluationRequest(ApiModel):
    """
    Request body for POST /api/moderator/evaluate.

    Summaries the client already has are used as-is; missing ones are
    computed from the stored debate.
    """
    debate_id: Optional[str] = Field(default=None, alias="debateId")
    topic: Optional[str] = None
    pro_summary: Optional[SideSummarySchema] = Field(default=None, alias="proSummary")
    con_summary: Optional[SideSummarySchema] = Field(default=None, alias="conSummary")
    pro_character: Optional[str] = Field(default=None, alias="proCharacter")
    con_character: Optional[str] = Field(default=None, alias="conCharacter")


class EvaluationResponse(ApiModel):
    """
    Canonical evaluation (version 2).

    Carries both the per-side feedback fields and the verdict fields.
    """
    overall: str = ""
    pro: str = ""
    con: str = ""
    more_persuasive: Literal["pro", "con", "undetermined"] = Field(
        default="undetermined", alias="morePersuasive"
    )
    reasoning: str = ""
    advice: str = ""
    version: int = 2


# =============================================================================
# SESSIONS (server-side turn sequencer)
# =============================================================================

class SessionCreateRequest(ApiModel):
    """
    Request body for POST /api/sessions.

    maxTurns defaults to the server's DEFAULT_MAX_TURNS setting.
    """
    topic: str = Field(min_length=1)
    style: Optional[str] = "logical"
    pro_character: Optional[str] = Field(default=None, alias="proCharacter")
    con_character: Optional[str] = Field(default=None, alias="conCharacter")
    pro_stance: str = Field(default="", alias="proStance")
    con_stance: str = Field(default="", alias="conStance")
    max_turns: Optional[int] = Field(default=None, ge=1, le=20, alias="maxTurns")


class InterjectionRequest(ApiModel):
    text: str
    resume: bool = True


class SessionStatus(ApiModel):
    session_id: str = Field(alias="sessionId")
    debate_id: Optional[str] = Field(default=None, alias="debateId")
    topic: str
    style: str
    state: str
    next_side: Literal["pro", "con"] = Field(alias="nextSide")
    speaking: Optional[Literal["pro", "con"]] = None
    turn_index: int = Field(alias="turnIndex")
    max_turns: int = Field(alias="maxTurns")
    progress: float
    is_playing: bool = Field(alias="isPlaying")
    is_generating: bool = Field(alias="isGenerating")
    is_complete: bool = Field(alias="isComplete")
    last_error: Optional[str] = Field(default=None, alias="lastError")
    messages: list[TurnMessage] = Field(default_factory=list)


class StepResponse(ApiModel):
    """Result of a skip-ahead: the new turn (None when cancelled or failed)."""
    turn: Optional[TurnMessage] = None
    session: SessionStatus

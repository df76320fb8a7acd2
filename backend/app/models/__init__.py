# Database models and API schemas
from app.models.debate import Debate
from app.models.schemas import (
    DebateResponse,
    EvaluationResponse,
    SessionStatus,
    StanceResponse,
    SummaryResponse,
    TurnGenerationResponse,
    TurnMessage,
)

__all__ = [
    "Debate",
    "DebateResponse",
    "EvaluationResponse",
    "SessionStatus",
    "StanceResponse",
    "SummaryResponse",
    "TurnGenerationResponse",
    "TurnMessage",
]

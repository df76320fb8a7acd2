"""
Debate Module — Stances, turns, sequencing and moderation for a debate.

A user supplies a topic; the stance generator derives the two positions;
the turn sequencer alternates pro and con turns produced by the debater and
persists them in the transcript store; the moderator summarizes and judges
the result.

COMPONENTS:
- StanceGenerator: topic → one-sentence pro/con stances
- Debater: composes the turn prompt and calls the LLM gateway
- TurnSequencer: per-session state machine (alternation, single flight,
  interjections, completion)
- SessionRegistry: live sequencers, keyed by session handle
- Moderator: side summaries and the persuasiveness verdict
- SqlTranscriptStore / InMemoryTranscriptStore: append-only transcripts

USAGE:
    from app.services.debate import DebateConfig, Debater, TurnSequencer

    sequencer = TurnSequencer(
        DebateConfig(topic="Should remote work be the standard?", max_turns=4),
        Debater(gateway),
        store,
    )
    while not sequencer.is_complete:
        await sequencer.step()
"""

# Data models
from app.services.debate.models import (
    DebateSummary,
    Evaluation,
    SideSummary,
    Stances,
    Turn,
    TurnInfo,
    TurnRequest,
    TurnResult,
    side_for_turn,
)

# Components
from app.services.debate.debater import Debater
from app.services.debate.moderator import Moderator
from app.services.debate.stances import StanceGenerator

# Persistence
from app.services.debate.transcript_store import (
    BaseTranscriptStore,
    InMemoryTranscriptStore,
    SqlTranscriptStore,
    StoredDebate,
)

# Sequencing
from app.services.debate.registry import SessionRegistry
from app.services.debate.sequencer import (
    DebateCompleteError,
    DebateConfig,
    GenerationInProgressError,
    SequencerState,
    TurnSequencer,
)

# Abstract bases
from app.services.debate.protocols import BaseDebater

__all__ = [
    # Data models
    "DebateSummary",
    "Evaluation",
    "SideSummary",
    "Stances",
    "Turn",
    "TurnInfo",
    "TurnRequest",
    "TurnResult",
    "side_for_turn",
    # Components
    "Debater",
    "Moderator",
    "StanceGenerator",
    # Persistence
    "BaseTranscriptStore",
    "InMemoryTranscriptStore",
    "SqlTranscriptStore",
    "StoredDebate",
    # Sequencing
    "DebateCompleteError",
    "DebateConfig",
    "GenerationInProgressError",
    "SequencerState",
    "SessionRegistry",
    "TurnSequencer",
    # Abstract bases
    "BaseDebater",
]

"""
Debate Models — Data structures shared by the debate services.

These dataclasses define the contract between debate components:
- Turn: One attributed utterance in a transcript
- TurnRequest / TurnResult: What the debater receives and produces
- SideSummary / Evaluation: What the moderator produces
"""

from dataclasses import dataclass, field, asdict
from typing import Literal, Optional


Side = Literal["pro", "con"]
Speaker = Literal["pro", "con", "user"]
DebateStyle = Literal["emotional", "logical", "philosophical"]
Verdict = Literal["pro", "con", "undetermined"]

SIDES: tuple[str, ...] = ("pro", "con")
SPEAKERS: tuple[str, ...] = ("pro", "con", "user")
STYLES: tuple[str, ...] = ("emotional", "logical", "philosophical")
VERDICTS: tuple[str, ...] = ("pro", "con", "undetermined")

DEFAULT_STYLE: DebateStyle = "logical"

# Version tag for the canonical evaluation shape
EVALUATION_VERSION = 2


def side_for_turn(turn_index: int) -> Side:
    """Pro speaks on even turn counters (0, 2, ...), con on odd ones."""
    return "pro" if turn_index % 2 == 0 else "con"


def normalize_style(style: Optional[str]) -> DebateStyle:
    """Unknown or missing styles fall back to logical."""
    if style in STYLES:
        return style
    return DEFAULT_STYLE


@dataclass(frozen=True)
class Turn:
    """
    One utterance in a debate transcript.

    Frozen: once appended to a transcript a turn never changes.
    """

    side: Speaker
    """Who spoke: 'pro', 'con', or 'user' (an interjection)"""

    content: str
    """What was said"""

    def to_dict(self) -> dict:
        return {"side": self.side, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict) -> "Turn":
        side = data.get("side")
        if side not in SPEAKERS:
            side = "user"
        return cls(side=side, content=str(data.get("content", "")))


@dataclass(frozen=True)
class TurnInfo:
    """Position of a turn in the debate (index is 1-based)."""

    index: int
    total: int
    is_final: bool = False

    @classmethod
    def for_index(cls, index: int, total: int) -> "TurnInfo":
        return cls(index=index, total=total, is_final=index == total)


@dataclass
class TurnRequest:
    """Everything the debater needs to produce one turn."""

    topic: str
    side: Side
    character: str = ""
    style: DebateStyle = DEFAULT_STYLE
    stance: str = ""
    history: list[Turn] = field(default_factory=list)
    user_intervention: Optional[str] = None
    turn: Optional[TurnInfo] = None

    @property
    def is_final(self) -> bool:
        return self.turn is not None and self.turn.is_final


@dataclass
class TurnResult:
    """A generated turn, possibly cut short by the output-length limit."""

    text: str
    truncated: bool = False
    finish_reason: Optional[str] = None


@dataclass
class Stances:
    """One-sentence positions for each side of a topic."""

    pro_stance: str = ""
    con_stance: str = ""


@dataclass
class SideSummary:
    """
    Moderator's summary of one side's turns.

    Every field defaults to an empty string so a failed summary is still
    well-typed.
    """

    label: str = ""
    core_claim: str = ""
    main_argument: str = ""
    supporting_example: str = ""
    closing_statement: str = ""

    # Keys the model is asked to produce, mapped to attribute names
    JSON_KEYS = {
        "label": "label",
        "coreClaim": "core_claim",
        "mainArgument": "main_argument",
        "supportingExample": "supporting_example",
        "closingStatement": "closing_statement",
    }

    def to_json(self) -> dict:
        return {key: getattr(self, attr) for key, attr in self.JSON_KEYS.items()}


@dataclass
class Evaluation:
    """
    Moderator's verdict over both sides' summaries.

    Unifies the two evaluation shapes the frontend has used: the feedback
    shape (overall / per-side / advice) and the verdict shape
    (morePersuasive / reasoning).
    """

    overall: str = ""
    pro: str = ""
    con: str = ""
    more_persuasive: Verdict = "undetermined"
    reasoning: str = ""
    advice: str = ""
    version: int = EVALUATION_VERSION

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DebateSummary:
    """Side-by-side summary of a whole debate."""

    topic: str = ""
    pro: SideSummary = field(default_factory=SideSummary)
    con: SideSummary = field(default_factory=SideSummary)

"""
Turn Sequencer — Runs one debate session turn by turn.

WHAT THIS DOES:
Alternates the speaking side, enforces the maximum turn count, persists
every turn, and lets the user interject at any moment.

STATES:
    idle ──play/step──▶ awaiting_generation ──turn lands──▶ typing
      ▲                        │    ▲                         │
      │                 timeout/error│                        ▼
      │                        ▼    │ play/step/       settle (counter < max)
      └──────────── awaiting_intervention ◀──pause── awaiting_generation
                                                   settle (counter == max)
                                                              ▼
                                                          complete

- Side alternates by parity of the turn counter: even → pro, odd → con
- Interjections append a "user" turn and never touch the counter
- "typing" is presentation only: it covers the time the frontend spends
  animating the new turn and has no effect on what comes next
- complete is terminal: further generation raises DebateCompleteError

SINGLE FLIGHT:
At most one generation per session. A second request while one is in
flight raises GenerationInProgressError.

CANCELLATION:
An interjection cancels the in-flight generation task and bumps an epoch
counter. Anything that arrives for an older epoch is discarded, so a late
reply can never land after the user's turn.

USAGE:
    sequencer = TurnSequencer(DebateConfig(topic="...", max_turns=4), debater, store)
    await sequencer.step()           # skip-ahead: generate the next turn now
    sequencer.play()                 # autoplay with pacing in a background task
    await sequencer.interject("Give a concrete example")
    await sequencer.close()
"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.services.debate.models import (
    DebateStyle,
    DEFAULT_STYLE,
    Side,
    Turn,
    TurnInfo,
    TurnRequest,
    normalize_style,
    side_for_turn,
)
from app.services.debate.presets import DEFAULT_CON_CHARACTER, DEFAULT_PRO_CHARACTER
from app.services.debate.protocols import BaseDebater
from app.services.debate.transcript_store import BaseTranscriptStore
from app.services.llm.errors import (
    GenerationCancelledError,
    LLMError,
    MissingCredentialError,
)

logger = logging.getLogger(__name__)


class SequencerState(str, Enum):
    IDLE = "idle"
    AWAITING_GENERATION = "awaiting_generation"
    TYPING = "typing"
    AWAITING_INTERVENTION = "awaiting_intervention"
    COMPLETE = "complete"


class SequencerError(Exception):
    """Base class for requests the sequencer refuses."""


class GenerationInProgressError(SequencerError):
    """A generation is already in flight for this session."""


class DebateCompleteError(SequencerError):
    """The session already reached its maximum turn count."""


@dataclass
class DebateConfig:
    """Per-session settings, fixed when the session starts."""

    topic: str
    style: DebateStyle = DEFAULT_STYLE
    pro_character: str = DEFAULT_PRO_CHARACTER
    con_character: str = DEFAULT_CON_CHARACTER
    pro_stance: str = ""
    con_stance: str = ""
    max_turns: int = 6
    pacing_seconds: float = 1.0
    typing_char_seconds: float = 0.0

    def __post_init__(self):
        self.topic = (self.topic or "").strip()
        if not self.topic:
            raise ValueError("Invalid or missing topic")
        if self.max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self.style = normalize_style(self.style)

    def character_for(self, side: Side) -> str:
        return self.pro_character if side == "pro" else self.con_character

    def stance_for(self, side: Side) -> str:
        return self.pro_stance if side == "pro" else self.con_stance


class TurnSequencer:
    """
    State machine for one debate session.

    All state is per instance; the registry hands instances out by handle.
    """

    def __init__(
        self,
        config: DebateConfig,
        debater: BaseDebater,
        store: BaseTranscriptStore,
        session_id: Optional[str] = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.config = config
        self.debater = debater
        self.store = store

        self.state = SequencerState.IDLE
        self.turn_index = 0
        self.turns: list[Turn] = []
        self.debate_id: Optional[str] = None
        self.pending_intervention: Optional[str] = None
        self.playing = False
        self.speaking: Optional[Side] = None
        self.last_error: Optional[str] = None
        self.last_activity = time.monotonic()

        self._epoch = 0
        self._generation: Optional[asyncio.Task] = None
        self._generation_epoch = -1
        self._autoplay: Optional[asyncio.Task] = None
        # Interjections made before the debate row exists
        self._unsaved: list[Turn] = []
        # Keeps the stored order identical to the in-memory order
        self._write_lock = asyncio.Lock()

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    @property
    def max_turns(self) -> int:
        return self.config.max_turns

    @property
    def next_side(self) -> Side:
        return side_for_turn(self.turn_index)

    @property
    def is_complete(self) -> bool:
        return self.turn_index >= self.max_turns

    @property
    def is_generating(self) -> bool:
        return (
            self._generation is not None
            and not self._generation.done()
            and self._generation_epoch == self._epoch
        )

    @property
    def progress(self) -> float:
        return min(100.0, self.turn_index / self.max_turns * 100)

    @property
    def idle_seconds(self) -> float:
        """Seconds since the last control call or recorded turn."""
        return time.monotonic() - self.last_activity

    def touch(self) -> None:
        self.last_activity = time.monotonic()

    # =========================================================================
    # GENERATION
    # =========================================================================

    def _build_request(self, side: Side) -> TurnRequest:
        return TurnRequest(
            topic=self.config.topic,
            side=side,
            character=self.config.character_for(side),
            style=self.config.style,
            stance=self.config.stance_for(side),
            history=list(self.turns),
            user_intervention=self.pending_intervention,
            turn=TurnInfo.for_index(self.turn_index + 1, self.max_turns),
        )

    def _halt(self, reason: str) -> None:
        """Stop autoplay and wait for the user after a failed generation."""
        self.last_error = reason
        self.playing = False
        self.speaking = None
        if not self.is_complete:
            self.state = SequencerState.AWAITING_INTERVENTION

    async def _generate_turn(self) -> Optional[Turn]:
        """
        Generate, persist and count the next turn.

        Returns:
            The new Turn, or None when the generation was cancelled, timed
            out, failed, or was superseded by an interjection
        """
        if self.is_complete:
            raise DebateCompleteError("The debate is already complete")
        if self.is_generating:
            raise GenerationInProgressError("A turn is already being generated")

        side = self.next_side
        request = self._build_request(side)
        epoch = self._epoch

        self.state = SequencerState.AWAITING_GENERATION
        self.speaking = side
        self.last_error = None

        task = asyncio.create_task(self.debater.generate(request))
        self._generation = task
        self._generation_epoch = epoch

        try:
            result = await task
        except asyncio.CancelledError:
            if epoch != self._epoch:
                logger.info(
                    f"[{self.session_id}] {side} turn {request.turn.index} cancelled by interjection"
                )
                return None
            raise
        except GenerationCancelledError:
            logger.info(f"[{self.session_id}] {side} turn {request.turn.index} timed out")
            self._halt("Generation was cancelled before a reply arrived")
            return None
        except MissingCredentialError as e:
            self._halt(str(e))
            raise
        except LLMError as e:
            logger.error(f"[{self.session_id}] {side} turn {request.turn.index} failed: {e}")
            self._halt(str(e))
            return None
        except Exception as e:
            logger.exception(f"[{self.session_id}] {side} turn {request.turn.index} crashed")
            self._halt(f"Generation failed: {type(e).__name__}: {e}")
            return None
        finally:
            if self._generation is task:
                self._generation = None

        if epoch != self._epoch:
            logger.info(f"[{self.session_id}] Discarding late {side} reply for an older epoch")
            return None

        turn = Turn(side=side, content=result.text)
        try:
            await self._record(turn)
        except Exception as e:
            logger.exception(f"[{self.session_id}] Could not store {side} turn {request.turn.index}")
            self._halt(f"Could not store the turn: {type(e).__name__}: {e}")
            return None

        self.turn_index += 1
        if self.pending_intervention == request.user_intervention:
            self.pending_intervention = None
        self.state = SequencerState.TYPING

        logger.info(
            f"[{self.session_id}] {side} turn {self.turn_index}/{self.max_turns} recorded"
            f"{' (truncated)' if result.truncated else ''}"
        )
        return turn

    async def _record(self, turn: Turn) -> None:
        """Persist a turn, creating the stored debate on the first model turn."""
        async with self._write_lock:
            if self.debate_id is not None:
                await self.store.append(self.debate_id, turn)
            elif turn.side == "user":
                self._unsaved.append(turn)
            else:
                pending = [*self._unsaved, turn]
                self.debate_id = await self.store.create(self.config.topic, pending[0])
                for earlier in pending[1:]:
                    await self.store.append(self.debate_id, earlier)
                self._unsaved.clear()
                logger.info(f"[{self.session_id}] Debate stored as {self.debate_id}")

            self.turns.append(turn)
            self.touch()

    def settle(self) -> None:
        """Leave the typing state once the new turn has been shown."""
        if self.state != SequencerState.TYPING:
            return
        self.speaking = None
        if self.is_complete:
            self.state = SequencerState.COMPLETE
            self.playing = False
            logger.info(f"[{self.session_id}] Debate complete after {self.turn_index} turns")
        elif self.playing:
            self.state = SequencerState.AWAITING_GENERATION
        else:
            self.state = SequencerState.AWAITING_INTERVENTION

    # =========================================================================
    # CONTROLS
    # =========================================================================

    async def step(self) -> Optional[Turn]:
        """
        Skip ahead: generate the next turn now, without pacing or typing delay.

        Raises:
            DebateCompleteError: The maximum turn count was reached
            GenerationInProgressError: Another generation is in flight
        """
        self.settle()
        turn = await self._generate_turn()
        if turn is not None:
            self.settle()
        return turn

    def play(self) -> None:
        """Start (or resume) autoplay in a background task."""
        if self.is_complete:
            raise DebateCompleteError("The debate is already complete")
        self.playing = True
        self.last_error = None
        if self.state in (SequencerState.IDLE, SequencerState.AWAITING_INTERVENTION):
            self.state = SequencerState.AWAITING_GENERATION
        self._ensure_autoplay()

    def pause(self) -> None:
        """Stop autoplay after the current turn. An in-flight generation still lands."""
        self.playing = False
        if self.is_complete or self.is_generating:
            return
        if self.state in (SequencerState.IDLE, SequencerState.AWAITING_GENERATION):
            self.state = SequencerState.AWAITING_INTERVENTION

    async def interject(self, text: str, resume: bool = True) -> Turn:
        """
        Insert a user turn, cancelling any in-flight generation.

        The interjection is also handed to the next debater prompt. It does
        not consume a turn slot.

        Args:
            text: What the user said
            resume: Continue autoplay afterwards

        Raises:
            ValueError: The text is blank
            DebateCompleteError: The debate is already complete
        """
        content = (text or "").strip()
        if not content:
            raise ValueError("Interjection text is empty")
        if self.is_complete:
            raise DebateCompleteError("The debate is already complete")

        # Invalidate whatever is in flight before it can land
        self._epoch += 1
        if self._generation is not None and not self._generation.done():
            logger.info(f"[{self.session_id}] Interjection aborts the in-flight generation")
            self._generation.cancel()

        turn = Turn(side="user", content=content)
        await self._record(turn)

        self.pending_intervention = content
        self.speaking = None
        self.last_error = None

        if resume:
            self.playing = True
            self.state = SequencerState.AWAITING_GENERATION
            self._ensure_autoplay()
        elif self.playing:
            self.state = SequencerState.AWAITING_GENERATION
        else:
            self.state = SequencerState.AWAITING_INTERVENTION

        return turn

    async def close(self) -> None:
        """Cancel autoplay and any in-flight generation (session abandoned)."""
        self.playing = False
        self._epoch += 1

        tasks = [t for t in (self._autoplay, self._generation) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._autoplay = None
        self._generation = None

    # =========================================================================
    # AUTOPLAY
    # =========================================================================

    def _ensure_autoplay(self) -> None:
        if self._autoplay is None or self._autoplay.done():
            self._autoplay = asyncio.create_task(self._autoplay_loop())

    def _typing_seconds(self, turn: Turn) -> float:
        return len(turn.content) * self.config.typing_char_seconds

    async def _autoplay_loop(self) -> None:
        """Pace, generate, show, repeat until paused, halted or complete."""
        try:
            while self.playing and not self.is_complete:
                await asyncio.sleep(self.config.pacing_seconds)
                if not self.playing:
                    break

                try:
                    turn = await self._generate_turn()
                except GenerationInProgressError:
                    # A skip-ahead is running; let it land first
                    continue
                except DebateCompleteError:
                    break
                except MissingCredentialError as e:
                    logger.error(f"[{self.session_id}] Autoplay stopped: {e}")
                    break

                if turn is None:
                    # Interjection (playing stays on) or failure (playing turned off)
                    continue

                await asyncio.sleep(self._typing_seconds(turn))
                self.settle()
        finally:
            if self._autoplay is asyncio.current_task():
                self._autoplay = None
            self.settle()

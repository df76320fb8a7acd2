"""
Transcript Store — Append-only persistence for debate transcripts.

WHAT THIS DOES:
Owns the canonical turn sequence of every debate. Three operations only:
    create(topic, first_turn) -> debate_id
    append(debate_id, turn)   -> bool
    get(debate_id)            -> StoredDebate | None
There is no update and no delete.

CONCURRENCY:
Each append is one statement (PostgreSQL: `messages = messages || :turn`),
so a single append is atomic. Nothing coordinates appends across callers:
two writers on the same debate interleave in whatever order their
statements land. The turn sequencer is the single writer per session.

IMPLEMENTATIONS:
- SqlTranscriptStore: the debates table (one short-lived session per call,
  because a debate outlives any single HTTP request)
- InMemoryTranscriptStore: instance-scoped dict for tests and local runs
"""

import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import literal, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.debate import Debate
from app.services.debate.models import Turn

logger = logging.getLogger(__name__)


@dataclass
class StoredDebate:
    """A debate as read back from the store."""

    id: str
    topic: str
    turns: list[Turn] = field(default_factory=list)
    created_at: Optional[datetime] = None


def decode_messages(messages) -> list[Turn]:
    """Turn the stored JSON array (or a JSON string of it) into Turns."""
    if isinstance(messages, str):
        try:
            messages = json.loads(messages)
        except ValueError:
            logger.error("Stored messages are not valid JSON, treating as empty")
            return []
    if not isinstance(messages, list):
        if messages is not None:
            logger.warning(f"Unexpected messages format: {type(messages).__name__}")
        return []
    return [Turn.from_dict(m) for m in messages if isinstance(m, dict)]


class BaseTranscriptStore(ABC):
    """Abstract append-only transcript store."""

    @abstractmethod
    async def create(self, topic: str, first_turn: Turn) -> str:
        """Persist a new debate with its first turn and return its id."""
        pass

    @abstractmethod
    async def append(self, debate_id: str, turn: Turn) -> bool:
        """Append one turn. Returns False when the debate doesn't exist."""
        pass

    @abstractmethod
    async def get(self, debate_id: str) -> Optional[StoredDebate]:
        """Read a debate back, or None when it doesn't exist."""
        pass


class InMemoryTranscriptStore(BaseTranscriptStore):
    """Dictionary-backed store. Each instance is independent."""

    def __init__(self):
        self._debates: dict[str, StoredDebate] = {}

    async def create(self, topic: str, first_turn: Turn) -> str:
        debate_id = str(uuid.uuid4())
        self._debates[debate_id] = StoredDebate(
            id=debate_id,
            topic=topic,
            turns=[first_turn],
            created_at=datetime.utcnow(),
        )
        return debate_id

    async def append(self, debate_id: str, turn: Turn) -> bool:
        debate = self._debates.get(debate_id)
        if debate is None:
            return False
        debate.turns.append(turn)
        return True

    async def get(self, debate_id: str) -> Optional[StoredDebate]:
        debate = self._debates.get(debate_id)
        if debate is None:
            return None
        # Copy so callers can't mutate the log
        return StoredDebate(
            id=debate.id,
            topic=debate.topic,
            turns=list(debate.turns),
            created_at=debate.created_at,
        )


class SqlTranscriptStore(BaseTranscriptStore):
    """
    Store backed by the debates table.

    Handles:
    - Creating a debate row on the first successful turn
    - Appending turns to the JSON messages column
    - Reading a debate back for the moderator
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create(self, topic: str, first_turn: Turn) -> str:
        debate_id = str(uuid.uuid4())
        async with self.session_factory() as session:
            session.add(Debate(
                id=debate_id,
                topic=topic,
                messages=[first_turn.to_dict()],
            ))
            await session.commit()

        logger.info(f"Created debate {debate_id} for '{topic}'")
        return debate_id

    async def append(self, debate_id: str, turn: Turn) -> bool:
        async with self.session_factory() as session:
            if session.bind.dialect.name == "postgresql":
                appended = await self._append_jsonb(session, debate_id, turn)
            else:
                appended = await self._append_rewrite(session, debate_id, turn)

        if not appended:
            logger.warning(f"Append to unknown debate {debate_id} ignored")
        return appended

    async def _append_jsonb(self, session: AsyncSession, debate_id: str, turn: Turn) -> bool:
        """Single-statement append using JSONB concatenation."""
        stmt = (
            update(Debate)
            .where(Debate.id == debate_id)
            .values(
                messages=Debate.messages.op("||", return_type=JSONB)(
                    literal([turn.to_dict()], JSONB)
                ),
                updated_at=datetime.utcnow(),
            )
        )
        result = await session.execute(stmt)
        await session.commit()
        return result.rowcount > 0

    async def _append_rewrite(self, session: AsyncSession, debate_id: str, turn: Turn) -> bool:
        """Read-modify-write inside one transaction (dialects without JSONB)."""
        async with session.begin():
            debate = await session.get(Debate, debate_id, with_for_update=True)
            if debate is None:
                return False
            # Assign a new list so SQLAlchemy sees the change
            debate.messages = [*(debate.messages or []), turn.to_dict()]
            debate.updated_at = datetime.utcnow()
        return True

    async def get(self, debate_id: str) -> Optional[StoredDebate]:
        async with self.session_factory() as session:
            debate = await session.get(Debate, debate_id)
            if debate is None:
                return None
            return StoredDebate(
                id=debate.id,
                topic=debate.topic,
                turns=decode_messages(debate.messages),
                created_at=debate.created_at,
            )

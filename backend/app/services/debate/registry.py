"""
Session Registry — Live turn sequencers, keyed by session handle.

One registry per application (held on app.state), never a module global,
so independent apps and tests never share sessions.

EVICTION:
- A completed session is dropped once it has been untouched for
  completed_ttl_seconds (its transcript stays in the store).
- Any other session is dropped after idle_ttl_seconds without a control
  call or a new turn. Sessions with a generation in flight are kept.
- Sweeps run on every add() and, when started, on a background interval.
"""

import asyncio
import logging
from typing import Optional

from app.services.debate.sequencer import TurnSequencer

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps session handles to their TurnSequencer."""

    def __init__(
        self,
        idle_ttl_seconds: float = 1800.0,
        completed_ttl_seconds: float = 300.0,
    ):
        self.idle_ttl_seconds = idle_ttl_seconds
        self.completed_ttl_seconds = completed_ttl_seconds
        self._sessions: dict[str, TurnSequencer] = {}
        self._sweeper: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def add(self, sequencer: TurnSequencer) -> TurnSequencer:
        await self.sweep()
        self._sessions[sequencer.session_id] = sequencer
        logger.info(
            f"Session {sequencer.session_id} started: '{sequencer.config.topic}' "
            f"({sequencer.max_turns} turns, {len(self._sessions)} live)"
        )
        return sequencer

    def get(self, session_id: str) -> Optional[TurnSequencer]:
        sequencer = self._sessions.get(session_id)
        if sequencer is not None:
            sequencer.touch()
        return sequencer

    def _expired(self, sequencer: TurnSequencer) -> bool:
        if sequencer.is_generating:
            return False
        ttl = self.completed_ttl_seconds if sequencer.is_complete else self.idle_ttl_seconds
        return sequencer.idle_seconds >= ttl

    async def sweep(self) -> int:
        """Drop expired sessions. Returns how many were dropped."""
        expired = [sid for sid, sequencer in self._sessions.items() if self._expired(sequencer)]
        for session_id in expired:
            await self.discard(session_id)
        if expired:
            logger.info(f"Evicted {len(expired)} expired sessions ({len(self._sessions)} live)")
        return len(expired)

    def start_sweeper(self, interval_seconds: float) -> None:
        """Sweep on a fixed interval until close()."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self._sweep_forever(interval_seconds))

    async def _sweep_forever(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.sweep()
            except Exception:
                logger.exception("Session sweep failed")

    async def discard(self, session_id: str) -> bool:
        """Abandon a session. Its stored transcript is kept."""
        sequencer = self._sessions.pop(session_id, None)
        if sequencer is None:
            return False
        await sequencer.close()
        logger.info(f"Session {session_id} discarded")
        return True

    async def close(self) -> None:
        """Stop the sweeper and every live session (application shutdown)."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            await asyncio.gather(self._sweeper, return_exceptions=True)
            self._sweeper = None
        for session_id in list(self._sessions):
            await self.discard(session_id)

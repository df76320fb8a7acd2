"""
Debate Protocols — Abstract base classes for swappable debate components.

WHY ABSTRACT CLASSES:
- The turn sequencer only needs "something that produces a turn"
- Tests drive the sequencer with scripted debaters, no network involved
- A different turn strategy (e.g. a retrieval-backed debater) can be
  dropped in without touching the sequencer

USAGE:
    class ScriptedDebater(BaseDebater):
        async def generate(self, request: TurnRequest) -> TurnResult:
            return TurnResult(text=f"{request.side} says hello")
"""

from abc import ABC, abstractmethod

from app.services.debate.models import TurnRequest, TurnResult


class BaseDebater(ABC):
    """
    Abstract base class for turn generators.

    The default Debater in debater.py implements this interface.
    """

    @abstractmethod
    async def generate(self, request: TurnRequest) -> TurnResult:
        """
        Produce the next turn.

        Args:
            request: Topic, side, persona, history and turn position

        Returns:
            TurnResult with the generated text

        Raises:
            GenerationCancelledError: The generation timed out or was aborted
            UpstreamError / EmptyResponseError: The provider failed
        """
        pass

"""
FastAPI dependencies for the debate services.

Long-lived collaborators (LLM gateway, transcript store, session registry)
live on app.state; they are created in the lifespan handler and created
lazily here if a request arrives without it (e.g. a bare TestClient).
Tests swap them with app.dependency_overrides.
"""

from fastapi import Depends, Request

from app.config import get_settings
from app.database import async_session
from app.services.debate import (
    BaseTranscriptStore,
    Debater,
    Moderator,
    SessionRegistry,
    SqlTranscriptStore,
    StanceGenerator,
)
from app.services.llm import LLMGateway, create_gateway


def get_gateway(request: Request) -> LLMGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        gateway = create_gateway()
        request.app.state.gateway = gateway
    return gateway


def get_transcript_store(request: Request) -> BaseTranscriptStore:
    store = getattr(request.app.state, "transcript_store", None)
    if store is None:
        store = SqlTranscriptStore(async_session)
        request.app.state.transcript_store = store
    return store


def get_session_registry(request: Request) -> SessionRegistry:
    registry = getattr(request.app.state, "sessions", None)
    if registry is None:
        settings = get_settings()
        registry = SessionRegistry(
            idle_ttl_seconds=settings.session_idle_ttl_seconds,
            completed_ttl_seconds=settings.session_completed_ttl_seconds,
        )
        request.app.state.sessions = registry
    return registry


def get_stance_generator(gateway: LLMGateway = Depends(get_gateway)) -> StanceGenerator:
    return StanceGenerator(gateway)


def get_debater(gateway: LLMGateway = Depends(get_gateway)) -> Debater:
    return Debater(gateway)


def get_moderator(gateway: LLMGateway = Depends(get_gateway)) -> Moderator:
    return Moderator(gateway)

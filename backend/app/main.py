import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import router as api_router
from app.api.sessions import router as sessions_router
from app.config import get_settings
from app.database import engine, Base, async_session
from app.services.debate import SessionRegistry, SqlTranscriptStore
from app.services.llm import create_gateway

# Import models so SQLAlchemy knows about them when creating tables
# Without this import, Base.metadata.create_all() wouldn't know about Debate
from app.models.debate import Debate  # noqa: F401

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# LIFESPAN: Startup and Shutdown Logic
# =============================================================================
#
# Everything BEFORE 'yield' runs once on startup, everything AFTER it once
# on shutdown.
#
# Startup:  create tables, build the LLM gateway, the transcript store and
#           the live session registry and hang them on app.state; start the
#           registry's eviction sweeper
# Shutdown: stop live sessions (cancels autoplay and in-flight generations),
#           close the gateway's HTTP client, close the connection pool
#
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""

    # === STARTUP ===
    async with engine.begin() as conn:
        # If tables already exist, this does nothing (safe to run repeatedly)
        await conn.run_sync(Base.metadata.create_all)

    app.state.gateway = create_gateway()
    app.state.transcript_store = SqlTranscriptStore(async_session)
    app.state.sessions = SessionRegistry(
        idle_ttl_seconds=settings.session_idle_ttl_seconds,
        completed_ttl_seconds=settings.session_completed_ttl_seconds,
    )
    app.state.sessions.start_sweeper(settings.session_sweep_interval_seconds)
    logger.info(f"Debate server ready (provider={settings.llm_provider})")

    # === YIELD (server is now running and handling requests) ===
    yield

    # === SHUTDOWN ===
    await app.state.sessions.close()
    await app.state.gateway.close()
    await engine.dispose()


app = FastAPI(
    title="AI Debate Simulator",
    description="Two LLM personas debate a topic turn by turn, with a moderator verdict",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
app.include_router(sessions_router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}

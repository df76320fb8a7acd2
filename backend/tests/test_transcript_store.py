"""
Tests for the append-only transcript stores.

The SQL store runs against in-memory SQLite (aiosqlite), which exercises
the read-modify-write append path. The PostgreSQL JSONB path needs a real
Postgres and is not covered here.
Run with: pytest tests/test_transcript_store.py -v
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.services.debate import InMemoryTranscriptStore, SqlTranscriptStore, Turn
from app.services.debate.transcript_store import decode_messages


@pytest_asyncio.fixture
async def sql_store():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield SqlTranscriptStore(async_sessionmaker(engine, expire_on_commit=False))

    await engine.dispose()


@pytest.fixture(params=["memory", "sql"])
def any_store(request, sql_store):
    if request.param == "memory":
        return InMemoryTranscriptStore()
    return sql_store


# =============================================================================
# SHARED BEHAVIOUR
# =============================================================================

@pytest.mark.asyncio
async def test_create_then_get(any_store):
    debate_id = await any_store.create("Remote work", Turn(side="pro", content="Opening"))

    stored = await any_store.get(debate_id)

    assert stored.id == debate_id
    assert stored.topic == "Remote work"
    assert stored.turns == [Turn(side="pro", content="Opening")]


@pytest.mark.asyncio
async def test_appends_keep_order(any_store):
    debate_id = await any_store.create("Remote work", Turn(side="pro", content="1"))

    for turn in [
        Turn(side="con", content="2"),
        Turn(side="user", content="Give an example"),
        Turn(side="pro", content="3"),
    ]:
        assert await any_store.append(debate_id, turn)

    stored = await any_store.get(debate_id)
    assert [(t.side, t.content) for t in stored.turns] == [
        ("pro", "1"),
        ("con", "2"),
        ("user", "Give an example"),
        ("pro", "3"),
    ]


@pytest.mark.asyncio
async def test_append_to_unknown_debate(any_store):
    assert not await any_store.append("does-not-exist", Turn(side="pro", content="x"))


@pytest.mark.asyncio
async def test_get_unknown_debate(any_store):
    assert await any_store.get("does-not-exist") is None


@pytest.mark.asyncio
async def test_debate_ids_are_unique(any_store):
    first = await any_store.create("A", Turn(side="pro", content="a"))
    second = await any_store.create("B", Turn(side="pro", content="b"))

    assert first != second
    assert (await any_store.get(first)).topic == "A"
    assert (await any_store.get(second)).topic == "B"


# =============================================================================
# IN-MEMORY SPECIFICS
# =============================================================================

@pytest.mark.asyncio
async def test_in_memory_stores_are_independent():
    first = InMemoryTranscriptStore()
    second = InMemoryTranscriptStore()

    debate_id = await first.create("Remote work", Turn(side="pro", content="Opening"))

    assert await second.get(debate_id) is None


@pytest.mark.asyncio
async def test_in_memory_get_returns_a_copy():
    store = InMemoryTranscriptStore()
    debate_id = await store.create("Remote work", Turn(side="pro", content="Opening"))

    stored = await store.get(debate_id)
    stored.turns.append(Turn(side="con", content="Injected"))

    assert len((await store.get(debate_id)).turns) == 1


# =============================================================================
# DECODING
# =============================================================================

def test_decode_messages_accepts_json_string():
    turns = decode_messages('[{"side": "pro", "content": "Hi"}]')

    assert turns == [Turn(side="pro", content="Hi")]


def test_decode_messages_tolerates_garbage():
    assert decode_messages("not json") == []
    assert decode_messages(None) == []
    assert decode_messages({"side": "pro"}) == []


def test_unknown_side_is_read_as_user():
    assert decode_messages([{"side": "moderator", "content": "Hi"}]) == [
        Turn(side="user", content="Hi")
    ]

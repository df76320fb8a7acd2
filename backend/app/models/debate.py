"""
SQLAlchemy model for the debates table.

One row per debate session. The messages column is an append-only log of
{side, content} objects in the order the turns were produced.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, String, Text, DateTime
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _new_debate_id() -> str:
    return str(uuid.uuid4())


class Debate(Base):
    """
    A persisted debate transcript.

    On PostgreSQL the messages column is JSONB so a turn can be appended with
    a single `messages || :turn` statement. Other dialects fall back to plain
    JSON and a read-modify-write inside one transaction.
    """

    __tablename__ = "debates"

    # Opaque session identifier handed to the frontend
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_debate_id)

    topic: Mapped[str] = mapped_column(Text)

    # Ordered turns: [{"side": "pro", "content": "..."}, ...]
    messages: Mapped[list[dict]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        default=list,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<Debate id={self.id} topic={self.topic[:50]}... turns={len(self.messages or [])}>"

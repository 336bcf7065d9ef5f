"""Pydantic model for saved transcript rows."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageRecord(BaseModel):
    """Maps to the ``messages`` table.

    ``id`` is assigned by SQLite, so it is ``None`` until the row is inserted.
    """

    id: Optional[int] = None
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime = Field(default_factory=_utcnow)

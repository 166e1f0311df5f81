"""Wire schema for the single-term teaching stream."""

from __future__ import annotations

from pydantic import BaseModel, Field


class KeyTermTeachingRecord(BaseModel):
    """Progressive teaching content for one term."""

    is_final: bool = Field(description="True on the last object of the stream")
    term: str
    translation: str
    example: str
    favorite: bool = False
    id: str | None = Field(default=None, description="Key term identifier once persisted")

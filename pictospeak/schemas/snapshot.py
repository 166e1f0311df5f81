"""Consumer-facing snapshot and stream event schemas.

A Snapshot is the flattened, authoritative "current state" of the
feedback. Each one replaces the previous one entirely; consumers that
want history keep it themselves.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field

from pictospeak.schemas.feedback import KeyTerm, Suggestion


class FeedbackStatus(StrEnum):
    """Processing milestones reported by the backend while it works."""

    UPLOADING_MEDIA = "uploading_media"
    UNDERSTANDING_CONTENT = "understanding_content"
    WRITING_AI_REFINED_PARAGRAPH = "writing_ai_refined_paragraph"
    COMPLETED = "completed"

    @property
    def order(self) -> int:
        """Position of this milestone in the processing sequence."""
        return _STATUS_ORDER.index(self)


_STATUS_ORDER = [
    FeedbackStatus.UPLOADING_MEDIA,
    FeedbackStatus.UNDERSTANDING_CONTENT,
    FeedbackStatus.WRITING_AI_REFINED_PARAGRAPH,
    FeedbackStatus.COMPLETED,
]


class ProcessingSignal(BaseModel):
    """A progress object interleaved with feedback records on the stream."""

    status: str = Field(description="Raw status name as sent by the backend")

    def to_status(self) -> FeedbackStatus | None:
        """Map the raw status onto a known milestone, or None if unknown."""
        try:
            return FeedbackStatus(self.status)
        except ValueError:
            return None


class Snapshot(BaseModel):
    """Flattened feedback state decoded from one stream object."""

    original_text: str = Field(description="What the learner said")
    refined_text: str = Field(description="The refined description")
    suggestions: list[Suggestion] = Field(default_factory=list)
    key_terms: list[KeyTerm] = Field(default_factory=list)
    score: int | None = Field(
        default=None, description="Only set by non-streaming endpoints"
    )
    chosen_key_terms: list[str] | None = None
    chosen_refinements: list[str] | None = None
    chosen_items_generated: bool = False
    pronunciation_url: str | None = None
    standard_description_segments: list[str] = Field(default_factory=list)
    description_guidance_id: str | None = None
    is_final: bool = Field(default=False, description="True for the last snapshot of a stream")


class FeedbackEvent(BaseModel):
    """One item of the feedback event stream: a status change or a snapshot."""

    kind: Literal["status", "snapshot"]
    status: FeedbackStatus | None = None
    snapshot: Snapshot | None = None

    @classmethod
    def for_status(cls, status: FeedbackStatus) -> FeedbackEvent:
        return cls(kind="status", status=status)

    @classmethod
    def for_snapshot(cls, snapshot: Snapshot) -> FeedbackEvent:
        return cls(kind="snapshot", snapshot=snapshot)

"""Wire schemas for the feedback stream.

One FeedbackRecord is decoded per JSON object the backend writes to the
response body. Field names follow the wire casing exactly, so no aliases
are needed. Records are short-lived: each is flattened into a Snapshot
and dropped.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class KeyTerm(BaseModel):
    """A key expression worth learning from the refined description."""

    term: str = Field(description="The expression in the target language")
    translation: str = Field(description="Translation into the learner's native language")
    example: str = Field(description="Example sentence using the term")
    favorite: bool = Field(default=False, description="Whether the learner starred this term")


class Suggestion(BaseModel):
    """A refinement of something the learner actually said."""

    term: str = Field(description="Original wording from the learner's description")
    refinement: str = Field(description="Improved wording")
    translation: str = Field(description="Translation of the refinement")
    reason: str = Field(description="Why the refinement is better")
    favorite: bool = Field(default=False, description="Whether the learner starred this suggestion")


class DescriptionTeaching(BaseModel):
    """The description pair at the heart of one feedback result."""

    user_description: str = Field(description="Transcript of what the learner said")
    standard_description: str = Field(description="Backend-produced refined description")
    standard_description_pronunciation_url: str | None = Field(
        default=None, description="Audio reference for the refined description"
    )
    id: str | None = Field(default=None, description="Description guidance identifier")
    created_at: str = Field(description="Creation timestamp as sent by the backend")


class FeedbackMetadata(BaseModel):
    """Selection state and segmentation for the refined description."""

    chosen_key_terms: list[str] = Field(description="Key terms picked for emphasis")
    chosen_refinements: list[str] = Field(description="Refinements picked for emphasis")
    chosen_items_generated: bool = Field(description="True once the chosen lists are final")
    standard_description_segments: list[str] = Field(
        description="Refined description split into display segments"
    )


class FeedbackRecord(BaseModel):
    """One complete object from the feedback stream."""

    is_final: bool = Field(description="True on the last object of the stream")
    description_teaching: DescriptionTeaching
    key_terms: list[KeyTerm]
    suggestions: list[Suggestion]
    metadata: FeedbackMetadata

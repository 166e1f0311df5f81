"""Pictospeak schema definitions.

All Pydantic v2 models used by the stream core, the client and the CLI.
"""

from pictospeak.schemas.config import ClientConfig
from pictospeak.schemas.feedback import (
    DescriptionTeaching,
    FeedbackMetadata,
    FeedbackRecord,
    KeyTerm,
    Suggestion,
)
from pictospeak.schemas.snapshot import (
    FeedbackEvent,
    FeedbackStatus,
    ProcessingSignal,
    Snapshot,
)
from pictospeak.schemas.teaching import KeyTermTeachingRecord

__all__ = [
    "ClientConfig",
    "DescriptionTeaching",
    "FeedbackEvent",
    "FeedbackMetadata",
    "FeedbackRecord",
    "FeedbackStatus",
    "KeyTerm",
    "KeyTermTeachingRecord",
    "ProcessingSignal",
    "Snapshot",
    "Suggestion",
]

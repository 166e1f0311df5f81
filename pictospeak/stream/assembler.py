"""Flatten decoded feedback records into consumer-facing snapshots."""

from __future__ import annotations

from pictospeak.schemas.feedback import FeedbackRecord
from pictospeak.schemas.snapshot import Snapshot


def assemble_snapshot(record: FeedbackRecord) -> Snapshot:
    """Map one FeedbackRecord onto a Snapshot.

    Pure and stateless. Score is never set here: streamed feedback does
    not carry one.
    """
    teaching = record.description_teaching
    metadata = record.metadata
    return Snapshot(
        original_text=teaching.user_description,
        refined_text=teaching.standard_description,
        suggestions=list(record.suggestions),
        key_terms=list(record.key_terms),
        score=None,
        chosen_key_terms=list(metadata.chosen_key_terms),
        chosen_refinements=list(metadata.chosen_refinements),
        chosen_items_generated=metadata.chosen_items_generated,
        pronunciation_url=teaching.standard_description_pronunciation_url,
        standard_description_segments=list(metadata.standard_description_segments),
        description_guidance_id=teaching.id,
        is_final=record.is_final,
    )

"""HTTP client for the streaming feedback backend."""

from .feedback import (
    IMAGE_ENDPOINT,
    TEACH_TERM_ENDPOINT,
    VIDEO_ENDPOINT,
    FeedbackClient,
    build_image_parts,
    build_video_parts,
)

__all__ = [
    "FeedbackClient",
    "IMAGE_ENDPOINT",
    "TEACH_TERM_ENDPOINT",
    "VIDEO_ENDPOINT",
    "build_image_parts",
    "build_video_parts",
]

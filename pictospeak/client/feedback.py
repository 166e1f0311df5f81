"""HTTP client for the streaming feedback endpoints.

Builds the request, checks the status code, and hands the open response
body to a StreamDriver. Everything after the status check is the stream
core's job; this module never looks at the body itself.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import aclosing
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any, TypeVar

import httpx

from pictospeak.errors import EncodingError, ServerError, TransportError
from pictospeak.schemas.config import ClientConfig
from pictospeak.schemas.snapshot import FeedbackEvent, FeedbackStatus
from pictospeak.schemas.teaching import KeyTermTeachingRecord
from pictospeak.stream.decoder import FeedbackEventDecoder, RecordDecoder
from pictospeak.stream.driver import StreamDriver

T = TypeVar("T")

IMAGE_ENDPOINT = "/description/guidance/image"
VIDEO_ENDPOINT = "/description/guidance/video"
TEACH_TERM_ENDPOINT = "/key-term-and-suggestion/teach-single-term"

# Longest error body echoed into ServerError
_MAX_ERROR_DETAIL = 200

# (field name, (filename, content, content type)); filename None means a
# plain form field
FormPart = tuple[str, tuple[str | None, bytes, str | None]]


def _form_field(name: str, value: str) -> FormPart:
    return (name, (None, value.encode("utf-8"), None))


def _audio_part(audio: bytes) -> FormPart:
    return ("audio", ("audio.m4a", audio, "audio/mp4"))


def build_image_parts(
    *,
    image: bytes | None = None,
    material_id: uuid.UUID | str | None = None,
    audio: bytes | None = None,
) -> list[FormPart]:
    """Multipart parts for the image endpoint.

    ``material_id`` and ``image`` are mutually exclusive; the material id
    wins when both are given.

    Raises:
        EncodingError: If neither a material id nor an image is supplied.
    """
    parts: list[FormPart] = []
    if material_id is not None:
        parts.append(_form_field("material_id", str(material_id)))
    elif image is not None:
        parts.append(("image", ("image.jpg", image, "image/jpeg")))
    else:
        raise EncodingError("An image or a material id is required")

    if audio is not None:
        parts.append(_audio_part(audio))
    return parts


def build_video_parts(
    *,
    video: bytes | None = None,
    frames: Sequence[bytes] = (),
    material_id: uuid.UUID | str | None = None,
    audio: bytes | None = None,
) -> list[FormPart]:
    """Multipart parts for the video endpoint.

    Frames are sent whether or not the video itself is, since the
    backend reads the scene from them.

    Raises:
        EncodingError: If there is no material id, no video and no frame.
    """
    parts: list[FormPart] = []
    if material_id is not None:
        parts.append(_form_field("material_id", str(material_id)))
    elif video is not None:
        parts.append(("video", ("video.mp4", video, "video/mp4")))
    elif not frames:
        raise EncodingError("A video, frames or a material id is required")

    for index, frame in enumerate(frames):
        parts.append(("frames", (f"frame_{index}.jpg", frame, "image/jpeg")))

    if audio is not None:
        parts.append(_audio_part(audio))
    return parts


class FeedbackClient:
    """Async client for the feedback backend.

    Use as an async context manager, or call ``aclose()`` when done. Each
    ``stream_*`` method returns an async iterator; leaving the ``async
    for`` early closes the underlying HTTP response.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._logger = logger or logging.getLogger(__name__)
        self._http = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=httpx.Timeout(self._config.timeout),
            transport=transport,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> FeedbackClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Feedback streams ──────────────────────────────────────────

    async def stream_image_feedback(
        self,
        auth_token: str,
        *,
        image: bytes | None = None,
        material_id: uuid.UUID | str | None = None,
        audio: bytes | None = None,
    ) -> AsyncIterator[FeedbackEvent]:
        """Stream feedback for a spoken description of an image.

        Yields an ``uploading_media`` status first, then status and
        snapshot events in the order the backend sends them.

        Raises:
            EncodingError: If no image or material id is given.
            ServerError: If the backend does not answer 200.
            TransportError: If the connection fails.
        """
        parts = build_image_parts(image=image, material_id=material_id, audio=audio)
        yield FeedbackEvent.for_status(FeedbackStatus.UPLOADING_MEDIA)
        events = self._stream(
            "POST",
            IMAGE_ENDPOINT,
            auth_token,
            FeedbackEventDecoder(logger=self._logger),
            files=parts,
        )
        async with aclosing(events):
            async for event in events:
                yield event

    async def stream_video_feedback(
        self,
        auth_token: str,
        *,
        video: bytes | None = None,
        frames: Sequence[bytes] = (),
        material_id: uuid.UUID | str | None = None,
        audio: bytes | None = None,
    ) -> AsyncIterator[FeedbackEvent]:
        """Stream feedback for a spoken description of a video.

        Same event contract as ``stream_image_feedback``.
        """
        parts = build_video_parts(
            video=video, frames=frames, material_id=material_id, audio=audio
        )
        yield FeedbackEvent.for_status(FeedbackStatus.UPLOADING_MEDIA)
        events = self._stream(
            "POST",
            VIDEO_ENDPOINT,
            auth_token,
            FeedbackEventDecoder(logger=self._logger),
            files=parts,
        )
        async with aclosing(events):
            async for event in events:
                yield event

    async def stream_key_term_teaching(
        self,
        auth_token: str,
        description_guidance_id: uuid.UUID | str,
        term: str,
    ) -> AsyncIterator[KeyTermTeachingRecord]:
        """Stream progressive teaching content for a single term."""
        decoder = RecordDecoder(KeyTermTeachingRecord, logger=self._logger)
        records = self._stream(
            "GET",
            TEACH_TERM_ENDPOINT,
            auth_token,
            decoder.decode,
            params={
                "description_guidance_id": str(description_guidance_id),
                "term": term,
            },
        )
        async with aclosing(records):
            async for record in records:
                yield record

    # ── Internals ─────────────────────────────────────────────────

    async def _stream(
        self,
        method: str,
        path: str,
        auth_token: str,
        convert: Callable[[bytes], T | None],
        **request_kwargs: Any,
    ) -> AsyncIterator[T]:
        headers = {"Authorization": f"Bearer {auth_token}"}
        started = time.monotonic()
        self._logger.info("Request: %s %s", method, path)

        try:
            async with self._http.stream(
                method, path, headers=headers, **request_kwargs
            ) as response:
                self._logger.info(
                    "Status: %d (latency %.3fs)",
                    response.status_code, time.monotonic() - started,
                )
                if response.status_code != 200:
                    body = await response.aread()
                    detail = body[:_MAX_ERROR_DETAIL].decode("utf-8", errors="replace")
                    raise ServerError(response.status_code, detail)

                driver = StreamDriver(convert, logger=self._logger)
                chunks = response.aiter_bytes(self._config.read_chunk_size)
                async with aclosing(driver.run(chunks)) as items:
                    async for item in items:
                        yield item
        except httpx.TransportError as e:
            raise TransportError(f"Connection failed: {e}") from e

"""Tests for pictospeak.client: request construction and stream handoff."""

from __future__ import annotations

import uuid
from contextlib import aclosing
from unittest.mock import patch

import httpx
import pytest

from pictospeak.client import (
    IMAGE_ENDPOINT,
    TEACH_TERM_ENDPOINT,
    VIDEO_ENDPOINT,
    FeedbackClient,
    build_image_parts,
    build_video_parts,
)
from pictospeak.errors import EncodingError, ServerError, TransportError
from pictospeak.schemas.config import ClientConfig
from pictospeak.schemas.snapshot import FeedbackStatus
from pictospeak.stream.driver import DriverState, StreamDriver
from streamdata import collect, encode, make_record, split_every


def _feedback_body() -> bytes:
    return (
        b'{"status":"understanding_content"}'
        + encode(make_record())
        + b"\n"
        + encode(make_record(is_final=True))
    )


def _client(handler) -> FeedbackClient:
    config = ClientConfig(base_url="http://feedback.test")
    return FeedbackClient(config, transport=httpx.MockTransport(handler))


class TestBuildParts:
    def test_image_parts(self):
        parts = build_image_parts(image=b"jpeg", audio=b"m4a")
        assert parts == [
            ("image", ("image.jpg", b"jpeg", "image/jpeg")),
            ("audio", ("audio.m4a", b"m4a", "audio/mp4")),
        ]

    def test_material_id_wins_over_image(self):
        material = uuid.UUID("12345678-1234-5678-1234-567812345678")
        parts = build_image_parts(image=b"jpeg", material_id=material)
        assert [name for name, _ in parts] == ["material_id"]
        assert parts[0][1][1] == str(material).encode()

    def test_image_requires_media(self):
        with pytest.raises(EncodingError):
            build_image_parts(audio=b"m4a")

    def test_video_parts_with_frames(self):
        parts = build_video_parts(video=b"mp4", frames=[b"f0", b"f1"])
        assert [name for name, _ in parts] == ["video", "frames", "frames"]
        assert parts[2][1][0] == "frame_1.jpg"

    def test_video_frames_only(self):
        parts = build_video_parts(frames=[b"f0"])
        assert [name for name, _ in parts] == ["frames"]

    def test_video_requires_something(self):
        with pytest.raises(EncodingError):
            build_video_parts()


class TestImageFeedback:
    @pytest.mark.asyncio
    async def test_streams_status_and_snapshots(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=_feedback_body())

        async with _client(handler) as client:
            events = await collect(
                client.stream_image_feedback("tok-123", image=b"jpegdata", audio=b"m4adata")
            )

        assert [e.kind for e in events] == ["status", "status", "snapshot", "snapshot"]
        assert events[0].status is FeedbackStatus.UPLOADING_MEDIA
        assert events[1].status is FeedbackStatus.UNDERSTANDING_CONTENT
        assert events[-1].snapshot.is_final is True

        request = captured[0]
        assert request.method == "POST"
        assert request.url.path == IMAGE_ENDPOINT
        assert request.headers["Authorization"] == "Bearer tok-123"
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b'filename="image.jpg"' in request.content
        assert b"jpegdata" in request.content
        assert b'name="audio"' in request.content

    @pytest.mark.asyncio
    async def test_material_id_sent_as_form_field(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=encode(make_record(is_final=True)))

        async with _client(handler) as client:
            await collect(client.stream_image_feedback("tok", material_id="mat-42"))

        body = captured[0].content
        assert b'name="material_id"' in body
        assert b"mat-42" in body
        assert b'name="image"' not in body

    @pytest.mark.asyncio
    async def test_chunked_body(self):
        pieces = split_every(_feedback_body(), 9)

        async def body():
            for piece in pieces:
                yield piece

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body())

        async with _client(handler) as client:
            events = await collect(client.stream_image_feedback("tok", image=b"x"))

        snapshots = [e.snapshot for e in events if e.kind == "snapshot"]
        assert [s.is_final for s in snapshots] == [False, True]

    @pytest.mark.asyncio
    async def test_missing_media_raises_before_request(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        async with _client(handler) as client:
            with pytest.raises(EncodingError):
                await collect(client.stream_image_feedback("tok"))
        assert calls == []

    @pytest.mark.asyncio
    async def test_non_200_raises_server_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="token expired")

        received = []
        async with _client(handler) as client:
            with pytest.raises(ServerError) as exc_info:
                async for event in client.stream_image_feedback("tok", image=b"x"):
                    received.append(event)

        assert exc_info.value.status_code == 401
        assert "token expired" in str(exc_info.value)
        assert [e.status for e in received] == [FeedbackStatus.UPLOADING_MEDIA]

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(TransportError):
                await collect(client.stream_image_feedback("tok", image=b"x"))


class TestVideoFeedback:
    @pytest.mark.asyncio
    async def test_sends_frames(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=encode(make_record(is_final=True)))

        async with _client(handler) as client:
            events = await collect(
                client.stream_video_feedback("tok", video=b"mp4", frames=[b"f0", b"f1"])
            )

        assert events[-1].snapshot.is_final is True
        request = captured[0]
        assert request.url.path == VIDEO_ENDPOINT
        assert request.content.count(b'name="frames"') == 2
        assert b'filename="frame_0.jpg"' in request.content
        assert b'filename="video.mp4"' in request.content


class TestKeyTermTeaching:
    @pytest.mark.asyncio
    async def test_streams_teaching_records(self):
        captured: list[httpx.Request] = []
        body = (
            b'{"is_final":false,"term":"bark","translation":"","example":""}'
            b'{"is_final":true,"term":"bark","translation":"ladrar","example":"Dogs bark."}'
        )

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=body)

        async with _client(handler) as client:
            records = await collect(
                client.stream_key_term_teaching("tok", "guid-7", "bark")
            )

        assert [r.is_final for r in records] == [False, True]
        assert records[-1].translation == "ladrar"
        request = captured[0]
        assert request.method == "GET"
        assert request.url.path == TEACH_TERM_ENDPOINT
        assert request.url.params["description_guidance_id"] == "guid-7"
        assert request.url.params["term"] == "bark"


class TestEarlyExit:
    @pytest.mark.asyncio
    async def test_leaving_early_closes_the_driver(self):
        drivers: list[StreamDriver] = []

        class RecordingDriver(StreamDriver):
            def __init__(self, *args, **kwargs):
                super().__init__(*args, **kwargs)
                drivers.append(self)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_feedback_body())

        with patch("pictospeak.client.feedback.StreamDriver", RecordingDriver):
            async with _client(handler) as client:
                events = client.stream_image_feedback("tok", image=b"x")
                async with aclosing(events):
                    async for event in events:
                        if event.kind == "snapshot":
                            break

                assert len(drivers) == 1
                assert drivers[0].state is DriverState.CANCELLED
                assert len(drivers[0].buffer) == 0

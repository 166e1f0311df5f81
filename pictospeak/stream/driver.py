"""Stream driver: bytes in, decoded items out, in arrival order.

One driver owns one response body. It reads chunks, feeds them to an
AccumulationBuffer, converts every complete span and yields the result
to its single consumer before reading the next chunk. There is no
internal queue; a slow consumer slows the read loop down directly.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Callable
from enum import StrEnum
from typing import Any, Generic, TypeVar

from pictospeak.errors import TransportError
from pictospeak.schemas.feedback import FeedbackRecord
from pictospeak.schemas.snapshot import FeedbackEvent, Snapshot
from pictospeak.stream.assembler import assemble_snapshot
from pictospeak.stream.buffer import AccumulationBuffer
from pictospeak.stream.decoder import FeedbackEventDecoder, RecordDecoder

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DriverState(StrEnum):
    """Lifecycle of a StreamDriver."""

    IDLE = "idle"
    READING = "reading"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


def _short_error_reason(error: BaseException) -> str:
    text = str(error)
    if not text:
        return type(error).__name__
    return f"{type(error).__name__}: {text[:80]}"


async def _close_source(source: Any) -> None:
    aclose = getattr(source, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        logger.debug("Error while closing chunk source", exc_info=True)


class StreamDriver(Generic[T]):
    """Drives one byte stream through the buffer and a span converter.

    Single use: ``run()`` may be iterated once. Stop early either by
    closing the iterator returned from ``run()`` (``aclose()``, breaking
    out of ``async for``, or cancelling the consuming task) or by calling
    ``cancel()`` from elsewhere; in every case nothing further is yielded
    once the stop is observed, even if complete spans are still buffered.
    """

    def __init__(
        self,
        convert: Callable[[bytes], T | None],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._convert = convert
        self._logger = logger or logging.getLogger(__name__)
        self._cancel_requested = False
        self.state = DriverState.IDLE
        self.chunks_received = 0
        self.items_emitted = 0
        self.buffer = AccumulationBuffer(logger=self._logger)

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    def cancel(self) -> None:
        """Ask the read loop to stop at its next suspension point."""
        self._cancel_requested = True

    async def run(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[T]:
        """Yield converted items for every object in ``chunks``.

        Raises:
            TransportError: If the chunk source fails. Nothing is yielded
                after the failure.
            RuntimeError: If the driver has already been run.
        """
        if self.state is not DriverState.IDLE:
            raise RuntimeError(f"StreamDriver already used (state={self.state})")

        source = chunks.__aiter__()
        self.state = DriverState.READING
        try:
            while not self._cancel_requested:
                try:
                    chunk = await source.__anext__()
                except StopAsyncIteration:
                    break
                except TransportError:
                    self.state = DriverState.FAILED
                    raise
                except Exception as e:
                    self.state = DriverState.FAILED
                    self._logger.error(
                        "Stream failed after %d chunks: %s",
                        self.chunks_received, _short_error_reason(e),
                    )
                    raise TransportError(
                        f"Stream interrupted: {_short_error_reason(e)}"
                    ) from e

                self.chunks_received += 1
                self.buffer.append(chunk)
                for span in self.buffer.drain_complete_objects():
                    item = self._convert(span)
                    if item is None:
                        continue
                    if self._cancel_requested:
                        break
                    self.items_emitted += 1
                    yield item

            if self._cancel_requested:
                self.state = DriverState.CANCELLED
                self._logger.info(
                    "Stream cancelled after %d items", self.items_emitted
                )
                return

            final_span = self.buffer.flush()
            if final_span is not None:
                item = self._convert(final_span)
                if item is not None and not self._cancel_requested:
                    self.items_emitted += 1
                    yield item

            self.state = DriverState.COMPLETED
            self._logger.info(
                "Streaming complete: %d items from %d chunks",
                self.items_emitted, self.chunks_received,
            )
        except (GeneratorExit, asyncio.CancelledError):
            self.state = DriverState.CANCELLED
            raise
        finally:
            self.buffer.clear()
            await _close_source(source)


def stream_snapshots(
    chunks: AsyncIterable[bytes],
    *,
    logger: logging.Logger | None = None,
) -> AsyncIterator[Snapshot]:
    """Yield one Snapshot per decodable feedback object in ``chunks``."""
    decoder = RecordDecoder(FeedbackRecord, logger=logger)

    def convert(span: bytes) -> Snapshot | None:
        record = decoder.decode(span)
        if record is None:
            return None
        return assemble_snapshot(record)

    return StreamDriver(convert, logger=logger).run(chunks)


def stream_feedback_events(
    chunks: AsyncIterable[bytes],
    *,
    logger: logging.Logger | None = None,
) -> AsyncIterator[FeedbackEvent]:
    """Yield snapshot and processing-status events for a feedback stream."""
    decoder = FeedbackEventDecoder(logger=logger)
    return StreamDriver(decoder, logger=logger).run(chunks)

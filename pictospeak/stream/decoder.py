"""Span decoders.

A decoder turns one scanner-delimited byte span into a typed record, or
into nothing. Both "not JSON" and "JSON of the wrong shape" are
recoverable: the span is logged, counted and dropped, and the stream
carries on.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from pictospeak.errors import DecodeError
from pictospeak.schemas.feedback import FeedbackRecord
from pictospeak.schemas.snapshot import FeedbackEvent, ProcessingSignal
from pictospeak.stream.assembler import assemble_snapshot

RecordT = TypeVar("RecordT", bound=BaseModel)

# Longest span prefix echoed into log messages
_PREVIEW_LEN = 120


def _preview(span: bytes) -> str:
    text = span[:_PREVIEW_LEN].decode("utf-8", errors="replace")
    if len(span) > _PREVIEW_LEN:
        text += "..."
    return text


def _short_reason(error: ValidationError) -> str:
    """First validation error, condensed to one line."""
    errors = error.errors()
    if not errors:
        return str(error)[:80]
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{location}: {first.get('msg', 'invalid')}"


class RecordDecoder(Generic[RecordT]):
    """Strict structural decode of spans into one Pydantic record type."""

    def __init__(
        self,
        record_type: type[RecordT],
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.record_type = record_type
        self._logger = logger or logging.getLogger(__name__)
        self.decoded = 0
        self.failed = 0

    def try_decode(self, span: bytes) -> RecordT:
        """Strictly decode a span or raise DecodeError. Counters are untouched."""
        try:
            return self.record_type.model_validate_json(span, strict=True)
        except ValidationError as e:
            raise DecodeError(
                f"{self.record_type.__name__}: {_short_reason(e)}", span
            ) from e

    def decode(self, span: bytes) -> RecordT | None:
        """Decode a span, or log and count the failure and return None."""
        try:
            record = self.try_decode(span)
        except DecodeError as e:
            self.record_failure(e)
            return None
        self.decoded += 1
        return record

    def record_failure(self, error: DecodeError) -> None:
        self.failed += 1
        self._logger.warning(
            "Dropping undecodable span (%s): %s", error, _preview(error.span)
        )

    def stats(self) -> dict[str, Any]:
        return {
            "record_type": self.record_type.__name__,
            "decoded": self.decoded,
            "failed": self.failed,
        }


class FeedbackEventDecoder:
    """Decodes feedback-stream spans into FeedbackEvents.

    Feedback records are tried first. Spans that are not feedback records
    get a second chance as processing-status signals; signals naming an
    unknown status are dropped quietly. Only spans that are neither count
    as decode failures.
    """

    def __init__(self, *, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self.records = RecordDecoder(FeedbackRecord, logger=self._logger)
        self.signals = RecordDecoder(ProcessingSignal, logger=self._logger)

    def decode(self, span: bytes) -> FeedbackEvent | None:
        try:
            record = self.records.try_decode(span)
        except DecodeError as record_error:
            try:
                signal = self.signals.try_decode(span)
            except DecodeError:
                self.records.record_failure(record_error)
                return None
            self.signals.decoded += 1
            status = signal.to_status()
            if status is None:
                self._logger.debug("Ignoring unknown status signal %r", signal.status)
                return None
            return FeedbackEvent.for_status(status)

        self.records.decoded += 1
        return FeedbackEvent.for_snapshot(assemble_snapshot(record))

    def __call__(self, span: bytes) -> FeedbackEvent | None:
        return self.decode(span)

    def stats(self) -> dict[str, Any]:
        return {
            "snapshots": self.records.decoded,
            "signals": self.signals.decoded,
            "failed": self.records.failed,
        }

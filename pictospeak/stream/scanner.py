"""Bracket-aware scanner for back-to-back JSON objects.

Finds where the next top-level ``{...}`` object ends in a byte buffer
using only brace, quote and escape tracking. No JSON parsing happens
here; whether the span is a valid record is the decoder's problem.

The scan can be resumed: pass the same ScanState back in after more
bytes have been appended and scanning picks up at the first byte it has
not seen yet instead of starting over from the object's opening brace.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

_BRACE_OPEN = ord("{")
_BRACE_CLOSE = ord("}")
_QUOTE = ord('"')
_BACKSLASH = ord("\\")


class ScanStatus(StrEnum):
    """Outcome of one scan pass."""

    FOUND = "found"
    INCOMPLETE = "incomplete"
    NOT_FOUND = "not_found"


@dataclass
class ScanState:
    """Counters carried between scan passes over the same buffer.

    Offsets are absolute indexes into the buffer. The state is only
    valid while the buffer is appended to; once bytes are removed from
    its front the owner must call reset().
    """

    object_start: int = -1
    position: int = 0
    depth: int = 0
    in_string: bool = False
    escaped: bool = False

    def reset(self) -> None:
        self.object_start = -1
        self.position = 0
        self.depth = 0
        self.in_string = False
        self.escaped = False

    def shift(self, count: int) -> None:
        """Rebase offsets after ``count`` bytes were cut from the buffer front."""
        if self.object_start >= 0:
            self.object_start -= count
        self.position = max(0, self.position - count)


@dataclass(frozen=True)
class ScanResult:
    """Where the next object lives in the buffer.

    ``start`` is the index of the opening brace (set for FOUND and
    INCOMPLETE); ``end`` is one past the closing brace (FOUND only).
    """

    status: ScanStatus
    start: int = -1
    end: int = -1

    @property
    def found(self) -> bool:
        return self.status is ScanStatus.FOUND


def find_object_end(
    buffer: bytes | bytearray,
    start: int = 0,
    state: ScanState | None = None,
) -> ScanResult:
    """Find the exclusive end offset of the next complete JSON object.

    Args:
        buffer: Bytes received so far.
        start: Offset to begin searching for an opening brace. Ignored
            when ``state`` already tracks an object in progress.
        state: Optional resumable state. Updated in place, so a later
            call with the same state continues where this one stopped.

    Returns:
        FOUND with ``start``/``end`` when a balanced object closes inside
        the buffer, INCOMPLETE when an object has opened but not closed,
        NOT_FOUND when there is no ``{`` at or after ``start``.
    """
    if state is None:
        state = ScanState()

    if state.object_start < 0:
        object_start = buffer.find(b"{", start)
        if object_start < 0:
            return ScanResult(ScanStatus.NOT_FOUND)
        state.object_start = object_start
        state.position = object_start
        state.depth = 0
        state.in_string = False
        state.escaped = False

    depth = state.depth
    in_string = state.in_string
    escaped = state.escaped
    index = state.position
    length = len(buffer)

    while index < length:
        byte = buffer[index]
        index += 1

        if escaped:
            escaped = False
            continue
        if byte == _BACKSLASH:
            escaped = True
            continue
        if byte == _QUOTE:
            in_string = not in_string
            continue
        if in_string:
            continue

        if byte == _BRACE_OPEN:
            depth += 1
        elif byte == _BRACE_CLOSE:
            depth -= 1
            if depth == 0:
                object_start = state.object_start
                state.reset()
                return ScanResult(ScanStatus.FOUND, start=object_start, end=index)

    state.depth = depth
    state.in_string = in_string
    state.escaped = escaped
    state.position = index
    return ScanResult(ScanStatus.INCOMPLETE, start=state.object_start)

"""Accumulation buffer for a single response body.

Holds bytes that have arrived but not yet been cut into object spans.
The buffer is owned by exactly one stream driver for one request and is
never shared.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from pictospeak.stream.scanner import ScanState, ScanStatus, find_object_end

# JSON insignificant whitespace
_WHITESPACE = b" \t\r\n"


class AccumulationBuffer:
    """Append-then-truncate byte buffer that yields complete object spans.

    Between drains the buffer holds at most one partial object. Bytes that
    precede an object's opening brace are treated as inter-object noise.
    When no opening brace is present at all, everything buffered is
    discarded.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._data = bytearray()
        self._state = ScanState()
        self._logger = logger or logging.getLogger(__name__)
        self.discarded_bytes = 0

    def __len__(self) -> int:
        return len(self._data)

    @property
    def pending(self) -> bytes:
        """Bytes currently buffered (copy)."""
        return bytes(self._data)

    def append(self, chunk: bytes) -> None:
        """Add a transport chunk to the end of the buffer."""
        if chunk:
            self._data.extend(chunk)

    def drain_complete_objects(self) -> Iterator[bytes]:
        """Yield every complete object span currently in the buffer, in order.

        Each yielded span and everything before it is removed from the
        buffer before the span is handed out, so trailing bytes of a
        partial object stay put for the next chunk.
        """
        while self._data:
            result = find_object_end(self._data, 0, self._state)

            if result.status is ScanStatus.NOT_FOUND:
                self._discard(len(self._data), "no object start")
                return

            if result.status is ScanStatus.INCOMPLETE:
                if result.start > 0:
                    del self._data[:result.start]
                    self._state.shift(result.start)
                    self.discarded_bytes += result.start
                    self._logger.debug(
                        "Dropped %d bytes before partial object", result.start
                    )
                return

            span = bytes(self._data[result.start:result.end])
            del self._data[:result.end]
            self._state.reset()
            yield span

    def flush(self) -> bytes | None:
        """Return whatever is left as one final candidate span, and clear.

        Called once the transport has finished. Surrounding whitespace is
        trimmed; an empty remainder yields None.
        """
        remainder = bytes(self._data).strip(_WHITESPACE)
        self.clear()
        if not remainder:
            self._logger.debug("Nothing left to flush")
            return None
        return remainder

    def clear(self) -> None:
        self._data.clear()
        self._state.reset()

    def _discard(self, count: int, reason: str) -> None:
        del self._data[:count]
        self._state.reset()
        self.discarded_bytes += count
        self._logger.debug("Discarded %d buffered bytes (%s)", count, reason)

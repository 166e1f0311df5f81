"""Incremental extraction of back-to-back JSON objects from a byte stream."""

from .assembler import assemble_snapshot
from .buffer import AccumulationBuffer
from .decoder import FeedbackEventDecoder, RecordDecoder
from .driver import DriverState, StreamDriver, stream_feedback_events, stream_snapshots
from .scanner import ScanResult, ScanState, ScanStatus, find_object_end

__all__ = [
    "AccumulationBuffer",
    "DriverState",
    "FeedbackEventDecoder",
    "RecordDecoder",
    "ScanResult",
    "ScanState",
    "ScanStatus",
    "StreamDriver",
    "assemble_snapshot",
    "find_object_end",
    "stream_feedback_events",
    "stream_snapshots",
]

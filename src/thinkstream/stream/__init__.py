"""Stream decoding module.

Turns a raw response body into typed stream events.
"""

from .decoder import (
    LineBuffer,
    StreamDecoder,
    content_block_events,
    decode_line,
    decode_stream,
    iter_events,
)
from .models import (
    DATA_PREFIX,
    Channel,
    ContentDelta,
    Malformed,
    Stop,
    StreamEvent,
    StreamFailure,
    UsageReport,
)

__all__ = [
    "DATA_PREFIX",
    "Channel",
    "ContentDelta",
    "LineBuffer",
    "Malformed",
    "Stop",
    "StreamDecoder",
    "StreamEvent",
    "StreamFailure",
    "UsageReport",
    "content_block_events",
    "decode_line",
    "decode_stream",
    "iter_events",
]

"""Event decoder for the line-oriented chat stream.

This module hides the wire format of the streaming response:
- Newline-delimited records, only ``data: `` records carry payload
- Each payload is one self-contained JSON object tagged by ``type``
- Network reads may split or merge lines arbitrarily

A malformed record produces a ``Malformed`` event and decoding continues.
Nothing in this module raises on bad input.
"""

import codecs
import json
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator
from typing import Any

from ..errors import DecodeError
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

logger = logging.getLogger(__name__)


class LineBuffer:
    """Reassembles complete lines from arbitrarily chunked reads.

    Bytes are decoded incrementally so a multi-byte UTF-8 character split
    across two reads is not corrupted.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._partial = ""

    def feed(self, chunk: bytes | str) -> list[str]:
        """Add a chunk and return every line it completed."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        if not chunk:
            return []

        text = self._partial + chunk
        lines = text.split("\n")
        self._partial = lines.pop()
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> list[str]:
        """Return the residual unterminated line, if any, at end of stream."""
        tail = self._partial + self._decoder.decode(b"", final=True)
        self._partial = ""
        if not tail:
            return []
        return [tail.rstrip("\r")]


def content_block_events(blocks: Any) -> list[StreamEvent]:
    """Map a list of content blocks to content deltas, preserving order.

    Thinking blocks carry their text under ``thinking``; everything else
    carries it under ``text``. Blocks with neither (signatures, redacted
    data) are skipped.

    Raises:
        DecodeError: If ``blocks`` is not a list of objects
    """
    if not isinstance(blocks, list):
        raise DecodeError("content is not a list")

    events: list[StreamEvent] = []
    for block in blocks:
        if not isinstance(block, dict):
            raise DecodeError("content block is not an object")
        thinking = block.get("thinking")
        text = block.get("text")
        if block.get("content_type") == "thinking" and thinking:
            events.append(ContentDelta(channel=Channel.THINKING, fragment=str(thinking)))
        elif text:
            events.append(ContentDelta(channel=Channel.TEXT, fragment=str(text)))
    return events


def _usage_event(payload: dict[str, Any]) -> UsageReport:
    usage = payload.get("usage") or {}
    if not isinstance(usage, dict):
        raise DecodeError("usage is not an object")
    detail = usage.get("anthropic_usage") or {}
    if not isinstance(detail, dict):
        raise DecodeError("anthropic_usage is not an object")
    return UsageReport(
        total_cost=str(usage.get("total_cost", "$0.000")),
        input_tokens=int(detail.get("input_tokens", 0)),
        output_tokens=int(detail.get("output_tokens", 0)),
        cached_write_tokens=int(detail.get("cached_write_tokens", 0)),
        cached_read_tokens=int(detail.get("cached_read_tokens", 0)),
        total_tokens=int(detail.get("total_tokens", 0)),
    )


def _parse_payload(payload: dict[str, Any]) -> list[StreamEvent]:
    record_type = payload.get("type")

    if record_type == "content":
        return content_block_events(payload.get("content"))
    if record_type == "message_stop":
        return [Stop()]
    if record_type == "usage":
        return [_usage_event(payload)]
    if record_type == "error":
        return [StreamFailure(
            message=str(payload.get("message", "upstream error")),
            code=int(payload.get("code", 500)),
        )]

    # start, done and anything unknown carry nothing for the transcript
    return []


def decode_line(line: str) -> list[StreamEvent]:
    """Decode one complete line into zero or more stream events.

    Args:
        line: A single line without its terminating newline

    Returns:
        Events in record order. Non-data lines yield an empty list and an
        unparseable record yields a single ``Malformed``.
    """
    if not line.startswith(DATA_PREFIX):
        return []

    raw = line[len(DATA_PREFIX):]
    try:
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise DecodeError(f"invalid JSON: {e.msg}", line) from e
        if not isinstance(payload, dict):
            raise DecodeError("payload is not an object", line)
        try:
            return _parse_payload(payload)
        except (TypeError, ValueError, OverflowError) as e:
            raise DecodeError(f"invalid {payload.get('type')} record: {e}", line) from e
    except DecodeError as e:
        logger.debug("Skipping malformed stream record: %s", e)
        return [Malformed(line=line, reason=str(e))]


class StreamDecoder:
    """Stateful decoder for one response body.

    Feed it raw reads in arrival order. After the first ``Stop`` every
    further record is ignored, even if more lines remain.
    """

    def __init__(self) -> None:
        self._buffer = LineBuffer()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        """Whether a stop record has been decoded."""
        return self._stopped

    def feed(self, chunk: bytes | str) -> Iterator[StreamEvent]:
        """Decode the complete lines contained in one read."""
        yield from self._decode(self._buffer.feed(chunk))

    def finish(self) -> Iterator[StreamEvent]:
        """Decode whatever remains buffered at end of stream."""
        yield from self._decode(self._buffer.flush())

    def _decode(self, lines: list[str]) -> Iterator[StreamEvent]:
        for line in lines:
            if self._stopped:
                return
            for event in decode_line(line):
                yield event
                if isinstance(event, Stop):
                    self._stopped = True
                    return


def iter_events(chunks: Iterable[bytes | str]) -> Iterator[StreamEvent]:
    """Lazily decode a synchronous sequence of reads."""
    decoder = StreamDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
        if decoder.stopped:
            return
    yield from decoder.finish()


async def decode_stream(chunks: AsyncIterable[bytes | str]) -> AsyncIterator[StreamEvent]:
    """Lazily decode an asynchronous byte stream.

    Stops pulling from ``chunks`` as soon as a stop record is seen.
    """
    decoder = StreamDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
        if decoder.stopped:
            return
    for event in decoder.finish():
        yield event

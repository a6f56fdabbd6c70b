"""Typed stream events decoded from the wire.

The decoder produces these; the accumulator and controller consume them.
All events are immutable so they can be shared and replayed in tests.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DATA_PREFIX = "data: "


class Channel(str, Enum):
    """Content channel a delta belongs to."""

    THINKING = "thinking"
    TEXT = "text"


class ContentDelta(BaseModel):
    """A fragment of thinking or answer text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["content_delta"] = "content_delta"
    channel: Channel = Field(description="Channel the fragment is appended to")
    fragment: str = Field(description="Text fragment, appended verbatim")


class Stop(BaseModel):
    """The stream completed normally."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["stop"] = "stop"


class Malformed(BaseModel):
    """A data record that failed to parse. Skipped, never fatal."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["malformed"] = "malformed"
    line: str = Field(description="The offending raw line")
    reason: str = Field(default="", description="Why the record was rejected")


class UsageReport(BaseModel):
    """Token usage and cost reported by the backend near the end of a stream."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["usage"] = "usage"
    total_cost: str = Field(default="$0.000", description="Formatted total cost")
    input_tokens: int = 0
    output_tokens: int = 0
    cached_write_tokens: int = 0
    cached_read_tokens: int = 0
    total_tokens: int = 0


class StreamFailure(BaseModel):
    """The backend reported an error inside the stream."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    message: str
    code: int = 500


StreamEvent = ContentDelta | Stop | Malformed | UsageReport | StreamFailure

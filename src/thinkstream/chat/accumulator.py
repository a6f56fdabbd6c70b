"""Message accumulator: folds stream events into an assistant message.

A pure reducer. It trusts the decoder's ordering and only appends; it never
reorders, deduplicates or validates fragments. Replaying events therefore
double-appends, but the same ordered events always produce the same message
regardless of how they were batched across reads.
"""

from collections.abc import Iterable

from ..stream.models import Channel, ContentDelta, Stop, StreamEvent
from .models import Message, Role


def apply_event(message: Message, event: StreamEvent) -> Message:
    """Return the message that results from applying one event.

    Non-content events return ``message`` itself, so callers can detect a
    no-op with an identity check.
    """
    if not isinstance(event, ContentDelta):
        return message

    if event.channel is Channel.THINKING:
        return message.model_copy(
            update={"thinking": (message.thinking or "") + event.fragment}
        )
    return message.model_copy(update={"content": message.content + event.fragment})


def fold_events(events: Iterable[StreamEvent], message: Message | None = None) -> Message:
    """Fold a sequence of events, starting from an empty assistant message."""
    result = message if message is not None else Message(role=Role.ASSISTANT)
    for event in events:
        result = apply_event(result, event)
    return result


def is_terminal(event: StreamEvent) -> bool:
    """Whether the event marks normal completion of the stream."""
    return isinstance(event, Stop)

"""Data models for conversations.

These models define the structure of messages and sessions,
independent of the storage backend or renderer used.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TITLE = "New Chat"
TITLE_LENGTH = 20


class Role(str, Enum):
    """Sender of a message. Fixed for the lifetime of the message."""

    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A single turn in a conversation.

    ``content`` and ``thinking`` only ever grow; a new instance is produced
    for every change so earlier snapshots stay valid.
    """

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Role of the message sender")
    content: str = Field(default="", description="Answer text")
    thinking: str | None = Field(
        default=None,
        description="Exposed reasoning text, present once a thinking delta arrived"
    )

    @property
    def is_assistant(self) -> bool:
        return self.role is Role.ASSISTANT

    def to_wire(self) -> dict[str, str]:
        """Convert to the upstream request message format."""
        return {"role": self.role.value, "content": self.content}


def new_session_id() -> str:
    """Generate an opaque 128-bit random session identifier."""
    return uuid4().hex


class ChatSession(BaseModel):
    """A persisted conversation.

    ``created_at`` is stored under ``timestamp`` to stay compatible with
    previously exported transcripts.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_session_id)
    title: str = Field(default=DEFAULT_TITLE)
    created_at: datetime = Field(default_factory=datetime.now, alias="timestamp")
    messages: list[Message] = Field(default_factory=list)

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def first_user_message(self) -> Message | None:
        """Return the first message sent by the user, if any."""
        for message in self.messages:
            if message.role is Role.USER:
                return message
        return None

    def wire_history(self) -> list[dict[str, str]]:
        """Messages in upstream request format, oldest first."""
        return [message.to_wire() for message in self.messages]

"""Request models for the upstream chat endpoint."""

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field

from ..chat.models import Message
from ..config import ClientSettings

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_BETA = "output-128k-2025-02-19"


class WireMessage(BaseModel):
    """A message as sent upstream: role and content only."""

    role: str
    content: str


class AnthropicConfig(BaseModel):
    """Extra headers and body fields forwarded to the model API."""

    headers: dict[str, str] = Field(default_factory=dict)
    body: dict[str, Any] = Field(default_factory=dict)


class ChatRequest(BaseModel):
    """JSON body of a chat request."""

    stream: bool = True
    system: str = ""
    verbose: bool = False
    messages: list[WireMessage] = Field(default_factory=list)
    anthropic_config: AnthropicConfig = Field(default_factory=AnthropicConfig)

    @classmethod
    def build(
        cls,
        history: Sequence[Message],
        settings: ClientSettings,
        stream: bool = True,
    ) -> "ChatRequest":
        """Build a request for the given history using configured defaults.

        Thinking text is never sent back upstream; only role and content.
        """
        return cls(
            stream=stream,
            system=settings.system_prompt,
            messages=[WireMessage(**message.to_wire()) for message in history],
            anthropic_config=AnthropicConfig(
                headers={
                    "anthropic-version": ANTHROPIC_VERSION,
                    "anthropic-beta": ANTHROPIC_BETA,
                },
                body={
                    "temperature": settings.temperature,
                    "model": settings.model,
                    "max_tokens": settings.max_tokens,
                    "thinking": {
                        "type": "enabled",
                        "budget_tokens": settings.thinking_budget,
                    },
                },
            ),
        )

    @property
    def model(self) -> str | None:
        return self.anthropic_config.body.get("model")

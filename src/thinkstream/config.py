"""Client configuration.

Centralizes defaults and environment variable names. The CLI loads ``.env``
before calling ``ClientSettings.from_env()``.
"""

import os
from pathlib import Path

from pydantic import BaseModel, Field

from .errors import ConfigError

DEFAULT_MODEL = "claude-3-7-sonnet-20250219"
DEFAULT_BASE_URL = "http://localhost:1337"
DEFAULT_STORAGE_PATH = "~/.thinkstream/chats.json"
DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant who excels at reasoning and responds in "
    "Markdown format. For code snippets, you wrap them in Markdown codeblocks "
    "with it's language specified."
)


class ClientSettings(BaseModel):
    """Settings for one client process.

    Environment variables:
        THINKSTREAM_API_TOKEN: Credential sent upstream (falls back to ANTHROPIC_API_KEY)
        THINKSTREAM_TRANSPORT: "proxy" (default) or "anthropic"
        THINKSTREAM_BASE_URL: Proxy endpoint (default: http://localhost:1337)
        THINKSTREAM_MODEL: Model identifier
        THINKSTREAM_MAX_TOKENS: Maximum tokens to generate
        THINKSTREAM_THINKING_BUDGET: Thinking token budget
        THINKSTREAM_TEMPERATURE: Sampling temperature
        THINKSTREAM_TIMEOUT: Request timeout in seconds
        THINKSTREAM_STORAGE: "file" (default) or "memory"
        THINKSTREAM_STORAGE_PATH: Session history file
        THINKSTREAM_LOG_LEVEL: debug, info, warning or error
    """

    api_token: str | None = Field(default=None, repr=False)
    transport: str = "proxy"
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    max_tokens: int = Field(default=128000, gt=0)
    thinking_budget: int = Field(default=64000, gt=0)
    temperature: float = Field(default=1.0, ge=0.0, le=2.0)
    request_timeout: float = Field(default=600.0, gt=0)
    storage_backend: str = "file"
    storage_path: Path = Path(DEFAULT_STORAGE_PATH)
    log_level: str = "warning"

    @classmethod
    def from_env(cls, **overrides: object) -> "ClientSettings":
        """Build settings from environment variables.

        Keyword overrides that are not None win over the environment.
        """
        values: dict[str, object] = {
            "api_token": os.getenv("THINKSTREAM_API_TOKEN") or os.getenv("ANTHROPIC_API_KEY"),
            "transport": os.getenv("THINKSTREAM_TRANSPORT", "proxy"),
            "base_url": os.getenv("THINKSTREAM_BASE_URL", DEFAULT_BASE_URL),
            "model": os.getenv("THINKSTREAM_MODEL", DEFAULT_MODEL),
            "max_tokens": os.getenv("THINKSTREAM_MAX_TOKENS", "128000"),
            "thinking_budget": os.getenv("THINKSTREAM_THINKING_BUDGET", "64000"),
            "temperature": os.getenv("THINKSTREAM_TEMPERATURE", "1.0"),
            "request_timeout": os.getenv("THINKSTREAM_TIMEOUT", "600"),
            "storage_backend": os.getenv("THINKSTREAM_STORAGE", "file"),
            "storage_path": os.getenv("THINKSTREAM_STORAGE_PATH", DEFAULT_STORAGE_PATH),
            "log_level": os.getenv("THINKSTREAM_LOG_LEVEL", "warning"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)

    @property
    def has_credential(self) -> bool:
        return bool(self.api_token)

    def require_credential(self) -> str:
        """Return the credential or raise ConfigError if it is not configured."""
        if not self.api_token:
            raise ConfigError(
                "No API token configured. Set THINKSTREAM_API_TOKEN or ANTHROPIC_API_KEY."
            )
        return self.api_token

"""Error taxonomy for thinkstream.

Each error class marks where a failure is handled:
- DecodeError: a single malformed stream record, recovered inside the decoder
- TransportError: network or HTTP failure, ends a turn in the errored state
- ConfigError: missing credential, the submission is refused
- StorageError: durable write/read failure, logged while the in-memory store keeps working
"""


class ThinkstreamError(Exception):
    """Base class for all thinkstream errors."""


class DecodeError(ThinkstreamError):
    """A stream record could not be decoded."""

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class TransportError(ThinkstreamError):
    """The upstream request failed or ended prematurely."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(ThinkstreamError):
    """Required configuration (usually the credential) is missing."""


class StorageError(ThinkstreamError):
    """Durable session storage could not be read or written."""

"""In-memory session storage backend.

Keeps the blob in a Python attribute. Data is lost when the process exits.
Suitable for ephemeral runs and testing.
"""

from .base import SessionStorage


class InMemorySessionStorage(SessionStorage):
    """In-memory session storage (process-only)."""

    def __init__(self, blob: str | None = None):
        self._blob = blob
        self.writes = 0

    def load(self) -> str | None:
        return self._blob

    def save(self, blob: str) -> None:
        self._blob = blob
        self.writes += 1

    def erase(self) -> None:
        self._blob = None

    @property
    def backend_type(self) -> str:
        return "memory"

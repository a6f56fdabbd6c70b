"""Abstract base class for durable session storage.

This module defines the interface the session store persists through.
The abstraction hides:
- Storage medium (file, memory)
- Write atomicity
- Location of the durable record

The store always hands over one serialized blob holding every session;
backends never see partial records.
"""

from abc import ABC, abstractmethod


class SessionStorage(ABC):
    """Abstract durable storage for the serialized session mapping."""

    @abstractmethod
    def load(self) -> str | None:
        """Return the persisted blob, or None if nothing is stored.

        Raises:
            StorageError: If the record exists but cannot be read
        """

    @abstractmethod
    def save(self, blob: str) -> None:
        """Replace the persisted blob wholesale.

        Raises:
            StorageError: If the write fails
        """

    @abstractmethod
    def erase(self) -> None:
        """Remove the persisted record entirely.

        Raises:
            StorageError: If the record cannot be removed
        """

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

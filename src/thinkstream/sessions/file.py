"""JSON file session storage backend.

Stores the serialized session mapping in a single file. Every save writes a
temporary sibling and atomically replaces the target, so a crash mid-write
leaves the previous record intact.
"""

import os
import tempfile
from pathlib import Path

from ..errors import StorageError
from .base import SessionStorage


class FileSessionStorage(SessionStorage):
    """File-backed session storage.

    Supports persistent history across runs of the client.
    """

    def __init__(self, path: str | Path = "~/.thinkstream/chats.json"):
        self._path = Path(path).expanduser()

    def load(self) -> str | None:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {self._path}: {e}") from e

    def save(self, blob: str) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(blob)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}") from e

    def erase(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to erase {self._path}: {e}") from e

    @property
    def backend_type(self) -> str:
        return "file"

    @property
    def path(self) -> Path:
        return self._path

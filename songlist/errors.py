from __future__ import annotations

from typing import Any


class SongListError(Exception):
    """Base for failures raised by song stores."""

    def __init__(self, operation: str, message: str, **context: Any) -> None:
        self.operation = operation
        self.context = context
        details = " ".join(f"{key}={value!r}" for key, value in context.items())
        super().__init__(f"{operation}: {message}" + (f" ({details})" if details else ""))


class StorageError(SongListError):
    """The underlying store failed (connectivity, constraint, bad row)."""


class SongNotFoundError(SongListError):
    def __init__(self, operation: str, song_id: int) -> None:
        self.song_id = song_id
        super().__init__(operation, "song not found", song_id=song_id)

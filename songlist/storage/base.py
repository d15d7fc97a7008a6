from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from songlist.logging_utils import log_event
from songlist.models import NewSong, Song, SongFilter, SongUpdate, VerseWindow
from songlist.services.lyric_window import split_verses, window_verses


class SongStore(ABC):
    """Persistence contract shared by every song backend.

    Implementations own conflict handling on insert, merge semantics on
    update and the not-found checks; ``get_text`` windows whatever lyrics the
    backend returns from ``_load_lyrics``.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def add_song(self, song: NewSong) -> None:
        """Insert ``song``; an existing (title, group) pair makes this a logged no-op."""

    @abstractmethod
    def find_all(self, song_filter: SongFilter) -> list[Song]:
        """Return matching songs ordered by ascending id, windowed by limit/offset."""

    @abstractmethod
    def get(self, song_id: int) -> Song:
        ...

    @abstractmethod
    def update(self, song_update: SongUpdate) -> None:
        ...

    @abstractmethod
    def delete(self, song_id: int) -> None:
        ...

    @abstractmethod
    def _load_lyrics(self, song_id: int) -> str:
        """Return the stored lyrics or raise ``SongNotFoundError``."""

    def get_text(self, song_id: int, window: VerseWindow | None = None) -> str:
        window = window or VerseWindow()
        lyrics = self._load_lyrics(song_id)
        verse_count = len(split_verses(lyrics))
        if window.verse_offset >= verse_count:
            log_event(
                self.logger,
                "verse_offset_out_of_range",
                level=logging.DEBUG,
                song_id=song_id,
                verse_offset=window.verse_offset,
                verse_count=verse_count,
            )
        text = window_verses(lyrics, window)
        log_event(self.logger, "song_text_loaded", level=logging.DEBUG, song_id=song_id, verse_count=verse_count)
        return text

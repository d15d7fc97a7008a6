from __future__ import annotations

import logging
import threading

from songlist.errors import SongNotFoundError
from songlist.logging_utils import log_event
from songlist.models import NewSong, Song, SongFilter, SongUpdate
from songlist.storage.base import SongStore


class InMemorySongStore(SongStore):
    """Dict-backed store with the same conflict, merge and not-found rules as ``SqlSongStore``."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        super().__init__(logger)
        self._rows: dict[int, Song] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def add_song(self, song: NewSong) -> None:
        with self._lock:
            duplicate = any(row.title == song.title and row.group == song.group for row in self._rows.values())
            if not duplicate:
                self._rows[self._next_id] = Song(id=self._next_id, **song.model_dump(exclude={"id"}))
                self._next_id += 1
        if duplicate:
            log_event(self.logger, "song_already_exists", level=logging.WARNING, title=song.title, group=song.group)
            return
        log_event(self.logger, "song_added", level=logging.DEBUG, title=song.title, group=song.group)

    def find_all(self, song_filter: SongFilter) -> list[Song]:
        predicates = {name: needle.lower() for name, needle in song_filter.substring_predicates().items()}
        with self._lock:
            rows = [self._rows[key] for key in sorted(self._rows)]
        matches = [
            row
            for row in rows
            if all(needle in getattr(row, name).lower() for name, needle in predicates.items())
            and (song_filter.release_date is None or row.release_date == song_filter.release_date)
        ]
        page = matches[song_filter.offset : song_filter.offset + song_filter.limit]
        return [song.model_copy() for song in page]

    def get(self, song_id: int) -> Song:
        with self._lock:
            song = self._rows.get(song_id)
        if song is None:
            raise SongNotFoundError("get", song_id)
        return song.model_copy()

    def update(self, song_update: SongUpdate) -> None:
        with self._lock:
            current = self._rows.get(song_update.id)
            if current is not None:
                self._rows[song_update.id] = current.model_copy(update=song_update.changes())
        if current is None:
            raise SongNotFoundError("update", song_update.id)
        log_event(self.logger, "song_updated", level=logging.DEBUG, song_id=song_update.id, fields=sorted(song_update.changes()))

    def delete(self, song_id: int) -> None:
        with self._lock:
            removed = self._rows.pop(song_id, None)
        if removed is None:
            raise SongNotFoundError("delete", song_id)
        log_event(self.logger, "song_deleted", level=logging.DEBUG, song_id=song_id)

    def _load_lyrics(self, song_id: int) -> str:
        with self._lock:
            song = self._rows.get(song_id)
        if song is None:
            raise SongNotFoundError("get_text", song_id)
        return song.lyrics

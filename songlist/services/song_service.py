from __future__ import annotations

import logging

from songlist.config import Settings
from songlist.logging_utils import configure_logging, log_event, operation_context
from songlist.models import NewSong, Song, SongFilter, SongUpdate, VerseWindow
from songlist.storage.base import SongStore
from songlist.storage.sql import SqlSongStore


class SongService:
    """Boundary handed to callers; every call goes straight to the store."""

    def __init__(self, store: SongStore, logger: logging.Logger | None = None) -> None:
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def add_song(self, song: NewSong) -> None:
        with operation_context("add_song"):
            log_event(self.logger, "add_song_requested", level=logging.DEBUG, title=song.title, group=song.group)
            self.store.add_song(song)

    def find_all(self, song_filter: SongFilter | None = None) -> list[Song]:
        with operation_context("find_all"):
            found = self.store.find_all(song_filter or SongFilter())
            log_event(self.logger, "find_all_completed", level=logging.DEBUG, total=len(found))
            return found

    def get(self, song_id: int) -> Song:
        with operation_context("get", song_id):
            return self.store.get(song_id)

    def update(self, song_update: SongUpdate) -> None:
        with operation_context("update", song_update.id):
            self.store.update(song_update)

    def delete(self, song_id: int) -> None:
        with operation_context("delete", song_id):
            self.store.delete(song_id)

    def get_text(self, song_id: int, window: VerseWindow | None = None) -> str:
        with operation_context("get_text", song_id):
            return self.store.get_text(song_id, window)


def create_song_service(settings: Settings | None = None) -> SongService:
    """Wire logging, the pooled database engine and the service from the environment."""
    configure_logging()
    settings = settings or Settings.from_env()
    logger = logging.getLogger("songlist")
    store = SqlSongStore.from_settings(settings, logger=logger.getChild("storage"))
    log_event(logger, "song_service_ready", backend=settings.database_url.get_backend_name())
    return SongService(store, logger=logger.getChild("service"))

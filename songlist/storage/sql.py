from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from pydantic import ValidationError
from sqlalchemy import Connection, Engine, create_engine, delete, func, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from songlist.config import Settings
from songlist.errors import SongNotFoundError, StorageError
from songlist.logging_utils import log_event
from songlist.models import NewSong, Song, SongFilter, SongUpdate
from songlist.storage.base import SongStore
from songlist.storage.schema import songs

_INSERT_BUILDERS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# Filter field -> songs column
_FILTER_COLUMNS = {
    "title": songs.c.title,
    "group": songs.c.group_name,
    "lyrics": songs.c.lyrics,
    "link": songs.c.link,
}


def connect(settings: Settings) -> Engine:
    """Build the pooled engine for ``settings`` and make sure the database answers."""
    connect_args: dict[str, Any] = {}
    if settings.database_url.get_backend_name() == "sqlite" and settings.statement_timeout_ms is not None:
        connect_args["timeout"] = settings.statement_timeout_ms / 1000

    engine_kwargs: dict[str, Any] = {"echo": settings.echo, "pool_pre_ping": True, "connect_args": connect_args}
    if settings.database_url.get_backend_name() != "sqlite":
        engine_kwargs["pool_size"] = settings.pool_size

    safe_url = settings.database_url.render_as_string(hide_password=True)
    try:
        engine = create_engine(settings.database_url, **engine_kwargs)
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise StorageError("connect", "failed to reach database", url=safe_url) from exc
    return engine


def _row_to_song(row: Any) -> Song:
    return Song(
        id=row.id,
        title=row.title,
        group=row.group_name,
        lyrics=row.lyrics,
        link=row.link,
        release_date=row.release_date,
    )


class SqlSongStore(SongStore):
    """Song store over a SQLAlchemy engine (PostgreSQL in production, SQLite in tests).

    Each public call is one statement on a pooled connection checked out for
    the duration of a ``with engine.begin()`` block.
    """

    def __init__(
        self,
        engine: Engine,
        logger: logging.Logger | None = None,
        statement_timeout_ms: int | None = None,
    ) -> None:
        super().__init__(logger)
        dialect = engine.dialect.name
        if dialect not in _INSERT_BUILDERS:
            raise ValueError(f"Unsupported database dialect for song storage: {dialect}")
        self.engine = engine
        self.statement_timeout_ms = statement_timeout_ms
        self._insert = _INSERT_BUILDERS[dialect]

    @classmethod
    def from_settings(cls, settings: Settings, logger: logging.Logger | None = None) -> "SqlSongStore":
        return cls(connect(settings), logger=logger, statement_timeout_ms=settings.statement_timeout_ms)

    @contextmanager
    def _transaction(self, operation: str, **context: Any) -> Iterator[Connection]:
        try:
            with self.engine.begin() as conn:
                if self.statement_timeout_ms is not None and self.engine.dialect.name == "postgresql":
                    conn.execute(
                        text("SELECT set_config('statement_timeout', :timeout, true)"),
                        {"timeout": str(self.statement_timeout_ms)},
                    )
                yield conn
        except (SQLAlchemyError, ValidationError) as exc:
            log_event(self.logger, "storage_failed", level=logging.ERROR, operation=operation, error=str(exc), **context)
            raise StorageError(operation, f"{type(exc).__name__}: {exc}", **context) from exc

    def add_song(self, song: NewSong) -> None:
        log_event(self.logger, "song_add_attempt", level=logging.DEBUG, title=song.title, group=song.group)
        stmt = (
            self._insert(songs)
            .values(
                title=song.title,
                group_name=song.group,
                lyrics=song.lyrics,
                link=song.link,
                release_date=song.release_date,
            )
            .on_conflict_do_nothing(index_elements=[songs.c.title, songs.c.group_name])
        )
        with self._transaction("add_song", title=song.title, group=song.group) as conn:
            inserted = conn.execute(stmt).rowcount

        if inserted == 0:
            log_event(self.logger, "song_already_exists", level=logging.WARNING, title=song.title, group=song.group)
            return
        log_event(self.logger, "song_added", level=logging.DEBUG, title=song.title, group=song.group)

    def find_all(self, song_filter: SongFilter) -> list[Song]:
        log_event(self.logger, "song_query", level=logging.DEBUG, song_filter=song_filter.model_dump())
        stmt = select(songs)
        for name, needle in song_filter.substring_predicates().items():
            stmt = stmt.where(_FILTER_COLUMNS[name].icontains(needle, autoescape=True))
        if song_filter.release_date is not None:
            stmt = stmt.where(songs.c.release_date == song_filter.release_date)
        stmt = stmt.order_by(songs.c.id).limit(song_filter.limit).offset(song_filter.offset)

        with self._transaction("find_all", song_filter=song_filter.model_dump()) as conn:
            found = [_row_to_song(row) for row in conn.execute(stmt)]

        log_event(self.logger, "song_query_completed", level=logging.DEBUG, total=len(found))
        return found

    def get(self, song_id: int) -> Song:
        stmt = select(songs).where(songs.c.id == song_id)
        with self._transaction("get", song_id=song_id) as conn:
            row = conn.execute(stmt).first()
            song = _row_to_song(row) if row is not None else None
        if song is None:
            raise SongNotFoundError("get", song_id)
        return song

    def update(self, song_update: SongUpdate) -> None:
        log_event(self.logger, "song_update_attempt", level=logging.DEBUG, song_id=song_update.id)
        stmt = (
            update(songs)
            .where(songs.c.id == song_update.id)
            .values(
                lyrics=func.coalesce(song_update.lyrics, songs.c.lyrics),
                link=func.coalesce(song_update.link, songs.c.link),
                release_date=func.coalesce(song_update.release_date, songs.c.release_date),
            )
        )
        with self._transaction("update", song_id=song_update.id) as conn:
            matched = conn.execute(stmt).rowcount

        if matched == 0:
            log_event(self.logger, "song_update_missed", level=logging.DEBUG, song_id=song_update.id)
            raise SongNotFoundError("update", song_update.id)
        log_event(self.logger, "song_updated", level=logging.DEBUG, song_id=song_update.id, fields=sorted(song_update.changes()))

    def delete(self, song_id: int) -> None:
        log_event(self.logger, "song_delete_attempt", level=logging.DEBUG, song_id=song_id)
        with self._transaction("delete", song_id=song_id) as conn:
            removed = conn.execute(delete(songs).where(songs.c.id == song_id)).rowcount

        if removed == 0:
            log_event(self.logger, "song_delete_missed", level=logging.DEBUG, song_id=song_id)
            raise SongNotFoundError("delete", song_id)
        log_event(self.logger, "song_deleted", level=logging.DEBUG, song_id=song_id)

    def _load_lyrics(self, song_id: int) -> str:
        stmt = select(songs.c.lyrics).where(songs.c.id == song_id)
        with self._transaction("get_text", song_id=song_id) as conn:
            row = conn.execute(stmt).first()
        if row is None:
            log_event(self.logger, "song_not_found", level=logging.WARNING, song_id=song_id)
            raise SongNotFoundError("get_text", song_id)
        if row.lyrics is None:
            log_event(self.logger, "storage_failed", level=logging.ERROR, operation="get_text", error="lyrics column is NULL", song_id=song_id)
            raise StorageError("get_text", "lyrics column is NULL", song_id=song_id)
        return row.lyrics

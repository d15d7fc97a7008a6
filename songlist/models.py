from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DEFAULT_PAGE_LIMIT = 5
DEFAULT_VERSE_LIMIT = 5


def _blank_to_none(value: str | None) -> str | None:
    return value or None


class NewSong(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(validation_alias=AliasChoices("title", "song"))
    group: str
    lyrics: str = Field(default="", validation_alias=AliasChoices("lyrics", "text"))
    link: str = ""
    release_date: str = Field(default="", validation_alias=AliasChoices("release_date", "releaseDate", "date"))


class Song(NewSong):
    id: int


class SongUpdate(BaseModel):
    """Field-level merge for an existing song.

    ``None`` leaves the stored value untouched. Empty strings are treated the
    same way, so an update cannot clear a field back to ``""``.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    lyrics: str | None = Field(default=None, validation_alias=AliasChoices("lyrics", "text"))
    link: str | None = None
    release_date: str | None = Field(default=None, validation_alias=AliasChoices("release_date", "releaseDate", "date"))

    @field_validator("lyrics", "link", "release_date")
    @classmethod
    def empty_means_unchanged(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    def changes(self) -> dict[str, str]:
        return {
            name: value
            for name, value in (("lyrics", self.lyrics), ("link", self.link), ("release_date", self.release_date))
            if value is not None
        }


class SongFilter(BaseModel):
    """Row query: partial-match text fields, exact release date, row window."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str | None = Field(default=None, validation_alias=AliasChoices("title", "song"))
    group: str | None = None
    lyrics: str | None = Field(default=None, validation_alias=AliasChoices("lyrics", "text"))
    link: str | None = None
    release_date: str | None = Field(default=None, validation_alias=AliasChoices("release_date", "releaseDate", "date"))
    limit: int = Field(default=DEFAULT_PAGE_LIMIT, ge=0)
    offset: int = Field(default=0, ge=0)

    @field_validator("title", "group", "lyrics", "link", "release_date")
    @classmethod
    def empty_is_wildcard(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    def substring_predicates(self) -> dict[str, str]:
        return {
            name: value
            for name, value in (("title", self.title), ("group", self.group), ("lyrics", self.lyrics), ("link", self.link))
            if value is not None
        }


class VerseWindow(BaseModel):
    """Line range over a song's lyrics.

    Kept apart from ``SongFilter.limit``/``offset``: those count rows, these
    count verses of a single song.
    """

    model_config = ConfigDict(frozen=True)

    verse_limit: int = Field(default=DEFAULT_VERSE_LIMIT, ge=0)
    verse_offset: int = Field(default=0, ge=0)

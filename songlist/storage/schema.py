from __future__ import annotations

from sqlalchemy import Column, Engine, Integer, MetaData, Table, Text, UniqueConstraint

metadata = MetaData()

songs = Table(
    "songs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("group_name", Text, nullable=False),
    Column("lyrics", Text, nullable=False, server_default=""),
    Column("link", Text, nullable=False, server_default=""),
    Column("release_date", Text, nullable=False, server_default=""),
    UniqueConstraint("title", "group_name", name="uq_songs_title_group"),
)


def create_schema(engine: Engine) -> None:
    """Create the songs table when missing. Production databases are expected to be provisioned already."""
    metadata.create_all(engine, checkfirst=True)

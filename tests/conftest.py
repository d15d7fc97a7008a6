import logging

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from songlist.storage.memory import InMemorySongStore
from songlist.storage.schema import create_schema
from songlist.storage.sql import SqlSongStore


@pytest.fixture
def sqlite_engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture(params=["sql", "memory"])
def store(request):
    logger = logging.getLogger(f"songlist.tests.{request.param}")
    if request.param == "sql":
        return SqlSongStore(request.getfixturevalue("sqlite_engine"), logger=logger)
    return InMemorySongStore(logger=logger)

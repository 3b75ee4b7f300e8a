# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
Murshid: Database Engine
Engine construction and schema creation for the SQL stores.
"""

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# Registers the tables on SQLModel.metadata
from murshid.db import tables  # noqa: F401
from murshid.utils.logger import get_logger

log = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for database_url.
    In-memory SQLite gets a StaticPool so every session shares one database.
    """
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

    log.info("db_engine_created", dialect=engine.dialect.name)
    return engine


def init_db(engine: Engine) -> None:
    """Create all tables (idempotent)."""
    SQLModel.metadata.create_all(engine)
    log.info("db_schema_ready", tables=sorted(SQLModel.metadata.tables))

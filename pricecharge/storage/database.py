"""Database engine and session factory."""

import logging
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..models import DatabaseConfig
from .tables import Base

logger = logging.getLogger(__name__)


def create_db_engine(config: DatabaseConfig) -> Engine:
    """Create an engine for the configured URL.

    SQLite gets foreign keys enabled so charger deletes cascade to
    policies. An in-memory SQLite URL shares one connection across
    threads so every session sees the same database.
    """
    url = config.url
    kwargs = {"echo": config.echo}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            db_path = url.split("sqlite:///", 1)[-1]
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine):
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)
    logger.info("Database tables initialized")

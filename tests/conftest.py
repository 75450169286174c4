"""Shared fixtures for charge scheduler tests."""

import pytest

from pricecharge.models import DatabaseConfig
from pricecharge.storage import Repository, TokenCipher, create_db_engine, create_session_factory, init_db


@pytest.fixture
def repository():
    """Repository over a fresh in-memory SQLite database."""
    engine = create_db_engine(DatabaseConfig(url="sqlite://"))
    init_db(engine)
    yield Repository(create_session_factory(engine), TokenCipher("test-secret"))
    engine.dispose()

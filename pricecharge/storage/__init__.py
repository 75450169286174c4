"""Relational storage for accounts, chargers, tokens, and policies."""

from .crypto import TokenCipher
from .database import create_db_engine, create_session_factory, init_db
from .repository import Repository
from .offload import AsyncRepository

__all__ = [
    "TokenCipher",
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "Repository",
    "AsyncRepository",
]

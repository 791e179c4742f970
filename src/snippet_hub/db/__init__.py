"""
Database Package

Provides SQLAlchemy async session management and model definitions
for the snippets store.
"""

from .session import (
    async_engine,
    AsyncSessionLocal,
    build_engine,
    build_session_factory,
)
from .models import Base, SnippetRecord, SnippetTagRecord

__all__ = [
    "async_engine",
    "AsyncSessionLocal",
    "build_engine",
    "build_session_factory",
    "Base",
    "SnippetRecord",
    "SnippetTagRecord",
]

"""
SQLAlchemy Models

Defines the database schema for the snippets collection:
- Snippet rows (one per code snippet)
- Snippet tag rows (ordered tag occurrences of a snippet)
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, List

from sqlalchemy import (
    String,
    Integer,
    Float,
    Boolean,
    Text,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_snippet_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Snippet Model
# ---------------------------------------------------------------------

class SnippetRecord(Base):
    """
    A stored code snippet.

    Timestamps are naive UTC. They are nullable so that records written
    before timestamps existed can still be read.
    """
    __tablename__ = "snippet"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_snippet_id)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    code: Mapped[str] = mapped_column(Text, nullable=False)
    language: Mapped[str] = mapped_column(String(64), nullable=False)
    framework: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    author: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    num_ratings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    tags: Mapped[List["SnippetTagRecord"]] = relationship(
        "SnippetTagRecord",
        back_populates="snippet",
        cascade="all, delete-orphan",
        order_by="SnippetTagRecord.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_snippet_language_created", "language", "created_at"),
        Index("idx_snippet_framework", "framework"),
        Index("idx_snippet_user", "user_id"),
    )


# ---------------------------------------------------------------------
# Snippet Tag Model
# ---------------------------------------------------------------------

class SnippetTagRecord(Base):
    """
    One tag occurrence of a snippet.

    `position` keeps insertion order; duplicate tags are separate rows.
    """
    __tablename__ = "snippet_tag"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    snippet_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("snippet.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    tag: Mapped[str] = mapped_column(String(128), nullable=False)

    snippet: Mapped["SnippetRecord"] = relationship("SnippetRecord", back_populates="tags")

    __table_args__ = (
        Index("idx_tag_value", "tag"),
        Index("idx_tag_snippet", "snippet_id", "position"),
    )

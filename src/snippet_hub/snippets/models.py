"""
Snippet Domain Models

This module defines the canonical in-memory representation of a snippet as
returned by the repository, plus the write-side shapes the repository accepts.

Field names are snake_case in Python and camelCase on the wire
(`isPublic`, `userId`, `createdAt`, ...). Both spellings are accepted on input.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..db.models import SnippetRecord


# Offered by create forms; language itself stays free-form.
SUGGESTED_LANGUAGES: List[str] = [
    "JavaScript",
    "TypeScript",
    "Python",
    "Java",
    "C++",
    "C#",
    "PHP",
    "Ruby",
    "Go",
    "Rust",
    "Swift",
    "Kotlin",
    "HTML",
    "CSS",
    "SQL",
    "Bash",
]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to the naive timestamps read back from the store."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SnippetDocument(BaseModel):
    """Shared configuration for every snippet-shaped model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Snippet(SnippetDocument):
    """
    A persisted snippet with its store-assigned id.

    `tags` is never None: records without tags read back as an empty list.
    """

    id: str
    title: str
    description: str = ""
    code: str
    language: str
    framework: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_public: bool = True
    author: str = ""
    user_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    rating: float = 0
    num_ratings: int = 0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_record(cls, record: SnippetRecord) -> "Snippet":
        return cls(
            id=record.id,
            title=record.title,
            description=record.description or "",
            code=record.code,
            language=record.language,
            framework=record.framework,
            tags=[t.tag for t in record.tags],
            is_public=record.is_public,
            author=record.author or "",
            user_id=record.user_id,
            created_at=_as_utc(record.created_at),
            updated_at=_as_utc(record.updated_at),
            rating=record.rating or 0,
            num_ratings=record.num_ratings or 0,
        )


class SnippetDraft(SnippetDocument):
    """
    A new snippet as handed to the repository.

    The repository does not validate drafts; callers prepare them.
    """

    title: str
    description: str = ""
    code: str
    language: str
    framework: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_public: bool = True
    author: str
    user_id: str


class SnippetUpdate(SnippetDocument):
    """
    A partial change to an existing snippet.

    Only fields explicitly set are written. Identity, ownership, timestamps
    and rating counters cannot be changed through an update.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    code: Optional[str] = None
    language: Optional[str] = None
    framework: Optional[str] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None

    model_config = ConfigDict(extra="forbid")


class LanguageCount(BaseModel):
    """Number of snippets stored for one language."""

    name: str
    count: int = Field(..., ge=0)


def parse_tags(raw: str) -> List[str]:
    """
    Split a comma-separated tag string into trimmed, non-empty tags.

    Order and duplicates are preserved.
    """
    return [tag.strip() for tag in raw.split(",") if tag.strip()]

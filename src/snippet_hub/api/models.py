"""
API Models for the Snippet Service

This module defines the Pydantic models used for request/response validation
across snippet, facet, auth-session and explanation endpoints.

Design Goals
------------
- Strong typing
- Input preparation (trimming, tag parsing) happens here, before the
  repository is called
- camelCase on the wire, matching the stored document shape
"""

from __future__ import annotations

from typing import List, Optional, Literal, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from ..auth.models import UserContext
from ..snippets.models import Snippet, SnippetDraft, SnippetUpdate, parse_tags


def _normalize_tags(value: Union[str, List[str], None]) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return parse_tags(value)
    return [tag.strip() for tag in value if isinstance(tag, str) and tag.strip()]


def _require_code(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("Code is required")
    return value


def _normalize_framework(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


# ---------------------------------------------------------------------
# Generic Results
# ---------------------------------------------------------------------

class OperationResult(BaseModel):
    """
    Standardized mutation operation result.
    Used for create/delete-style endpoints.
    """
    status: Literal["created", "deleted"]
    id: str

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Snippet Models
# ---------------------------------------------------------------------

class SnippetCreateRequest(BaseModel):
    """
    Payload for creating a snippet.

    `tags` accepts a list or a comma-separated string.
    """
    title: str = Field(..., min_length=1)
    description: str = ""
    code: str = Field(..., min_length=1)
    language: str = Field(..., min_length=1)
    framework: Optional[str] = None
    tags: Union[List[str], str] = Field(default_factory=list)
    is_public: bool = True

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("title", "description", "language", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("code")
    @classmethod
    def _code_not_blank(cls, v: str) -> str:
        return _require_code(v)

    @field_validator("framework")
    @classmethod
    def _framework(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_framework(v)

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: Union[List[str], str]) -> List[str]:
        return _normalize_tags(v) or []

    def to_draft(self, user: UserContext) -> SnippetDraft:
        """Attach ownership and the denormalized author name."""
        return SnippetDraft(
            title=self.title,
            description=self.description,
            code=self.code,
            language=self.language,
            framework=self.framework,
            tags=list(self.tags),
            is_public=self.is_public,
            author=user.author_name,
            user_id=user.uid,
        )


class SnippetUpdateRequest(BaseModel):
    """
    Partial update payload. Omitted fields are left unchanged; `framework`
    may be set to null or "" to clear it.
    """
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    code: Optional[str] = Field(default=None, min_length=1)
    language: Optional[str] = Field(default=None, min_length=1)
    framework: Optional[str] = None
    tags: Optional[Union[List[str], str]] = None
    is_public: Optional[bool] = None

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("title", "description", "language", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("code")
    @classmethod
    def _code_not_blank(cls, v: Optional[str]) -> Optional[str]:
        return _require_code(v)

    @field_validator("framework")
    @classmethod
    def _framework(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_framework(v)

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: Union[List[str], str, None]) -> Optional[List[str]]:
        return _normalize_tags(v)

    def to_update(self) -> SnippetUpdate:
        """Carry over only the fields the client actually sent."""
        values = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None and name != "framework":
                continue
            values[name] = value
        return SnippetUpdate(**values)


class SnippetView(Snippet):
    """A snippet plus whether the current caller may edit it."""
    can_edit: bool = False


# ---------------------------------------------------------------------
# Auth Session Models
# ---------------------------------------------------------------------

class SessionRequest(BaseModel):
    """Identity token to bridge into the session cookie."""
    id_token: str = Field(..., min_length=1)

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SessionResponse(BaseModel):
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------
# Explanation Models
# ---------------------------------------------------------------------

class ExplainRequest(BaseModel):
    """
    Code explanation request. `code` is checked by the route so that a
    missing value yields 400 rather than a validation error.
    """
    code: Optional[str] = None
    language: Optional[str] = None


class ExplainResponse(BaseModel):
    success: Literal[True] = True
    explanation: str

"""
Authentication Models

This module defines the identity model used throughout the service after
identity-token verification.
"""

from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class UserContext(BaseModel):
    """
    Authenticated user identity derived from a verified identity token.

    This object is injected into every write route and is compared against a
    snippet's stored owner before update and delete.
    """

    uid: str = Field(
        ...,
        min_length=1,
        description="Stable user identifier (the token's `sub` claim).",
    )

    display_name: Optional[str] = Field(
        default=None,
        description="Human-readable name, if the provider supplies one.",
    )

    email: Optional[str] = Field(
        default=None,
        description="Email address, if the provider supplies one.",
    )

    model_config = ConfigDict(
        frozen=True,                # Makes UserContext immutable after creation
        arbitrary_types_allowed=False,
        extra="forbid",             # Prevents claim injection via unexpected fields
    )

    @property
    def author_name(self) -> str:
        """Name recorded as a snippet's author at write time."""
        return self.display_name or self.email or "Anonymous User"

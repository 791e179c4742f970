"""
Filter/Sort Composer

Translates user-selected criteria into:

1. a `QueryDescriptor` executed by the repository against the store, and
2. an in-memory ordering of an already delivered result set.

Nothing here performs I/O.

Descriptor rules
----------------
- language and framework contribute one equality condition each
- tag contributes one array-membership condition ("tags contains value")
- conditions are ANDed; an absent criterion contributes nothing
- default order is createdAt descending
- results are capped at LIST_LIMIT; the cap is not caller-configurable
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict
from pyuca import Collator

from .models import Snippet


LIST_LIMIT = 50

ORDERABLE_FIELDS = ("createdAt", "updatedAt", "title")

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------
# Query Descriptor
# ---------------------------------------------------------------------

class FilterOp(str, Enum):
    EQUALS = "=="
    ARRAY_CONTAINS = "array-contains"


@dataclass(frozen=True)
class Condition:
    field: str
    op: FilterOp
    value: str


@dataclass(frozen=True)
class OrderBy:
    field: str = "createdAt"
    descending: bool = True

    def __post_init__(self) -> None:
        if self.field not in ORDERABLE_FIELDS:
            raise ValueError(
                f"Cannot order by '{self.field}'; expected one of {', '.join(ORDERABLE_FIELDS)}"
            )


@dataclass(frozen=True)
class QueryDescriptor:
    """A store-side query over the snippets collection."""

    conditions: Tuple[Condition, ...] = ()
    order_by: OrderBy = field(default_factory=OrderBy)
    limit: int = LIST_LIMIT


class SnippetFilter(BaseModel):
    """User-selected list filters. Empty strings count as absent."""

    language: Optional[str] = None
    framework: Optional[str] = None
    tag: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


def build_query(
    filters: Optional[SnippetFilter] = None,
    order_by: Optional[OrderBy] = None,
) -> QueryDescriptor:
    """
    Build the descriptor for a filtered snippet list.

    Parameters
    ----------
    filters : Optional[SnippetFilter]
        Selected language, framework and tag. None means no filtering.

    order_by : Optional[OrderBy]
        Explicit ordering. Defaults to newest first.

    Returns
    -------
    QueryDescriptor
    """
    filters = filters or SnippetFilter()
    conditions: List[Condition] = []

    if filters.language:
        conditions.append(Condition("language", FilterOp.EQUALS, filters.language))
    if filters.framework:
        conditions.append(Condition("framework", FilterOp.EQUALS, filters.framework))
    if filters.tag:
        conditions.append(Condition("tags", FilterOp.ARRAY_CONTAINS, filters.tag))

    return QueryDescriptor(
        conditions=tuple(conditions),
        order_by=order_by or OrderBy(),
        limit=LIST_LIMIT,
    )


# ---------------------------------------------------------------------
# Client-side Sorting
# ---------------------------------------------------------------------

class SortKey(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    TITLE_AZ = "titleAZ"
    TITLE_ZA = "titleZA"


def _created_key(snippet: Snippet) -> datetime:
    return snippet.created_at or _EARLIEST


@lru_cache(maxsize=1)
def _collator() -> Collator:
    return Collator()


def _title_key(snippet: Snippet) -> Tuple[int, ...]:
    # Control characters carry no collation weight
    title = "".join(
        ch for ch in (snippet.title or "").casefold()
        if unicodedata.category(ch) != "Cc"
    )
    return _collator().sort_key(title)


def sort_snippets(snippets: Iterable[Snippet], sort_key: Optional[str]) -> List[Snippet]:
    """
    Re-sort a delivered result set in memory.

    The sort is stable, so equal keys keep their delivery order. An unknown
    or missing key returns the snippets in their original order.
    """
    items = list(snippets)

    try:
        key = SortKey(sort_key)
    except ValueError:
        return items

    if key is SortKey.NEWEST:
        return sorted(items, key=_created_key, reverse=True)
    if key is SortKey.OLDEST:
        return sorted(items, key=_created_key)
    if key is SortKey.TITLE_AZ:
        return sorted(items, key=_title_key)
    return sorted(items, key=_title_key, reverse=True)

"""
Snippet Repository

Sole mediator between the application and persisted snippet state. Wraps the
SQLAlchemy store with domain operations:

- live and one-shot listing driven by a `QueryDescriptor`
- get / create / update / delete by id
- facet scans (distinct languages, frameworks, tags; language counts)

Every store failure is logged and re-raised as `TransientStoreError`.
Update and delete check the caller against the stored owner before writing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import Select

from ..core.errors import (
    NotFoundError,
    TransientStoreError,
    UnauthenticatedError,
    UnauthorizedError,
)
from ..db.models import SnippetRecord, SnippetTagRecord
from ..realtime.live_query import ErrorCallback, LiveQuery, LiveQueryHub, SnapshotCallback
from .models import LanguageCount, Snippet, SnippetDraft, SnippetUpdate
from .query import Condition, FilterOp, QueryDescriptor

logger = logging.getLogger("snippets.repository")


_EQUALITY_COLUMNS = {
    "language": SnippetRecord.language,
    "framework": SnippetRecord.framework,
}

_ORDER_COLUMNS = {
    "createdAt": SnippetRecord.created_at,
    "updatedAt": SnippetRecord.updated_at,
    "title": SnippetRecord.title,
}


def _utcnow() -> datetime:
    """Current server time as naive UTC, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _tag_rows(tags: List[str]) -> List[SnippetTagRecord]:
    return [SnippetTagRecord(position=i, tag=tag) for i, tag in enumerate(tags)]


def _apply_condition(stmt: Select, condition: Condition) -> Select:
    if condition.op is FilterOp.ARRAY_CONTAINS and condition.field == "tags":
        return stmt.where(SnippetRecord.tags.any(SnippetTagRecord.tag == condition.value))

    if condition.op is FilterOp.EQUALS and condition.field in _EQUALITY_COLUMNS:
        return stmt.where(_EQUALITY_COLUMNS[condition.field] == condition.value)

    raise ValueError(f"Unsupported condition: {condition.field} {condition.op.value}")


def build_statement(descriptor: QueryDescriptor) -> Select:
    """Translate a descriptor into a SELECT over snippet rows."""
    stmt = select(SnippetRecord)

    for condition in descriptor.conditions:
        stmt = _apply_condition(stmt, condition)

    column = _ORDER_COLUMNS[descriptor.order_by.field]
    if descriptor.order_by.descending:
        order = column.desc().nulls_last()
    else:
        order = column.asc().nulls_first()

    return stmt.order_by(order, SnippetRecord.id).limit(descriptor.limit)


class SnippetRepository:
    """
    Domain operations on the snippets collection.

    Each call opens its own session from `session_factory`. Successful writes
    notify `hub` so that live queries re-run.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hub: LiveQueryHub,
    ) -> None:
        self._session_factory = session_factory
        self._hub = hub

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(
        self,
        descriptor: QueryDescriptor,
        on_update: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> LiveQuery:
        """
        Start a live subscription for `descriptor`.

        `on_update` receives the full ordered result set on subscription and
        after every change to it. Returns the handle used to cancel delivery.
        """
        return self._hub.subscribe(descriptor, self.fetch, on_update, on_error)

    async def fetch(self, descriptor: QueryDescriptor) -> List[Snippet]:
        """Execute `descriptor` once and return the matching snippets."""
        stmt = build_statement(descriptor)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [Snippet.from_record(row) for row in result.scalars().all()]
        except SQLAlchemyError as exc:
            raise self._store_failure("list snippets", exc) from exc

    async def get(self, snippet_id: str) -> Snippet:
        """
        Fetch one snippet by id.

        Raises
        ------
        NotFoundError
            If no snippet has this id.
        """
        try:
            async with self._session_factory() as session:
                record = await session.get(SnippetRecord, snippet_id)
                if record is None:
                    raise NotFoundError(details=f"No snippet with id '{snippet_id}'.")
                return Snippet.from_record(record)
        except SQLAlchemyError as exc:
            raise self._store_failure("get snippet", exc) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, draft: SnippetDraft) -> str:
        """
        Persist a new snippet and return its store-assigned id.

        Timestamps are stamped with the current server time and the rating
        counters start at zero.
        """
        now = _utcnow()
        record = SnippetRecord(
            title=draft.title,
            description=draft.description,
            code=draft.code,
            language=draft.language,
            framework=draft.framework,
            is_public=draft.is_public,
            author=draft.author,
            user_id=draft.user_id,
            created_at=now,
            updated_at=now,
            rating=0,
            num_ratings=0,
        )
        record.tags = _tag_rows(draft.tags)

        try:
            async with self._session_factory() as session:
                session.add(record)
                await session.commit()
                snippet_id = record.id
        except SQLAlchemyError as exc:
            raise self._store_failure("create snippet", exc) from exc

        logger.info("Snippet %s created by %s", snippet_id, draft.user_id)
        self._hub.notify()
        return snippet_id

    async def update(
        self,
        snippet_id: str,
        changes: SnippetUpdate,
        *,
        actor_id: Optional[str],
    ) -> Snippet:
        """
        Merge the explicitly set fields of `changes` into a snippet.

        `updated_at` is re-stamped and always moves forward; `created_at` is
        left untouched.

        Raises
        ------
        UnauthenticatedError
            If `actor_id` is empty.
        NotFoundError
            If the snippet does not exist. Updates never create snippets.
        UnauthorizedError
            If `actor_id` does not own the snippet.
        """
        self._require_actor(actor_id)
        fields = changes.model_dump(exclude_unset=True)

        try:
            async with self._session_factory() as session:
                record = await session.get(SnippetRecord, snippet_id)
                if record is None:
                    raise NotFoundError(details=f"No snippet with id '{snippet_id}'.")
                self._check_owner(record, actor_id)

                tags = fields.pop("tags", None)
                for name, value in fields.items():
                    setattr(record, name, value)
                if tags is not None:
                    record.tags = _tag_rows(tags)

                now = _utcnow()
                if record.updated_at is not None and now <= record.updated_at:
                    now = record.updated_at + timedelta(microseconds=1)
                record.updated_at = now

                await session.commit()
                snippet = Snippet.from_record(record)
        except SQLAlchemyError as exc:
            raise self._store_failure("update snippet", exc) from exc

        logger.info("Snippet %s updated (%s)", snippet_id, ", ".join(sorted(changes.model_fields_set)))
        self._hub.notify()
        return snippet

    async def delete(self, snippet_id: str, *, actor_id: Optional[str]) -> None:
        """
        Remove a snippet and its tags. Deleting a missing id is a no-op.

        Raises
        ------
        UnauthenticatedError
            If `actor_id` is empty.
        UnauthorizedError
            If the snippet exists and `actor_id` does not own it.
        """
        self._require_actor(actor_id)

        try:
            async with self._session_factory() as session:
                record = await session.get(SnippetRecord, snippet_id)
                if record is None:
                    logger.debug("Delete of missing snippet %s ignored", snippet_id)
                    return
                self._check_owner(record, actor_id)

                await session.delete(record)
                await session.commit()
        except SQLAlchemyError as exc:
            raise self._store_failure("delete snippet", exc) from exc

        logger.info("Snippet %s deleted by %s", snippet_id, actor_id)
        self._hub.notify()

    # ------------------------------------------------------------------
    # Facets (full scans, uncached)
    # ------------------------------------------------------------------

    async def distinct_languages(self) -> List[str]:
        """Distinct languages, ascending by code point."""
        return await self._distinct_column(SnippetRecord.language, "list languages")

    async def distinct_frameworks(self) -> List[str]:
        """Distinct non-empty frameworks, ascending by code point."""
        return await self._distinct_column(SnippetRecord.framework, "list frameworks")

    async def distinct_tags(self) -> List[str]:
        """Distinct tags across all snippets, ascending by code point."""
        return await self._distinct_column(SnippetTagRecord.tag, "list tags")

    async def language_counts(self) -> List[LanguageCount]:
        """Snippet count per language, ordered by name ignoring case."""
        counts: Dict[str, int] = {}
        for language in await self._scan(SnippetRecord.language, "count languages"):
            if language:
                counts[language] = counts.get(language, 0) + 1

        return [
            LanguageCount(name=name, count=count)
            for name, count in sorted(counts.items(), key=lambda item: (item[0].casefold(), item[0]))
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _scan(self, column, action: str) -> List[Optional[str]]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(column))
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise self._store_failure(action, exc) from exc

    async def _distinct_column(self, column, action: str) -> List[str]:
        values = {value for value in await self._scan(column, action) if value}
        return sorted(values)

    @staticmethod
    def _require_actor(actor_id: Optional[str]) -> None:
        if not actor_id:
            raise UnauthenticatedError()

    @staticmethod
    def _check_owner(record: SnippetRecord, actor_id: Optional[str]) -> None:
        if record.user_id != actor_id:
            raise UnauthorizedError(details=f"Snippet '{record.id}' belongs to another user.")

    @staticmethod
    def _store_failure(action: str, exc: SQLAlchemyError) -> TransientStoreError:
        logger.exception("Store failure while trying to %s", action, exc_info=exc)
        return TransientStoreError(details=f"Could not {action}.")

"""
Snippet Repository Tests

Runs the repository against an in-memory SQLite store:
- create / get / update / delete semantics
- ownership checks on writes
- filtered listing, ordering and the result cap
- facet scans
- store failures surfacing as TransientStoreError
"""

from datetime import datetime, timedelta

import pytest

from snippet_hub.core.errors import (
    NotFoundError,
    TransientStoreError,
    UnauthenticatedError,
    UnauthorizedError,
)
from snippet_hub.db.models import SnippetRecord
from snippet_hub.realtime.live_query import LiveQueryHub
from snippet_hub.snippets.models import SnippetUpdate
from snippet_hub.snippets.query import LIST_LIMIT, SnippetFilter, build_query
from snippet_hub.snippets.repository import SnippetRepository

from conftest import BrokenSessionFactory, make_draft


class TestCreateAndGet:

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, repo):
        snippet_id = await repo.create(make_draft(tags=["web", "utility", "web"]))
        snippet = await repo.get(snippet_id)

        assert snippet.id == snippet_id
        assert snippet.title == "Hello world"
        assert snippet.tags == ["web", "utility", "web"]
        assert snippet.created_at is not None
        assert snippet.created_at == snippet.updated_at
        assert snippet.created_at.tzinfo is not None
        assert snippet.rating == 0
        assert snippet.num_ratings == 0

    @pytest.mark.asyncio
    async def test_create_returns_distinct_ids(self, repo):
        first = await repo.create(make_draft())
        second = await repo.create(make_draft())
        assert first != second

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, repo):
        with pytest.raises(NotFoundError) as excinfo:
            await repo.get("does-not-exist")
        assert excinfo.value.message == "Snippet not found"


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_changes_only_given_fields(self, repo):
        snippet_id = await repo.create(make_draft(
            description="original", framework="FastAPI", tags=["web", "api"], is_public=False,
        ))
        before = await repo.get(snippet_id)

        await repo.update(snippet_id, SnippetUpdate(title="Renamed"), actor_id="alice")
        after = await repo.get(snippet_id)

        assert after.title == "Renamed"
        assert after.updated_at > before.updated_at
        assert after.created_at == before.created_at
        assert after.model_dump(exclude={"title", "updated_at"}) == before.model_dump(
            exclude={"title", "updated_at"}
        )

    @pytest.mark.asyncio
    async def test_update_can_clear_framework(self, repo):
        snippet_id = await repo.create(make_draft(framework="FastAPI"))
        updated = await repo.update(snippet_id, SnippetUpdate(framework=None), actor_id="alice")
        assert updated.framework is None

    @pytest.mark.asyncio
    async def test_update_replaces_tags(self, repo):
        snippet_id = await repo.create(make_draft(tags=["a", "b"]))
        await repo.update(snippet_id, SnippetUpdate(tags=["b", "c"]), actor_id="alice")

        assert (await repo.get(snippet_id)).tags == ["b", "c"]
        assert await repo.fetch(build_query(SnippetFilter(tag="a"))) == []
        assert [s.id for s in await repo.fetch(build_query(SnippetFilter(tag="c")))] == [snippet_id]

    @pytest.mark.asyncio
    async def test_update_missing_raises_not_found(self, repo):
        with pytest.raises(NotFoundError):
            await repo.update("missing", SnippetUpdate(title="x"), actor_id="alice")
        assert await repo.fetch(build_query()) == []

    @pytest.mark.asyncio
    async def test_update_by_other_user_rejected(self, repo):
        snippet_id = await repo.create(make_draft())
        with pytest.raises(UnauthorizedError):
            await repo.update(snippet_id, SnippetUpdate(title="Hijacked"), actor_id="mallory")
        assert (await repo.get(snippet_id)).title == "Hello world"

    @pytest.mark.asyncio
    async def test_update_without_actor_rejected(self, repo):
        snippet_id = await repo.create(make_draft())
        with pytest.raises(UnauthenticatedError):
            await repo.update(snippet_id, SnippetUpdate(title="x"), actor_id=None)


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_removes_snippet(self, repo):
        snippet_id = await repo.create(make_draft(tags=["web"]))
        await repo.delete(snippet_id, actor_id="alice")

        with pytest.raises(NotFoundError):
            await repo.get(snippet_id)
        assert await repo.distinct_tags() == []

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, repo):
        snippet_id = await repo.create(make_draft())
        await repo.delete(snippet_id, actor_id="alice")
        await repo.delete(snippet_id, actor_id="alice")

    @pytest.mark.asyncio
    async def test_delete_by_other_user_rejected(self, repo):
        snippet_id = await repo.create(make_draft())
        with pytest.raises(UnauthorizedError):
            await repo.delete(snippet_id, actor_id="mallory")
        assert (await repo.get(snippet_id)).id == snippet_id

    @pytest.mark.asyncio
    async def test_delete_without_actor_rejected(self, repo):
        with pytest.raises(UnauthenticatedError):
            await repo.delete("anything", actor_id="")


class TestListing:

    @pytest.mark.asyncio
    async def test_language_filter_is_exact(self, repo):
        py = await repo.create(make_draft(language="Python"))
        await repo.create(make_draft(language="python"))
        await repo.create(make_draft(language="Go"))

        result = await repo.fetch(build_query(SnippetFilter(language="Python")))
        assert [s.id for s in result] == [py]

    @pytest.mark.asyncio
    async def test_tag_filter_matches_membership(self, repo):
        tagged = await repo.create(make_draft(tags=["utility", "timing"]))
        await repo.create(make_draft(tags=["util"]))
        await repo.create(make_draft())

        result = await repo.fetch(build_query(SnippetFilter(tag="utility")))
        assert [s.id for s in result] == [tagged]

    @pytest.mark.asyncio
    async def test_filters_are_combined(self, repo):
        match = await repo.create(make_draft(language="Python", framework="FastAPI", tags=["web"]))
        await repo.create(make_draft(language="Python", framework="Django", tags=["web"]))
        await repo.create(make_draft(language="Python", framework="FastAPI", tags=["cli"]))

        result = await repo.fetch(
            build_query(SnippetFilter(language="Python", framework="FastAPI", tag="web"))
        )
        assert [s.id for s in result] == [match]

    @pytest.mark.asyncio
    async def test_newest_first_capped_at_limit(self, repo, session_factory):
        base = datetime(2024, 1, 1)
        async with session_factory() as session:
            for i in range(LIST_LIMIT + 10):
                created = base + timedelta(minutes=i)
                session.add(SnippetRecord(
                    title=f"S{i:02d}",
                    code="x",
                    language="Python",
                    author="Alice",
                    user_id="alice",
                    created_at=created,
                    updated_at=created,
                ))
            await session.commit()

        result = await repo.fetch(build_query())

        assert len(result) == LIST_LIMIT
        assert [s.title for s in result] == [f"S{i:02d}" for i in range(59, 9, -1)]

    @pytest.mark.asyncio
    async def test_missing_created_at_sorts_last(self, repo, session_factory):
        async with session_factory() as session:
            session.add(SnippetRecord(
                title="Legacy", code="x", language="Python", author="a", user_id="u",
            ))
            await session.commit()
        await repo.create(make_draft(title="Fresh"))

        result = await repo.fetch(build_query())
        assert [s.title for s in result] == ["Fresh", "Legacy"]
        assert result[1].created_at is None


    @pytest.mark.asyncio
    async def test_tag_scenario_end_to_end(self, repo):
        snippet_id = await repo.create(make_draft(tags=["hooks", "state"]))

        hooks = await repo.fetch(build_query(SnippetFilter(tag="hooks")))
        missing = await repo.fetch(build_query(SnippetFilter(tag="missing")))

        assert snippet_id in [s.id for s in hooks]
        assert snippet_id not in [s.id for s in missing]


class TestFacets:

    @pytest.mark.asyncio
    async def test_distinct_languages_sorted_by_code_point(self, repo):
        for language in ["Rust", "Go", "go", "Rust"]:
            await repo.create(make_draft(language=language))
        assert await repo.distinct_languages() == ["Go", "Rust", "go"]

    @pytest.mark.asyncio
    async def test_distinct_frameworks_skip_empty(self, repo):
        await repo.create(make_draft(framework="React"))
        await repo.create(make_draft(framework=None))
        await repo.create(make_draft(framework="Django"))
        assert await repo.distinct_frameworks() == ["Django", "React"]

    @pytest.mark.asyncio
    async def test_distinct_tags_across_snippets(self, repo):
        await repo.create(make_draft(tags=["web", "api"]))
        await repo.create(make_draft(tags=["api", "cli"]))
        assert await repo.distinct_tags() == ["api", "cli", "web"]

    @pytest.mark.asyncio
    async def test_empty_store_has_no_facets(self, repo):
        assert await repo.distinct_languages() == []
        assert await repo.distinct_frameworks() == []
        assert await repo.distinct_tags() == []
        assert await repo.language_counts() == []

    @pytest.mark.asyncio
    async def test_language_counts(self, repo):
        for language in ["python", "Go", "python", "Rust"]:
            await repo.create(make_draft(language=language))

        counts = await repo.language_counts()
        assert [(c.name, c.count) for c in counts] == [("Go", 1), ("python", 2), ("Rust", 1)]


class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_read_failure_is_transient(self):
        repo = SnippetRepository(BrokenSessionFactory(), LiveQueryHub())
        with pytest.raises(TransientStoreError) as excinfo:
            await repo.get("any")
        assert excinfo.value.message == "Something went wrong. Please try again."

    @pytest.mark.asyncio
    async def test_write_failure_is_transient(self):
        repo = SnippetRepository(BrokenSessionFactory(), LiveQueryHub())
        with pytest.raises(TransientStoreError):
            await repo.create(make_draft())

    @pytest.mark.asyncio
    async def test_facet_failure_is_transient(self):
        repo = SnippetRepository(BrokenSessionFactory(), LiveQueryHub())
        with pytest.raises(TransientStoreError):
            await repo.distinct_tags()

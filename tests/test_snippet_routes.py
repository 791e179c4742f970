"""
Snippet and Facet Endpoint Tests

Exercises the HTTP surface through an ASGI transport with the repository
bound to an in-memory store.
"""

import pytest

from conftest import auth_headers, make_draft


async def create_via_api(client, headers=None, **overrides):
    body = {
        "title": "Debounce",
        "description": "Delay calls",
        "code": "function debounce() {}",
        "language": "JavaScript",
        "tags": ["utility"],
    }
    body.update(overrides)
    resp = await client.post("/snippets", json=body, headers=headers or auth_headers())
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_requires_sign_in(self, client):
        resp = await client.post("/snippets", json={"title": "t", "code": "c", "language": "Go"})
        assert resp.status_code == 401
        assert resp.json()["kind"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_create_and_read_back(self, client):
        resp = await client.post(
            "/snippets",
            json={
                "title": "  Read a file  ",
                "code": "open('f')",
                "language": "Python",
                "framework": "",
                "tags": "io, files,, io ",
                "isPublic": False,
            },
            headers=auth_headers(uid="alice", display_name="Alice"),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "created"

        resp = await client.get(f"/snippets/{body['id']}")
        assert resp.status_code == 200
        snippet = resp.json()
        assert snippet["title"] == "Read a file"
        assert snippet["framework"] is None
        assert snippet["tags"] == ["io", "files", "io"]
        assert snippet["isPublic"] is False
        assert snippet["author"] == "Alice"
        assert snippet["userId"] == "alice"
        assert snippet["createdAt"] == snippet["updatedAt"]
        assert snippet["canEdit"] is False

    @pytest.mark.asyncio
    async def test_author_falls_back_to_email(self, client):
        snippet_id = await create_via_api(
            client, headers=auth_headers(uid="bob", display_name=None, email="bob@example.com")
        )
        resp = await client.get(f"/snippets/{snippet_id}")
        assert resp.json()["author"] == "bob@example.com"

    @pytest.mark.asyncio
    async def test_author_anonymous_when_no_profile(self, client):
        snippet_id = await create_via_api(client, headers=auth_headers(uid="carol", display_name=None))
        resp = await client.get(f"/snippets/{snippet_id}")
        assert resp.json()["author"] == "Anonymous User"

    @pytest.mark.asyncio
    async def test_blank_code_rejected(self, client):
        resp = await client.post(
            "/snippets",
            json={"title": "t", "code": "   ", "language": "Go"},
            headers=auth_headers(),
        )
        assert resp.status_code == 422


class TestReadAndList:

    @pytest.mark.asyncio
    async def test_get_missing_is_404(self, client):
        resp = await client.get("/snippets/nope")
        assert resp.status_code == 404
        assert resp.json()["error"] == "Snippet not found"
        assert resp.json()["kind"] == "not_found"

    @pytest.mark.asyncio
    async def test_owner_can_edit(self, client):
        snippet_id = await create_via_api(client)
        resp = await client.get(f"/snippets/{snippet_id}", headers=auth_headers(uid="alice"))
        assert resp.json()["canEdit"] is True

        resp = await client.get(f"/snippets/{snippet_id}", headers=auth_headers(uid="bob"))
        assert resp.json()["canEdit"] is False

    @pytest.mark.asyncio
    async def test_invalid_token_reads_as_anonymous(self, client):
        snippet_id = await create_via_api(client)
        resp = await client.get(
            f"/snippets/{snippet_id}", headers={"Authorization": "Bearer not-a-token"}
        )
        assert resp.status_code == 200
        assert resp.json()["canEdit"] is False

    @pytest.mark.asyncio
    async def test_list_filters_and_sort(self, client, repo):
        await repo.create(make_draft(title="beta", language="Python", tags=["web"]))
        await repo.create(make_draft(title="Alpha", language="Python"))
        await repo.create(make_draft(title="gamma", language="Go", tags=["web"]))

        resp = await client.get("/snippets", params={"language": "Python", "sort": "titleAZ"})
        assert resp.status_code == 200
        assert [s["title"] for s in resp.json()] == ["Alpha", "beta"]

        resp = await client.get("/snippets", params={"tag": "web", "sort": "titleZA"})
        assert [s["title"] for s in resp.json()] == ["gamma", "beta"]

    @pytest.mark.asyncio
    async def test_title_sort_with_nul_character(self, client):
        await create_via_api(client, title="a\u0000b")
        await create_via_api(client, title="c")

        resp = await client.get("/snippets", params={"sort": "titleAZ"})
        assert resp.status_code == 200
        assert [s["title"] for s in resp.json()] == ["a\u0000b", "c"]

    @pytest.mark.asyncio
    async def test_list_defaults_to_newest_first(self, client, repo):
        await repo.create(make_draft(title="first"))
        await repo.create(make_draft(title="second"))

        resp = await client.get("/snippets")
        assert [s["title"] for s in resp.json()] == ["second", "first"]


class TestUpdateAndDelete:

    @pytest.mark.asyncio
    async def test_owner_updates(self, client):
        snippet_id = await create_via_api(client)
        resp = await client.patch(
            f"/snippets/{snippet_id}",
            json={"title": "Throttle", "tags": "timing,utility"},
            headers=auth_headers(uid="alice"),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["title"] == "Throttle"
        assert body["description"] == "Delay calls"
        assert body["tags"] == ["timing", "utility"]
        assert body["updatedAt"] > body["createdAt"]

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, client):
        snippet_id = await create_via_api(client)
        resp = await client.patch(
            f"/snippets/{snippet_id}", json={"title": "Mine now"}, headers=auth_headers(uid="bob")
        )
        assert resp.status_code == 403
        assert resp.json()["kind"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_update_missing_is_404(self, client):
        resp = await client.patch("/snippets/nope", json={"title": "x"}, headers=auth_headers())
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_update_rejects_blank_code(self, client):
        snippet_id = await create_via_api(client)
        resp = await client.patch(
            f"/snippets/{snippet_id}", json={"code": "   "}, headers=auth_headers()
        )
        assert resp.status_code == 422
        assert (await client.get(f"/snippets/{snippet_id}")).json()["code"] == "function debounce() {}"

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_fields(self, client):
        snippet_id = await create_via_api(client)
        resp = await client.patch(
            f"/snippets/{snippet_id}", json={"userId": "bob"}, headers=auth_headers()
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_flow(self, client):
        snippet_id = await create_via_api(client)

        resp = await client.delete(f"/snippets/{snippet_id}", headers=auth_headers(uid="bob"))
        assert resp.status_code == 403

        resp = await client.delete(f"/snippets/{snippet_id}", headers=auth_headers(uid="alice"))
        assert resp.status_code == 200
        assert resp.json() == {"status": "deleted", "id": snippet_id}

        assert (await client.get(f"/snippets/{snippet_id}")).status_code == 404

        resp = await client.delete(f"/snippets/{snippet_id}", headers=auth_headers(uid="alice"))
        assert resp.status_code == 200

    @pytest.mark.asyncio
    async def test_delete_requires_sign_in(self, client):
        resp = await client.delete("/snippets/anything")
        assert resp.status_code == 401


class TestFacets:

    @pytest.mark.asyncio
    async def test_facet_endpoints(self, client, repo):
        await repo.create(make_draft(language="Rust", framework="Axum", tags=["web", "async"]))
        await repo.create(make_draft(language="Go", tags=["cli"]))
        await repo.create(make_draft(language="go"))

        assert (await client.get("/facets/languages")).json() == ["Go", "Rust", "go"]
        assert (await client.get("/facets/frameworks")).json() == ["Axum"]
        assert (await client.get("/facets/tags")).json() == ["async", "cli", "web"]
        assert (await client.get("/facets/language-counts")).json() == [
            {"name": "Go", "count": 1},
            {"name": "go", "count": 1},
            {"name": "Rust", "count": 1},
        ]

    @pytest.mark.asyncio
    async def test_suggested_languages(self, client):
        resp = await client.get("/facets/suggested-languages")
        assert resp.status_code == 200
        assert resp.json()[:3] == ["JavaScript", "TypeScript", "Python"]
        assert len(resp.json()) == 16

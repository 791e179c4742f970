"""
Snippet Routes

CRUD endpoints over the snippets collection plus a Server-Sent Events stream
that mirrors a live query.

Listing goes through the Filter/Sort Composer: query parameters become a
`QueryDescriptor` executed by the repository, and the optional `sort`
parameter reorders the delivered result set in memory.

Security Model
--------------
- Reads are public.
- Create requires a signed-in user.
- Update and delete require the signed-in user to own the snippet; the
  repository enforces this.
"""

import asyncio
import json
from typing import Annotated, Dict, List, Optional, Union

from fastapi import APIRouter, Depends, Query, status
from sse_starlette.sse import EventSourceResponse

from .models import (
    OperationResult,
    SnippetCreateRequest,
    SnippetUpdateRequest,
    SnippetView,
)
from .dependencies import get_snippet_repository
from ..auth.models import UserContext
from ..auth.security import get_current_user, get_optional_user
from ..core.errors import SnippetHubError
from ..snippets.models import Snippet
from ..snippets.query import SnippetFilter, build_query, sort_snippets
from ..snippets.repository import SnippetRepository

router = APIRouter(prefix="/snippets", tags=["snippets"])


# ---------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------

def _filters(
    language: Annotated[Optional[str], Query()] = None,
    framework: Annotated[Optional[str], Query()] = None,
    tag: Annotated[Optional[str], Query()] = None,
) -> SnippetFilter:
    return SnippetFilter(language=language, framework=framework, tag=tag)


def _view(snippet: Snippet, user: Optional[UserContext]) -> SnippetView:
    return SnippetView(
        **snippet.model_dump(),
        can_edit=user is not None and user.uid == snippet.user_id,
    )


def _snapshot_event(snippets: List[Snippet], sort: Optional[str]) -> Dict[str, str]:
    ordered = sort_snippets(snippets, sort)
    return {
        "event": "snapshot",
        "data": json.dumps([s.model_dump(mode="json", by_alias=True) for s in ordered]),
    }


def _offer_latest(queue: asyncio.Queue, item) -> None:
    """Replace whatever the consumer has not picked up yet with `item`."""
    if queue.full():
        queue.get_nowait()
    queue.put_nowait(item)


def _error_event(exc: Exception) -> Dict[str, str]:
    if isinstance(exc, SnippetHubError):
        payload = {"error": exc.message, "kind": exc.kind}
    else:
        payload = {"error": "Internal server error", "kind": "internal_server_error"}
    return {"event": "error", "data": json.dumps(payload)}


# ---------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------

@router.get(
    "",
    response_model=List[Snippet],
    summary="List snippets matching the selected filters",
)
async def list_snippets(
    filters: Annotated[SnippetFilter, Depends(_filters)],
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
    sort: Optional[str] = None,
) -> List[Snippet]:
    """
    Return at most 50 snippets, newest first, optionally re-sorted by
    `sort` (newest, oldest, titleAZ, titleZA).
    """
    snippets = await repo.fetch(build_query(filters))
    return sort_snippets(snippets, sort)


@router.get(
    "/live",
    summary="Stream the filtered snippet list as it changes",
)
async def stream_snippets(
    filters: Annotated[SnippetFilter, Depends(_filters)],
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
    sort: Optional[str] = None,
) -> EventSourceResponse:
    """
    Server-Sent Events stream. Emits a `snapshot` event with the full result
    set on connect and after every change, and a final `error` event if the
    live query fails. The subscription ends when the client disconnects.
    """
    descriptor = build_query(filters)

    async def event_generator():
        deliveries: asyncio.Queue[Union[List[Snippet], Exception]] = asyncio.Queue(maxsize=1)

        def deliver(item: Union[List[Snippet], Exception]) -> None:
            _offer_latest(deliveries, item)

        async with repo.list(descriptor, deliver, deliver):
            while True:
                item = await deliveries.get()
                if isinstance(item, Exception):
                    yield _error_event(item)
                    break
                yield _snapshot_event(item, sort)

    return EventSourceResponse(event_generator(), ping=15)


# ---------------------------------------------------------------------
# Single snippet
# ---------------------------------------------------------------------

@router.get(
    "/{snippet_id}",
    response_model=SnippetView,
    summary="Fetch one snippet",
)
async def get_snippet(
    snippet_id: str,
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
    user: Annotated[Optional[UserContext], Depends(get_optional_user)],
) -> SnippetView:
    snippet = await repo.get(snippet_id)
    return _view(snippet, user)


@router.post(
    "",
    response_model=OperationResult,
    status_code=status.HTTP_201_CREATED,
    summary="Create a snippet",
)
async def create_snippet(
    req: SnippetCreateRequest,
    user: Annotated[UserContext, Depends(get_current_user)],
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
) -> OperationResult:
    snippet_id = await repo.create(req.to_draft(user))
    return OperationResult(status="created", id=snippet_id)


@router.patch(
    "/{snippet_id}",
    response_model=SnippetView,
    summary="Update fields of an owned snippet",
)
async def update_snippet(
    snippet_id: str,
    req: SnippetUpdateRequest,
    user: Annotated[UserContext, Depends(get_current_user)],
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
) -> SnippetView:
    snippet = await repo.update(snippet_id, req.to_update(), actor_id=user.uid)
    return _view(snippet, user)


@router.delete(
    "/{snippet_id}",
    response_model=OperationResult,
    summary="Delete an owned snippet",
)
async def delete_snippet(
    snippet_id: str,
    user: Annotated[UserContext, Depends(get_current_user)],
    repo: Annotated[SnippetRepository, Depends(get_snippet_repository)],
) -> OperationResult:
    await repo.delete(snippet_id, actor_id=user.uid)
    return OperationResult(status="deleted", id=snippet_id)

"""
Live Queries

Standing queries over the snippets store that deliver the full current result
set every time it changes, until cancelled.

Model
-----
- Every `LiveQuery` owns one pump task. The pump waits for a dirty signal,
  clears it, re-runs its query and delivers the result if it differs from
  the previous delivery.
- Writers call `LiveQueryHub.notify()` after each successful commit, which
  marks every registered query dirty. Several notifications arriving while a
  fetch is in flight collapse into one further fetch.
- Deliveries of one subscription are strictly ordered; nothing is ordered
  across subscriptions.
- A failed fetch is reported to `on_error` and ends the subscription.

Subscriptions only observe writes made through repositories that share the
same hub, i.e. within one process.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..snippets.models import Snippet
from ..snippets.query import QueryDescriptor

logger = logging.getLogger("snippets.live")


SnapshotCallback = Callable[[List[Snippet]], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[Exception], Union[None, Awaitable[None]]]
Fetcher = Callable[[QueryDescriptor], Awaitable[List[Snippet]]]


async def _invoke(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class LiveQuery:
    """
    Cancellation handle of one live subscription.

    Use `cancel()` directly, or hold the handle in `async with` so that it is
    cancelled on every exit path.
    """

    def __init__(
        self,
        hub: "LiveQueryHub",
        descriptor: QueryDescriptor,
        fetch: Fetcher,
        on_update: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.descriptor = descriptor
        self._hub = hub
        self._fetch = fetch
        self._on_update = on_update
        self._on_error = on_error
        self._dirty = asyncio.Event()
        self._cancelled = False
        self._last: Optional[List[Snippet]] = None
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the pump. The initial snapshot is fetched immediately."""
        if self._task is not None:
            return
        self._dirty.set()
        self._task = asyncio.create_task(self._run(), name=f"live-query-{self.id}")

    def mark_dirty(self) -> None:
        if not self._cancelled:
            self._dirty.set()

    def cancel(self) -> None:
        """
        Stop delivery. No `on_update` call happens after this returns.

        Safe to call more than once, and from inside a callback.
        """
        if self._cancelled:
            return
        self._cancelled = True
        self._hub.unregister(self)
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        logger.debug("Live query %s cancelled", self.id)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def __aenter__(self) -> "LiveQuery":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.cancel()

    # ------------------------------------------------------------------
    # Pump
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while not self._cancelled:
            await self._dirty.wait()
            self._dirty.clear()
            if self._cancelled:
                break

            try:
                snapshot = await self._fetch(self.descriptor)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                await self._fail(exc)
                break

            if self._cancelled:
                break
            if snapshot == self._last:
                continue

            self._last = snapshot
            try:
                await _invoke(self._on_update, list(snapshot))
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                await self._fail(exc)
                break

    async def _fail(self, exc: Exception) -> None:
        self.cancel()
        if self._on_error is None:
            logger.error("Live query %s terminated: %s", self.id, exc, exc_info=exc)
            return
        await _invoke(self._on_error, exc)


class LiveQueryHub:
    """Registry of active live queries, notified after every committed write."""

    def __init__(self) -> None:
        self._queries: Dict[str, LiveQuery] = {}

    def subscribe(
        self,
        descriptor: QueryDescriptor,
        fetch: Fetcher,
        on_update: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> LiveQuery:
        """Register and start a live query. Must be called from a running event loop."""
        query = LiveQuery(self, descriptor, fetch, on_update, on_error)
        self._queries[query.id] = query
        query.start()
        logger.debug("Live query %s registered (%d active)", query.id, len(self._queries))
        return query

    def unregister(self, query: LiveQuery) -> None:
        self._queries.pop(query.id, None)

    def notify(self) -> None:
        """Mark every live query dirty so it re-runs against the store."""
        for query in list(self._queries.values()):
            query.mark_dirty()

    def close(self) -> None:
        """Cancel every live query, e.g. at application shutdown."""
        for query in list(self._queries.values()):
            query.cancel()

    def __len__(self) -> int:
        return len(self._queries)

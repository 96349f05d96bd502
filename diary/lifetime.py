"""Lifetime tokens binding in-flight backend calls to the view that made them."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ViewClosed(Exception):
    """The owning view was closed while a call was in flight."""


class Lifetime:
    """Tracks the calls a view has outstanding.

    ``run`` awaits a call on behalf of the view. Once ``close`` has been
    called, pending calls are cancelled and any result that still arrives
    is discarded by raising ``ViewClosed`` instead of returning it.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._closed = False
        self._pending: set[asyncio.Future] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of calls currently in flight."""
        return len(self._pending)

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* unless the view is, or becomes, closed."""
        if self._closed:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise ViewClosed(self.name)

        future = asyncio.ensure_future(awaitable)
        self._pending.add(future)
        try:
            result = await future
        except asyncio.CancelledError:
            if self._closed:
                raise ViewClosed(self.name) from None
            raise
        finally:
            self._pending.discard(future)

        if self._closed:
            logger.debug("Discarding late result for closed view %s", self.name)
            raise ViewClosed(self.name)
        return result

    def close(self) -> None:
        """Close the view and cancel whatever it still has in flight."""
        if self._closed:
            return
        self._closed = True
        for future in list(self._pending):
            future.cancel()
        if self._pending:
            logger.info("Cancelled %d pending call(s) of %s", len(self._pending), self.name)

"""Tests for diary.lifetime — discarding results for closed views."""

from __future__ import annotations

import asyncio

import pytest

from diary.lifetime import Lifetime, ViewClosed


async def _value(value, gate: asyncio.Event | None = None):
    if gate is not None:
        await gate.wait()
    return value


class TestLifetime:
    @pytest.mark.asyncio
    async def test_returns_result_while_open(self):
        lifetime = Lifetime("view")
        assert await lifetime.run(_value(42)) == 42
        assert lifetime.pending == 0

    @pytest.mark.asyncio
    async def test_refuses_after_close(self):
        lifetime = Lifetime("view")
        lifetime.close()

        with pytest.raises(ViewClosed):
            await lifetime.run(_value(1))

    @pytest.mark.asyncio
    async def test_close_cancels_pending_call(self):
        lifetime = Lifetime("view")
        gate = asyncio.Event()
        task = asyncio.create_task(lifetime.run(_value(1, gate)))
        await asyncio.sleep(0)
        assert lifetime.pending == 1

        lifetime.close()

        with pytest.raises(ViewClosed):
            await task
        assert lifetime.closed is True
        assert lifetime.pending == 0

    @pytest.mark.asyncio
    async def test_errors_propagate_while_open(self):
        async def _boom():
            raise RuntimeError("boom")

        lifetime = Lifetime("view")
        with pytest.raises(RuntimeError):
            await lifetime.run(_boom())

    @pytest.mark.asyncio
    async def test_outer_cancellation_is_not_swallowed(self):
        """Cancelling the caller is still a cancellation, not ViewClosed."""
        lifetime = Lifetime("view")
        gate = asyncio.Event()
        task = asyncio.create_task(lifetime.run(_value(1, gate)))
        await asyncio.sleep(0)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    def test_close_is_idempotent(self):
        lifetime = Lifetime("view")
        lifetime.close()
        lifetime.close()
        assert lifetime.closed is True

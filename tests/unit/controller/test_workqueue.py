"""
Tests unitaires pour WorkQueue.

Déduplication, exclusion entre workers, ajouts différés et arrêt.
"""

import asyncio

import pytest

from src.controller import ItemExponentialRateLimiter, WorkQueue, WorkQueueShutDownError


class TestDeduplication:
    """Un item n'est jamais en file deux fois."""

    @pytest.mark.asyncio
    async def test_duplicate_add_is_ignored(self) -> None:
        queue = WorkQueue()
        queue.add("a")
        queue.add("a")
        queue.add("b")

        assert len(queue) == 2
        assert await queue.get() == "a"
        assert await queue.get() == "b"

    @pytest.mark.asyncio
    async def test_readd_while_processing_is_deferred_to_done(self) -> None:
        queue = WorkQueue()
        queue.add("a")
        item = await queue.get()

        queue.add("a")

        assert queue.is_processing("a")
        assert len(queue) == 0

        queue.done(item)

        assert len(queue) == 1
        assert await queue.get() == "a"

    @pytest.mark.asyncio
    async def test_done_without_readd_does_not_requeue(self) -> None:
        queue = WorkQueue()
        queue.add("a")
        item = await queue.get()

        queue.done(item)

        assert len(queue) == 0
        assert not queue.is_processing("a")


class TestDelayedAdds:
    """add_after et add_rate_limited."""

    @pytest.mark.asyncio
    async def test_add_after_fires(self) -> None:
        queue = WorkQueue()

        queue.add_after("a", 0.01)

        assert queue.is_waiting("a")
        assert len(queue) == 0
        item = await asyncio.wait_for(queue.get(), timeout=1.0)
        assert item == "a"
        assert not queue.is_waiting("a")

    @pytest.mark.asyncio
    async def test_non_positive_delay_adds_immediately(self) -> None:
        queue = WorkQueue()

        queue.add_after("a", 0)

        assert len(queue) == 1

    @pytest.mark.asyncio
    async def test_earliest_deadline_wins(self) -> None:
        queue = WorkQueue()
        queue.add_after("a", 60)

        queue.add_after("a", 0.01)
        queue.add_after("a", 120)

        item = await asyncio.wait_for(queue.get(), timeout=1.0)
        assert item == "a"

    @pytest.mark.asyncio
    async def test_rate_limited_uses_backoff(self) -> None:
        queue = WorkQueue(ItemExponentialRateLimiter(base_delay=0.01, max_delay=1.0))

        queue.add_rate_limited("a")

        assert queue.num_requeues("a") == 1
        assert await asyncio.wait_for(queue.get(), timeout=1.0) == "a"

        queue.forget("a")
        assert queue.num_requeues("a") == 0


class TestShutDown:
    """Arrêt de la file."""

    @pytest.mark.asyncio
    async def test_get_raises_when_shut_down_and_empty(self) -> None:
        queue = WorkQueue()
        queue.shut_down()

        with pytest.raises(WorkQueueShutDownError):
            await queue.get()

    @pytest.mark.asyncio
    async def test_waiting_getter_is_woken(self) -> None:
        queue = WorkQueue()
        getter = asyncio.create_task(queue.get())
        await asyncio.sleep(0)

        queue.shut_down()

        with pytest.raises(WorkQueueShutDownError):
            await asyncio.wait_for(getter, timeout=1.0)

    @pytest.mark.asyncio
    async def test_adds_ignored_and_timers_cancelled(self) -> None:
        queue = WorkQueue()
        queue.add_after("a", 0.01)

        queue.shut_down()
        queue.add("b")
        await asyncio.sleep(0.02)

        assert queue.shutting_down
        assert len(queue) == 0
        assert not queue.is_waiting("a")

    @pytest.mark.asyncio
    async def test_queued_items_drain_before_shutdown_error(self) -> None:
        queue = WorkQueue()
        queue.add("a")
        queue.shut_down()

        assert await queue.get() == "a"
        with pytest.raises(WorkQueueShutDownError):
            await queue.get()


# ═══════════════════════════════════════════════════════════════════════════════
# CONSTRUCTION HORS BOUCLE
# ═══════════════════════════════════════════════════════════════════════════════


class TestLoopBinding:
    """La file peut être construite avant le démarrage de la boucle."""

    def test_queue_built_outside_loop_wakes_waiting_getter(self) -> None:
        queue = WorkQueue()

        async def consume() -> object:
            getter = asyncio.ensure_future(queue.get())
            await asyncio.sleep(0)
            queue.add("a")
            return await asyncio.wait_for(getter, timeout=1.0)

        assert asyncio.run(consume()) == "a"


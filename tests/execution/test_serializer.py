"""Tests for the execution serializer."""

from __future__ import annotations

import asyncio

import pytest

from ceedscope.execution.serializer import ExecutionSerializer


class TestExecutionSerializer:
    @pytest.mark.asyncio
    async def test_idle_state(self) -> None:
        serializer = ExecutionSerializer()
        assert serializer.holder is None
        assert not serializer.locked

    @pytest.mark.asyncio
    async def test_holder_set_while_held(self) -> None:
        serializer = ExecutionSerializer()

        async with serializer.hold("run:test/test_a.c"):
            assert serializer.holder == "run:test/test_a.c"
            assert serializer.locked

        assert serializer.holder is None
        assert not serializer.locked

    @pytest.mark.asyncio
    async def test_holders_never_overlap(self) -> None:
        serializer = ExecutionSerializer()
        active = 0
        max_active = 0

        async def work(label: str) -> None:
            nonlocal active, max_active
            async with serializer.hold(label):
                active += 1
                max_active = max(max_active, active)
                await asyncio.sleep(0.01)
                active -= 1

        await asyncio.gather(*(work(f"job{i}") for i in range(5)))

        assert max_active == 1

    @pytest.mark.asyncio
    async def test_fifo_admission(self) -> None:
        serializer = ExecutionSerializer()
        order: list[str] = []

        async def work(label: str) -> None:
            async with serializer.hold(label):
                order.append(label)
                await asyncio.sleep(0)

        async with serializer.hold("first"):
            tasks = [asyncio.create_task(work(f"w{i}")) for i in range(4)]
            await asyncio.sleep(0.01)
        await asyncio.gather(*tasks)

        assert order == ["w0", "w1", "w2", "w3"]

    @pytest.mark.asyncio
    async def test_released_on_error(self) -> None:
        serializer = ExecutionSerializer()

        with pytest.raises(RuntimeError):
            async with serializer.hold("failing"):
                raise RuntimeError("boom")

        assert not serializer.locked
        assert serializer.holder is None

    @pytest.mark.asyncio
    async def test_released_on_cancellation(self) -> None:
        serializer = ExecutionSerializer()
        entered = asyncio.Event()

        async def hang() -> None:
            async with serializer.hold("hang"):
                entered.set()
                await asyncio.sleep(10)

        task = asyncio.create_task(hang())
        await entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert not serializer.locked

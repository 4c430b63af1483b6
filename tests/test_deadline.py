from __future__ import annotations

import asyncio

import pytest

from utils.deadline import with_deadline


@pytest.mark.asyncio
async def test_fast_operation_returns_value() -> None:
    async def _quick() -> str:
        return "done"

    result = await with_deadline(_quick(), 500)

    assert result.ok
    assert result.value == "done"


@pytest.mark.asyncio
async def test_deadline_wins_and_operation_is_not_cancelled() -> None:
    release = asyncio.Event()
    finished = []

    async def _slow() -> str:
        await release.wait()
        finished.append(True)
        return "late"

    result = await with_deadline(_slow(), 20)

    assert result.timed_out
    assert result.value is None
    assert result.elapsed_ms >= 10

    release.set()
    for _ in range(5):
        await asyncio.sleep(0)
    assert finished == [True]


@pytest.mark.asyncio
async def test_error_before_deadline_propagates() -> None:
    async def _boom() -> str:
        raise RuntimeError("quota exceeded")

    with pytest.raises(RuntimeError, match="quota exceeded"):
        await with_deadline(_boom(), 500)


@pytest.mark.asyncio
async def test_late_failure_is_swallowed_after_timeout() -> None:
    release = asyncio.Event()

    async def _late_boom() -> str:
        await release.wait()
        raise RuntimeError("after the fact")

    result = await with_deadline(_late_boom(), 10)
    release.set()
    await asyncio.sleep(0.01)

    assert result.timed_out

import asyncio

import pytest

from src.pix.upload.concurrency import join_all


@pytest.mark.asyncio
async def test_join_all_returns_results_by_name() -> None:
    async def value(result: int) -> int:
        await asyncio.sleep(0)
        return result

    results = await join_all({"a": value(1), "b": value(2)})

    assert results == {"a": 1, "b": 2}


@pytest.mark.asyncio
async def test_join_all_fails_fast_and_cancels_siblings() -> None:
    cancelled = asyncio.Event()

    async def slow() -> None:
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    async def boom() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        await join_all({"slow": slow(), "boom": boom()})

    await asyncio.wait_for(cancelled.wait(), timeout=1)


@pytest.mark.asyncio
async def test_join_all_with_nothing_to_do() -> None:
    assert await join_all({}) == {}

"""Fan-out/join helpers used by pipeline stages."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from typing import Any


async def join_all(named: Mapping[str, Awaitable[Any]]) -> dict[str, Any]:
    """Run awaitables concurrently, fail fast on the first error.

    Remaining members are cancelled once one of them raises; their results
    are discarded. On success the results are returned keyed by name.
    """
    tasks = {name: asyncio.ensure_future(awaitable) for name, awaitable in named.items()}
    if not tasks:
        return {}
    try:
        done, pending = await asyncio.wait(
            tasks.values(), return_when=asyncio.FIRST_EXCEPTION
        )
    except asyncio.CancelledError:
        for task in tasks.values():
            task.cancel()
        raise

    failures = [task.exception() for task in done if not task.cancelled() and task.exception()]
    if failures:
        for task in pending:
            task.cancel()
        raise failures[0]
    return {name: task.result() for name, task in tasks.items()}

"""Structured concurrency helpers with first-error-wins semantics."""

import asyncio
from collections.abc import Awaitable
from typing import Any


async def gather_fail_fast(*aws: Awaitable[Any]) -> list[Any]:
    """Run awaitables in a task group; the first failure cancels the rest.

    The first error raised by a child is re-raised as-is (not wrapped in an
    ExceptionGroup). Errors from siblings after the first are dropped.
    """
    async def _run(aw: Awaitable[Any]) -> Any:
        return await aw

    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_run(aw)) for aw in aws]
    except BaseExceptionGroup as eg:
        raise eg.exceptions[0]
    return [t.result() for t in tasks]


async def gather_independent(*aws: Awaitable[Any]) -> list[Any]:
    """Run awaitables to completion without letting one failure cancel the others.

    Once every child has finished, the first error in completion order is
    raised. If the caller is cancelled, all children are cancelled too.
    """
    if not aws:
        return []

    finished: list[asyncio.Future[Any]] = []
    tasks: list[asyncio.Future[Any]] = []
    for aw in aws:
        task = asyncio.ensure_future(aw)
        task.add_done_callback(finished.append)
        tasks.append(task)

    try:
        await asyncio.wait(tasks)
    except asyncio.CancelledError:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    for task in finished:
        if not task.cancelled() and task.exception() is not None:
            raise task.exception()  # type: ignore[misc]
    return [t.result() for t in tasks]
